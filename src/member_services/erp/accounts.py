"""Account service: chart of accounts, links between entries and voucher bundles."""

from typing import Sequence

from member_services.erp import endpoints
from member_services.erp.envelope import Parameter
from member_services.erp.errors import EnvelopeValidationError, ErpProtocolError
from member_services.erp.models import (
    AccountData,
    AccountDataError,
    BundleList,
    BundleSaveResult,
    EntryId,
    EntryIdQuery,
    EntryItem,
    LinkEntryItem,
    TaxCodeElement,
    TypeData,
)
from member_services.erp.parser import raise_for_api_exception, result_items, result_text
from member_services.erp.schema import find_child


class AccountService:
    def __init__(self, session):
        self.session = session

    def _call(self, name: str, parameters: Sequence[Parameter] = ()):
        return self.session.call(endpoints.ACCOUNT.operation(name), parameters)

    def get_account_list(self) -> list[AccountData]:
        result = self._call('GetAccountList')
        return [AccountData.from_element(element) for element in result_items(result, 'AccountData')]

    def get_tax_code_list(self) -> list[TaxCodeElement]:
        result = self._call('GetTaxCodeList')
        return [TaxCodeElement.from_element(element) for element in result_items(result, 'TaxCodeElement')]

    def get_type_list(self) -> list[TypeData]:
        result = self._call('GetTypeList')
        return [TypeData.from_element(element) for element in result_items(result, 'TypeData')]

    def create_link(self) -> int:
        text = result_text(self._call('CreateLink'))
        if not text.isdigit():
            raise ErpProtocolError(f'CreateLink returned {text!r}', operation='CreateLink')
        return int(text)

    def add_link_entries(self, item: LinkEntryItem) -> bool:
        return self._link_entries('AddLinkEntries', item)

    def replace_link_entries(self, item: LinkEntryItem) -> bool:
        return self._link_entries('ReplaceLinkEntries', item)

    def _link_entries(self, name: str, item: LinkEntryItem) -> bool:
        if not item.line_ids or item.link_id is None:
            raise EnvelopeValidationError('linkEntryItem needs LineIds and LinkId', operation=name)
        return result_text(self._call(name, [Parameter('linkEntryItem', item)])).lower() == 'true'

    def get_entry_id(self, query: EntryIdQuery) -> EntryId:
        result = self._call('GetEntryId', [Parameter('argEntryId', query)])
        if result is None:
            raise ErpProtocolError('GetEntryId returned no result', operation='GetEntryId')
        return EntryId.from_element(result)

    def update_entry_due_date(self, items: Sequence[EntryItem]) -> list[EntryItem]:
        result = self._call('UpdateEntryDueDate', [Parameter('entryItems', list(items), item_tag='EntryItem')])
        return [EntryItem.from_element(element) for element in result_items(result, 'EntryItem')]

    def check_account_no(self, accounts: Sequence[AccountData]) -> list[AccountDataError]:
        """Validate account numbers; returns one error per rejected account."""
        result = self._call('CheckAccountNo', [Parameter('accountList', list(accounts), item_tag='AccountData')])
        container = find_child(result, 'AccountDataErrors') if result is not None else None
        return [
            AccountDataError.from_element(element)
            for element in result_items(container if container is not None else result, 'AccountDataError')
        ]

    def save_bundle_list(self, bundle_list: BundleList) -> BundleSaveResult:
        result = self._call('SaveBundleList', [Parameter('BundleList', bundle_list)])
        raise_for_api_exception(result, 'SaveBundleList')
        if result is None:
            return BundleSaveResult()
        return BundleSaveResult.from_element(result)
