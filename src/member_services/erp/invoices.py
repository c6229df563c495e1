"""Invoice operations (InvoiceOrder service, SOAP 1.1)."""

from typing import Sequence

from member_services.erp import endpoints
from member_services.erp.envelope import Parameter
from member_services.erp.errors import EnvelopeValidationError, ErpFault, ErpProtocolError, FaultCategory
from member_services.erp.models import InvoiceOrder
from member_services.erp.parser import result_items


class InvoiceService:
    def __init__(self, session):
        self.session = session

    def save_invoices(self, orders: Sequence[InvoiceOrder]) -> list[InvoiceOrder]:
        """
        Save invoice orders and return what the ERP echoed back.

        Raises:
            ErpFault: the ERP attached an APIException to any returned order
        """
        if not orders:
            raise EnvelopeValidationError('at least one invoice order is required', operation='SaveInvoices')
        for order in orders:
            if not order.invoice_rows:
                raise EnvelopeValidationError('InvoiceOrder.InvoiceRows is required', operation='SaveInvoices')

        result = self.session.call(
            endpoints.INVOICE.operation('SaveInvoices'),
            [Parameter('invoices', list(orders), item_tag='InvoiceOrder')],
        )
        saved = [InvoiceOrder.from_element(element) for element in result_items(result, 'InvoiceOrder')]
        for order in saved:
            if order.api_exception is not None:
                raise ErpFault(
                    order.api_exception.message or 'ERP rejected the invoice',
                    code=order.api_exception.type or 'APIException',
                    category=FaultCategory.BUSINESS_RULE,
                    operation='SaveInvoices',
                )
        return saved

    def save_invoice(self, order: InvoiceOrder) -> InvoiceOrder:
        saved = self.save_invoices([order])
        if not saved or saved[0].invoice_id is None:
            raise ErpProtocolError('SaveInvoices returned no InvoiceId', operation='SaveInvoices')
        return saved[0]
