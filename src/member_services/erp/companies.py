"""Company (customer) operations."""

from typing import Optional, Sequence

from member_services.erp import endpoints
from member_services.erp.envelope import Parameter
from member_services.erp.errors import EnvelopeValidationError, ErpFault, ErpProtocolError, FaultCategory
from member_services.erp.models import Company, CompanySearchParameters, KeyValuePair
from member_services.erp.parser import raise_for_api_exception, result_items

RETURN_PROPERTIES = ['Id', 'Name', 'FirstName', 'OrganizationNumber', 'Type', 'EmailAddresses']


class CompanyService:
    def __init__(self, session):
        self.session = session

    def get_companies(self, search: CompanySearchParameters) -> list[Company]:
        if search == CompanySearchParameters():
            raise EnvelopeValidationError('at least one search parameter is required', operation='GetCompanies')
        result = self.session.call(
            endpoints.COMPANY.operation('GetCompanies'),
            [
                Parameter('searchParams', search),
                Parameter('returnProperties', RETURN_PROPERTIES, item_tag='string'),
            ],
        )
        return [Company.from_element(element) for element in result_items(result, 'Company')]

    def get_company(self, company_id: int) -> Optional[Company]:
        """Look up one company by its id; None when the ERP has no match."""
        companies = self.get_companies(CompanySearchParameters(company_id=company_id))
        return companies[0] if companies else None

    def search_company(self, name: str, email: Optional[str] = None) -> Optional[Company]:
        companies = self.get_companies(CompanySearchParameters(company_name=name, company_email=email))
        return companies[0] if companies else None

    def save_companies(self, companies: Sequence[Company]) -> list[Company]:
        if not companies:
            raise EnvelopeValidationError('at least one company is required', operation='SaveCompanies')
        result = self.session.call(
            endpoints.COMPANY.operation('SaveCompanies'),
            [Parameter('companies', list(companies), item_tag='Company')],
        )
        saved = [Company.from_element(element) for element in result_items(result, 'Company')]
        for company in saved:
            if company.api_exception is not None:
                raise ErpFault(
                    company.api_exception.message or 'ERP rejected the company',
                    code=company.api_exception.type or 'APIException',
                    category=FaultCategory.BUSINESS_RULE,
                    operation='SaveCompanies',
                )
        return saved

    def create_company(self, company: Company) -> Company:
        saved = self.save_companies([company])
        if not saved or saved[0].id is None:
            raise ErpProtocolError('SaveCompanies returned no company Id', operation='SaveCompanies')
        return saved[0]

    def get_customer_category_tree(self) -> list[KeyValuePair]:
        result = self.session.call(endpoints.COMPANY.operation('GetCustomerCategoryTree'))
        return [KeyValuePair.from_element(element) for element in result_items(result, 'KeyValuePair')]

    def save_customer_categories(self, categories: Sequence[KeyValuePair]) -> None:
        """Assign customers to categories; each pair is (category id, customer id)."""
        result = self.session.call(
            endpoints.COMPANY.operation('SaveCustomerCategories'),
            [Parameter('customerCategories', list(categories), item_tag='KeyValuePair')],
        )
        raise_for_api_exception(result, 'SaveCustomerCategories')

    def get_company_categories(self, company_id: int) -> list[int]:
        result = self.session.call(
            endpoints.COMPANY.operation('GetCompanyCategories'),
            [Parameter('companyId', company_id)],
        )
        return [int(element.text) for element in result_items(result, 'int') if element.text]
