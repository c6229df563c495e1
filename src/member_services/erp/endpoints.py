"""ERP web service endpoints and their allow-listed operations."""

from member_services.erp.envelope import ErpService, SoapVersion

WEBSERVICES_NS = 'http://24sevenOffice.com/webservices'
ACCOUNTING_NS = 'http://24sevenoffice.com/webservices/economy/accounting/'

AUTHENTICATE = ErpService(
    name='Authenticate',
    url='https://api.24sevenoffice.com/authenticate/v001/authenticate.asmx',
    namespace=WEBSERVICES_NS,
    operations=frozenset({'Login'}),
)

INVOICE = ErpService(
    name='InvoiceOrder',
    url='https://api.24sevenoffice.com/Economy/InvoiceOrder/V001/InvoiceService.asmx',
    namespace=WEBSERVICES_NS,
    operations=frozenset({'SaveInvoices'}),
    soap_version=SoapVersion.SOAP11,
)

COMPANY = ErpService(
    name='Company',
    url='https://api.24sevenoffice.com/CRM/Company/V001/CompanyService.asmx',
    namespace=WEBSERVICES_NS,
    operations=frozenset({
        'GetCompanies',
        'SaveCompanies',
        'GetCustomerCategoryTree',
        'SaveCustomerCategories',
        'GetCompanyCategories',
    }),
)

CLIENT = ErpService(
    name='Client',
    url='https://api.24sevenoffice.com/Client/V001/ClientService.asmx',
    namespace=WEBSERVICES_NS,
    operations=frozenset({'GetDepartmentList'}),
)

ATTACHMENT = ErpService(
    name='Attachment',
    url='https://webservices.24sevenoffice.com/Economy/Accounting/Accounting_V001/AttachmentService.asmx',
    namespace=ACCOUNTING_NS,
    operations=frozenset({
        'Create',
        'AppendChunk',
        'AppendChunkByLength',
        'DownloadChunk',
        'GetChecksum',
        'GetFileInfo',
        'GetMaxRequestLength',
        'GetSize',
        'Save',
        'GetStampNo',
        'GetApproverList',
        'GetSeries',
        'GetSeriesStampNo',
    }),
)

ACCOUNT = ErpService(
    name='Account',
    url='https://api.24sevenoffice.com/Economy/Account/V004/Accountservice.asmx',
    namespace=WEBSERVICES_NS,
    operations=frozenset({
        'GetAccountList',
        'GetTaxCodeList',
        'GetTypeList',
        'CreateLink',
        'AddLinkEntries',
        'ReplaceLinkEntries',
        'GetEntryId',
        'UpdateEntryDueDate',
        'CheckAccountNo',
        'SaveBundleList',
    }),
)
