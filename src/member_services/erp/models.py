"""
Wire models for the ERP web services.

Field declaration order is element order on the wire; aliases are element
names. See :mod:`member_services.erp.schema` for the absent-value policy.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional

from pydantic import Field

from member_services.erp.schema import NILLABLE, REQUIRED, WireModel, XmlList


class KeyValuePair(WireModel):
    key: Annotated[str, Field(alias='Key')]
    value: Annotated[Optional[str], Field(alias='Value')] = None


class ApiException(WireModel):
    type: Annotated[Optional[str], Field(alias='Type')] = None
    message: Annotated[Optional[str], Field(alias='Message')] = None


# Invoices

class InvoiceOrderStatus(str, Enum):
    OFFER = 'Offer'
    WEB = 'Web'
    DRAFT = 'Draft'
    FOR_INVOICING = 'ForInvoicing'
    INVOICED = 'Invoiced'


class UserDefinedDimensionKey(str, Enum):
    NONE = 'None'
    DEPARTMENT = 'Department'
    EMPLOYEE = 'Employee'
    PROJECT = 'Project'
    PRODUCT = 'Product'
    CUSTOMER = 'Customer'
    CUSTOMER_ORDER_SLIP = 'CustomerOrderSlip'
    SUPPLIER_ORDER_SLIP = 'SupplierOrderSlip'
    USER_DEFINED = 'UserDefined'


class InvoiceRow(WireModel):
    product_id: Annotated[Optional[int], REQUIRED, Field(alias='ProductId')] = None
    price: Annotated[Optional[float], Field(alias='Price')] = None
    quantity: Annotated[Optional[float], Field(alias='Quantity')] = None


class UserDefinedDimension(WireModel):
    type: Annotated[UserDefinedDimensionKey, Field(alias='Type')]
    name: Annotated[Optional[str], Field(alias='Name')] = None
    type_id: Annotated[Optional[str], Field(alias='TypeId')] = None


class InvoiceOrder(WireModel):
    order_id: Annotated[Optional[int], Field(alias='OrderId')] = None
    invoice_id: Annotated[Optional[int], Field(alias='InvoiceId')] = None
    customer_id: Annotated[Optional[int], REQUIRED, Field(alias='CustomerId')] = None
    order_status: Annotated[Optional[InvoiceOrderStatus], Field(alias='OrderStatus')] = None
    date_ordered: Annotated[Optional[datetime], Field(alias='DateOrdered')] = None
    date_invoiced: Annotated[Optional[datetime], Field(alias='DateInvoiced')] = None
    date_changed: Annotated[Optional[datetime], Field(alias='DateChanged')] = None
    payment_time: Annotated[Optional[int], Field(alias='PaymentTime')] = None
    project_id: Annotated[Optional[int], Field(alias='ProjectId')] = None
    include_vat: Annotated[Optional[bool], Field(alias='IncludeVAT')] = None
    payment_method_id: Annotated[Optional[int], Field(alias='PaymentMethodId')] = None
    payment_amount: Annotated[Optional[float], Field(alias='PaymentAmount')] = None
    distributor: Annotated[Literal['Manual'], Field(alias='Distributor')] = 'Manual'
    department_id: Annotated[Optional[int], Field(alias='DepartmentId')] = None
    invoice_rows: Annotated[list[InvoiceRow], XmlList('InvoiceRow'), Field(alias='InvoiceRows')] = []
    accrual_date: Annotated[Optional[datetime], Field(alias='AccrualDate')] = None
    accrual_length: Annotated[Optional[int], Field(alias='AccrualLength')] = None
    user_defined_dimensions: Annotated[
        list[UserDefinedDimension], XmlList('UserDefinedDimension'), Field(alias='UserDefinedDimensions')
    ] = []
    api_exception: Annotated[Optional[ApiException], Field(alias='APIException')] = None


# Companies

class CompanyType(str, Enum):
    CONSUMER = 'Consumer'
    BUSINESS = 'Business'
    SUPPLIER = 'Supplier'


class EmailAddress(WireModel):
    name: Annotated[Optional[str], Field(alias='Name')] = None
    value: Annotated[Optional[str], Field(alias='Value')] = None


class CompanyEmailAddresses(WireModel):
    primary: Annotated[Optional[EmailAddress], Field(alias='Primary')] = None
    invoice: Annotated[Optional[EmailAddress], Field(alias='Invoice')] = None


class Company(WireModel):
    id: Annotated[Optional[int], Field(alias='Id')] = None
    external_id: Annotated[Optional[str], Field(alias='ExternalId')] = None
    organization_number: Annotated[Optional[str], Field(alias='OrganizationNumber')] = None
    name: Annotated[Optional[str], REQUIRED, Field(alias='Name')] = None
    first_name: Annotated[Optional[str], Field(alias='FirstName')] = None
    type: Annotated[Optional[CompanyType], Field(alias='Type')] = None
    email_addresses: Annotated[Optional[CompanyEmailAddresses], Field(alias='EmailAddresses')] = None
    api_exception: Annotated[Optional[ApiException], Field(alias='APIException')] = None


class CompanySearchParameters(WireModel):
    company_id: Annotated[Optional[int], Field(alias='CompanyId')] = None
    external_id: Annotated[Optional[str], Field(alias='ExternalId')] = None
    organization_number: Annotated[Optional[str], Field(alias='OrganizationNumber')] = None
    company_name: Annotated[Optional[str], Field(alias='CompanyName')] = None
    company_email: Annotated[Optional[str], Field(alias='CompanyEmail')] = None
    changed_after: Annotated[Optional[datetime], Field(alias='ChangedAfter')] = None


# Client

class Department(WireModel):
    id: Annotated[int, Field(alias='Id')]
    name: Annotated[Optional[str], Field(alias='Name')] = None


# Attachments

class FileType(str, Enum):
    UNKNOWN = 'Unknown'
    JPEG = 'Jpeg'
    PNG = 'Png'
    GIF = 'Gif'
    BMP = 'Bmp'
    TIFF = 'Tiff'
    PDF = 'Pdf'


class FileLocation(str, Enum):
    JOURNAL = 'Journal'
    RETRIEVAL = 'Retrieval'


class FlagType(str, Enum):
    NONE = 'None'
    FLAGGED = 'Flagged'
    APPROVED = 'Approved'
    REJECTED = 'Rejected'


class ImageFrameInfo(WireModel):
    id: Annotated[int, Field(alias='Id')] = 1
    stamp_no: Annotated[Optional[int], Field(alias='StampNo')] = None
    # pairs sit directly under MetaData, without KeyValuePair wrappers
    meta_data: Annotated[list[KeyValuePair], XmlList(None), NILLABLE, Field(alias='MetaData')] = []
    status: Annotated[int, Field(alias='Status')] = 0


class ImageFile(WireModel):
    id: Annotated[Optional[str], REQUIRED, Field(alias='Id')] = None
    type: Annotated[Optional[FileType], REQUIRED, Field(alias='Type')] = None
    stamp_no: Annotated[Optional[int], Field(alias='StampNo')] = None
    stamp_meta: Annotated[list[KeyValuePair], XmlList('KeyValuePair'), Field(alias='StampMeta')] = []
    frame_info: Annotated[list[ImageFrameInfo], XmlList('ImageFrameInfo'), Field(alias='FrameInfo')] = []
    contact_id: Annotated[list[int], XmlList('int'), Field(alias='ContactId')] = []


class FileInfoParameters(WireModel):
    stamp_no: Annotated[list[int], XmlList('int'), Field(alias='StampNo')] = []
    file_id: Annotated[list[int], XmlList('int'), Field(alias='FileId')] = []
    attachment_registered_after: Annotated[Optional[datetime], Field(alias='AttachmentRegisteredAfter')] = None
    attachment_changed_after: Annotated[Optional[datetime], Field(alias='AttachmentChangedAfter')] = None
    has_stamp_no: Annotated[Optional[bool], Field(alias='HasStampNo')] = None
    file_approved: Annotated[Optional[bool], Field(alias='FileApproved')] = None
    attachment_status: Annotated[list[FlagType], XmlList('FlagType'), Field(alias='AttachmentStatus')] = []


class StampSeries(WireModel):
    id: Annotated[Optional[str], Field(alias='Id')] = None
    name: Annotated[Optional[str], Field(alias='Name')] = None


# Accounts

class AccountData(WireModel):
    account_id: Annotated[Optional[int], Field(alias='AccountId')] = None
    account_no: Annotated[Optional[int], Field(alias='AccountNo')] = None
    account_name: Annotated[Optional[str], Field(alias='AccountName')] = None
    account_tax: Annotated[Optional[int], Field(alias='AccountTax')] = None
    tax_no: Annotated[Optional[int], Field(alias='TaxNo')] = None


class AccountDataError(WireModel):
    account_no: Annotated[Optional[int], Field(alias='AccountNo')] = None
    error: Annotated[Optional[str], Field(alias='Error')] = None


class TaxCodeElement(WireModel):
    tax_id: Annotated[Optional[int], Field(alias='TaxId')] = None
    tax_no: Annotated[Optional[int], Field(alias='TaxNo')] = None
    tax_name: Annotated[Optional[str], Field(alias='TaxName')] = None
    tax_rate: Annotated[Optional[float], Field(alias='TaxRate')] = None
    account_no: Annotated[Optional[int], Field(alias='AccountNo')] = None


class TypeData(WireModel):
    type_id: Annotated[Optional[int], Field(alias='TypeId')] = None
    type_no: Annotated[Optional[int], Field(alias='TypeNo')] = None
    title: Annotated[Optional[str], Field(alias='Title')] = None


class LinkEntryItem(WireModel):
    line_ids: Annotated[list[str], XmlList('guid'), Field(alias='LineIds')] = []
    link_id: Annotated[Optional[int], Field(alias='LinkId')] = None


class EntryIdQuery(WireModel):
    date: Annotated[Optional[datetime], Field(alias='Date')] = None
    sort_no: Annotated[Optional[int], Field(alias='SortNo')] = None
    entry_no: Annotated[Optional[int], Field(alias='EntryNo')] = None


class EntryId(WireModel):
    date: Annotated[Optional[datetime], Field(alias='Date')] = None
    sort_no: Annotated[Optional[int], Field(alias='SortNo')] = None
    entry_no: Annotated[Optional[int], Field(alias='EntryNo')] = None
    entry_id: Annotated[Optional[int], Field(alias='EntryId')] = None


class EntryItem(WireModel):
    line_id: Annotated[Optional[str], REQUIRED, Field(alias='LineId')] = None
    due_date: Annotated[Optional[datetime], Field(alias='DueDate')] = None


class Entry(WireModel):
    sequence_id: Annotated[Optional[int], Field(alias='SequenceId')] = None
    customer_id: Annotated[Optional[int], Field(alias='CustomerId')] = None
    account_no: Annotated[Optional[int], REQUIRED, Field(alias='AccountNo')] = None
    date: Annotated[Optional[datetime], REQUIRED, Field(alias='Date')] = None
    due_date: Annotated[Optional[datetime], Field(alias='DueDate')] = None
    amount: Annotated[Optional[float], REQUIRED, Field(alias='Amount')] = None
    currency_id: Annotated[Optional[str], Field(alias='CurrencyId')] = None
    currency_rate: Annotated[Optional[float], Field(alias='CurrencyRate')] = None
    currency_unit: Annotated[Optional[float], Field(alias='CurrencyUnit')] = None
    department_id: Annotated[Optional[int], Field(alias='DepartmentId')] = None
    project_id: Annotated[Optional[int], Field(alias='ProjectId')] = None
    invoice_reference_no: Annotated[Optional[str], Field(alias='InvoiceReferenceNo')] = None
    invoice_ocr: Annotated[Optional[str], Field(alias='InvoiceOcr')] = None
    tax_no: Annotated[Optional[int], Field(alias='TaxNo')] = None
    period_date: Annotated[Optional[datetime], Field(alias='PeriodDate')] = None
    comment: Annotated[Optional[str], Field(alias='Comment')] = None
    stamp_no: Annotated[Optional[int], Field(alias='StampNo')] = None
    bank_account_no: Annotated[Optional[str], Field(alias='BankAccountNo')] = None
    link_id: Annotated[Optional[int], Field(alias='LinkId')] = None
    links: Annotated[list[str], XmlList('string'), Field(alias='Links')] = []
    line_id: Annotated[Optional[str], Field(alias='LineId')] = None


class Voucher(WireModel):
    transaction_no: Annotated[Optional[int], Field(alias='TransactionNo')] = None
    entries: Annotated[list[Entry], XmlList('Entry'), Field(alias='Entries')] = []
    sort: Annotated[Optional[int], Field(alias='Sort')] = None
    difference_options: Annotated[Optional[str], Field(alias='DifferenceOptions')] = None


class Bundle(WireModel):
    year_id: Annotated[Optional[int], REQUIRED, Field(alias='YearId')] = None
    vouchers: Annotated[list[Voucher], XmlList('Voucher'), Field(alias='Vouchers')] = []
    sort: Annotated[Optional[int], Field(alias='Sort')] = None
    name: Annotated[Optional[str], Field(alias='Name')] = None
    bundle_direct_accounting: Annotated[Optional[bool], Field(alias='BundleDirectAccounting')] = None


class BundleList(WireModel):
    bundles: Annotated[list[Bundle], XmlList('Bundle'), REQUIRED, Field(alias='Bundles')] = []
    save_option: Annotated[Optional[int], Field(alias='SaveOption')] = None
    direct_ledger: Annotated[Optional[bool], Field(alias='DirectLedger')] = None
    default_customer_id: Annotated[Optional[int], Field(alias='DefaultCustomerId')] = None
    allow_difference: Annotated[Optional[bool], Field(alias='AllowDifference')] = None
    ignore_warnings: Annotated[list[str], XmlList('string'), Field(alias='IgnoreWarnings')] = []


class BundleSaveResult(WireModel):
    type: Annotated[Optional[str], Field(alias='Type')] = None
    description: Annotated[Optional[str], Field(alias='Description')] = None


# Authentication

class Credential(WireModel):
    application_id: Annotated[Optional[str], REQUIRED, Field(alias='ApplicationId')] = None
    password: Annotated[Optional[str], REQUIRED, Field(alias='Password', repr=False)] = None
    username: Annotated[Optional[str], REQUIRED, Field(alias='Username')] = None
