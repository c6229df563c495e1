"""
Output models for API responses using Pydantic.

Every successful response is one of these models serialised by alias, so the
JSON field names stay what the calling apps read today.
"""

from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from member_services.clients.storefront import StoreProduct


class ResponseModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class MembershipOrderResponse(ResponseModel):
    success: bool = True
    customer_id: Annotated[int, Field(alias='customerId')]
    customer_created: Annotated[bool, Field(alias='customerCreated')] = False
    invoice_id: Annotated[Optional[int], Field(alias='invoiceId')] = None
    order_status: Annotated[str, Field(alias='orderStatus', examples=['Draft', 'Invoiced'])]
    message: str = 'Process completed successfully'


class FailedReceipt(ResponseModel):
    id: Annotated[str, Field(description='Attachment document id')]
    error: str


class ExpenseApprovalResponse(ResponseModel):
    success: bool = True
    stamp_no: Annotated[int, Field(alias='stampNo')]
    message: str
    uploaded_receipts: Annotated[int, Field(alias='uploadedReceipts')]
    failed_receipts: Annotated[Optional[list[FailedReceipt]], Field(
        default=None,
        alias='failedReceipts',
        description='Receipts that could not be uploaded; present only when some failed'
    )] = None
    warnings: Optional[list[str]] = None


class DepartmentRecord(ResponseModel):
    id: Annotated[int, Field(alias='Id')]
    name: Annotated[Optional[str], Field(alias='Name')] = None
    campus: Annotated[str, Field(alias='Campus')]


class DepartmentSyncResponse(ResponseModel):
    success: bool = True
    departments: list[DepartmentRecord]
    created: int
    skipped: int = 0


class VerifyMembershipResponse(ResponseModel):
    membership: dict[str, Any]


class CheckoutResponse(ResponseModel):
    reference: str
    token: Optional[str] = None
    checkout_frontend_url: Annotated[Optional[str], Field(alias='checkoutFrontendUrl')] = None
    polling_url: Annotated[Optional[str], Field(alias='pollingUrl')] = None


class CheckoutCallbackResponse(ResponseModel):
    reference: str
    status: str
    session_state: Annotated[Optional[str], Field(alias='sessionState')] = None
    membership_activated: Annotated[bool, Field(alias='membershipActivated')] = False


class CheckoutInvoiceResponse(MembershipOrderResponse):
    reference: str


class ProductListResponse(ResponseModel):
    products: list[StoreProduct]


class ProductResponse(ResponseModel):
    product: StoreProduct


class BoardMembersResponse(ResponseModel):
    success: bool = True
    department: dict[str, Any]
    users: list[dict[str, Any]]
    count: int
    strategy: Optional[str] = None


class TranslateResponse(ResponseModel):
    translated_text: Annotated[str, Field(alias='translatedText')]


class ExpenseDescriptionResponse(ResponseModel):
    description: str
    date: Optional[str] = None
    amount: Optional[float] = None


class ReceiptAnalysisResponse(ResponseModel):
    date: Optional[str] = None
    amount: Optional[float] = None
    description: Optional[str] = None
    currency: str = 'NOK'
    confidence: Optional[float] = None
    exchange_rate: Annotated[Optional[float], Field(alias='exchangeRate')] = None
    nok_amount: Annotated[Optional[float], Field(alias='nokAmount')] = None


class ExpenseInvoiceResponse(ResponseModel):
    status: str = 'ok'
    invoice_id: Annotated[str, Field(alias='invoiceId')]
