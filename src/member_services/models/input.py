"""
Input models for request validation using Pydantic.

This module defines the request bodies accepted by the Lambda functions.
Field aliases follow the names the calling apps already send.
"""

import json
from typing import Annotated, Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _as_text(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class MembershipOrderCustomer(BaseModel):
    model_config = ConfigDict(extra='ignore')

    first_name: Annotated[str, Field(min_length=1, description='Buyer first name', examples=['Kari'])]
    last_name: Annotated[str, Field(default='', description='Buyer last name', examples=['Nordmann'])] = ''

    @property
    def full_name(self) -> str:
        return f'{self.first_name} {self.last_name}'.strip()


class MembershipOrderRequest(BaseModel):
    """Order placed in the webshop for a membership product variation."""

    model_config = ConfigDict(extra='ignore')

    customer: MembershipOrderCustomer

    snumber: Annotated[str, Field(
        min_length=1,
        description='Student number, digits with an optional letter prefix',
        examples=['s1234567']
    )]

    selected_variation: Annotated[str, Field(
        min_length=1,
        description='Webshop variation id of the membership product',
        examples=['22141']
    )]

    price: Annotated[float, Field(gt=0, description='Price paid in NOK', examples=[350.0])]

    @field_validator('snumber', 'selected_variation', mode='before')
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return _as_text(v)


class ExpenseApprovalRequest(BaseModel):
    model_config = ConfigDict(extra='ignore')

    expense_id: Annotated[str, Field(
        min_length=1,
        validation_alias=AliasChoices('$id', 'expense_id', 'expenseId'),
        description='Id of the expense document to approve'
    )]


class VerifyMembershipRequest(BaseModel):
    model_config = ConfigDict(extra='ignore')

    snumber: Annotated[str, Field(
        min_length=1,
        validation_alias=AliasChoices('snumber', 'studentId', 'student_id'),
        description='Student number to verify'
    )]

    @field_validator('snumber', mode='before')
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return _as_text(v)


class CheckoutRequest(BaseModel):
    """Start a payment for a membership."""

    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    amount: Annotated[int, Field(
        gt=0,
        description='Amount in minor units (øre)',
        examples=[35000]
    )]

    description: Annotated[str, Field(min_length=1, max_length=100, description='Text shown to the payer')]

    return_url: Annotated[str, Field(
        min_length=1,
        alias='returnUrl',
        description='Where the payer returns after the checkout'
    )]

    membership_id: Annotated[Optional[str], Field(
        default=None,
        alias='membershipId',
        description='Membership document the payment is for'
    )] = None


class CheckoutCallbackRequest(BaseModel):
    """Session state pushed by the payment provider."""

    model_config = ConfigDict(extra='allow', populate_by_name=True)

    reference: Annotated[str, Field(min_length=1)]
    session_id: Annotated[Optional[str], Field(default=None, alias='sessionId')] = None
    session_state: Annotated[Optional[str], Field(default=None, alias='sessionState')] = None


class CheckoutCampus(BaseModel):
    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    campus_id: Annotated[str, Field(min_length=1, alias='$id')]
    name: Annotated[str, Field(min_length=1)]

    @field_validator('campus_id', mode='before')
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return _as_text(v)


class CheckoutUser(BaseModel):
    """The paying user's document as expanded into the checkout record."""

    model_config = ConfigDict(extra='ignore')

    name: str = ''
    email: Optional[str] = None
    student_id: Annotated[str, Field(min_length=1, description='Student number', examples=['s1234567'])]
    campus: CheckoutCampus

    @field_validator('student_id', mode='before')
    @classmethod
    def student_number(cls, v: Any) -> Any:
        # the relation may arrive expanded into the student document
        if isinstance(v, dict):
            v = v.get('student_id') or v.get('$id')
        return _as_text(v)


class CheckoutMembership(BaseModel):
    model_config = ConfigDict(extra='ignore')

    category: Annotated[int, Field(gt=0, description='ERP customer category id')]
    name: Annotated[str, Field(min_length=1, examples=['Semester'])]


class PaidCheckoutRequest(BaseModel):
    """A reconciled checkout record, posted when its payment went through."""

    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    reference: Annotated[str, Field(min_length=1)]
    status: Annotated[str, Field(min_length=1, examples=['PaymentSuccessful'])]

    product_id: Annotated[int, Field(
        gt=0,
        alias='membership_id',
        description='ERP product invoiced for the membership'
    )]

    membership: CheckoutMembership

    paid_amount: Annotated[int, Field(gt=0, description='Amount paid in minor units (øre)', examples=[35000])]
    payment_method: Optional[str] = None
    user_id: Annotated[str, Field(min_length=1)]
    user: CheckoutUser

    @field_validator('membership', mode='before')
    @classmethod
    def parse_membership(cls, v: Any) -> Any:
        # stored either as a relation or as a JSON string
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError as exc:
                raise ValueError('membership is not valid JSON') from exc
        return v


class ProductFilterRequest(BaseModel):
    model_config = ConfigDict(extra='ignore')

    campus: Annotated[Optional[str], Field(default=None, description='Campus value to filter on')] = None
    department: Annotated[Optional[str], Field(default=None, description='Department value to filter on')] = None

    @field_validator('campus', 'department', mode='before')
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return _as_text(v) or None


class BoardMembersRequest(BaseModel):
    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    campus: Annotated[str, Field(min_length=1, description='Campus the department belongs to')]

    department_id: Annotated[str, Field(
        min_length=1,
        validation_alias=AliasChoices('departmentId', 'department_id'),
        description='Department document id'
    )]

    @field_validator('campus', 'department_id', mode='before')
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return _as_text(v)


class TranslateRequest(BaseModel):
    model_config = ConfigDict(extra='ignore')

    source_lang: Annotated[str, Field(min_length=1, examples=['no'])]
    target_lang: Annotated[str, Field(min_length=1, examples=['en'])]
    text: Annotated[str, Field(min_length=1, max_length=20000)]


class ExpenseDescriptionRequest(BaseModel):
    """Receipt descriptions to summarise into one expense description."""

    model_config = ConfigDict(extra='allow')

    descriptions: Annotated[list[str], Field(min_length=1, description='One description per attachment')]

    event: Annotated[Optional[str], Field(
        default=None,
        validation_alias=AliasChoices('event', 'eventName'),
        description='Event the expense belongs to'
    )] = None

    @field_validator('descriptions', mode='before')
    @classmethod
    def split_descriptions(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [part.strip() for part in v.split(',') if part.strip()]
        return v


class ReceiptAnalysisRequest(BaseModel):
    text: Annotated[str, Field(min_length=1, max_length=50000, description='Text extracted from a receipt')]


class ExpenseUser(BaseModel):
    model_config = ConfigDict(extra='ignore')

    name: str = ''
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    zip: Optional[str] = None

    @field_validator('phone', 'zip', mode='before')
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return _as_text(v)


class ExpenseAttachment(BaseModel):
    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    id: Annotated[Optional[str], Field(default=None, alias='$id')] = None
    date: Optional[str] = None
    url: str = ''
    amount: float
    description: str = ''
    type: Optional[str] = None

    @property
    def file_id(self) -> str:
        return self.url.rstrip('/').split('/')[-1]


class Expense(BaseModel):
    """Expense document, with its user and attachments relationships expanded."""

    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    id: Annotated[str, Field(alias='$id', min_length=1)]
    created_at: Annotated[Optional[str], Field(default=None, alias='$createdAt')] = None
    campus: Optional[str] = None
    department: Optional[str] = None
    bank_account: Optional[str] = None
    description: Optional[str] = None
    total: float
    prepayment_amount: float = 0.0
    status: Optional[str] = None
    invoice_id: Optional[str] = None
    user: Optional[ExpenseUser] = None
    expense_attachments: Annotated[list[ExpenseAttachment], Field(
        default_factory=list,
        alias='expenseAttachments'
    )]

    @field_validator('invoice_id', 'campus', 'department', 'bank_account', mode='before')
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return _as_text(v)

    @field_validator('expense_attachments', mode='before')
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v
