"""
Business logic for membership orders coming from the webshop.

An order resolves the buyer as an ERP customer (the customer id is the
student number), adds the customer to the membership category and raises an
invoice for the membership product. The status webhook hears about every
terminal outcome after the ERP session is open.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Callable, Optional

from aws_lambda_powertools.metrics import MetricUnit

from member_services.clients.notifications import (
    STATUS_INVOICE_CREATED,
    STATUS_INVOICE_FAILED,
    STATUS_RECEIVED,
    StatusNotifier,
    StatusUpdate,
)
from member_services.erp import ErpClient, ErpError, ErpSession
from member_services.erp.models import (
    Company,
    CompanyType,
    InvoiceOrder,
    InvoiceOrderStatus,
    InvoiceRow,
    KeyValuePair,
    UserDefinedDimension,
    UserDefinedDimensionKey,
)
from member_services.handlers.utils.errors import BusinessLogicError, ErrorContext
from member_services.handlers.utils.observability import logger, metrics, tracer
from member_services.logic import membership_rules
from member_services.logic.membership_rules import MembershipVariation
from member_services.models.input import MembershipOrderRequest
from member_services.models.output import MembershipOrderResponse

CAMPUS_DIMENSION_TYPE_ID = '101'
MEMBERSHIP_DIMENSION_TYPE_ID = '102'
PAYMENT_METHOD_ID = 1


class CustomerNotFoundError(BusinessLogicError):
    def __init__(self, student_id: int, context: Optional[ErrorContext] = None):
        super().__init__(
            message=f'Customer {student_id} not found and creation is disabled',
            error_code='CUSTOMER_NOT_FOUND',
            context=context,
        )
        self.student_id = student_id


def _midnight(day: date) -> datetime:
    return datetime.combine(day, time())


def membership_invoice(
    customer_id: int,
    product_id: int,
    price: float,
    department_id: int,
    dimensions: tuple[str, str],
    accrual: tuple[date, int],
    today: date,
    finalize: bool,
    include_vat: Optional[bool] = None,
) -> InvoiceOrder:
    """
    One membership product row with its campus and membership dimensions.

    ``dimensions`` holds the campus name and membership name; ``accrual`` the
    accrual start and its length in months.
    """
    campus_name, membership_name = dimensions
    accrual_start, accrual_months = accrual
    return InvoiceOrder(
        customer_id=customer_id,
        order_status=InvoiceOrderStatus.INVOICED if finalize else InvoiceOrderStatus.DRAFT,
        date_invoiced=_midnight(today),
        payment_time=0,
        payment_method_id=PAYMENT_METHOD_ID,
        payment_amount=price,
        include_vat=include_vat,
        department_id=department_id,
        invoice_rows=[InvoiceRow(product_id=product_id, price=price, quantity=1)],
        accrual_date=_midnight(accrual_start),
        accrual_length=accrual_months,
        user_defined_dimensions=[
            UserDefinedDimension(
                type=UserDefinedDimensionKey.USER_DEFINED,
                name=campus_name,
                type_id=CAMPUS_DIMENSION_TYPE_ID,
            ),
            UserDefinedDimension(
                type=UserDefinedDimensionKey.USER_DEFINED,
                name=membership_name,
                type_id=MEMBERSHIP_DIMENSION_TYPE_ID,
            ),
        ],
    )


def build_invoice_order(
    customer_id: int,
    membership: MembershipVariation,
    price: float,
    today: date,
    finalize: bool,
) -> InvoiceOrder:
    """The invoice for one webshop membership variation."""
    return membership_invoice(
        customer_id,
        product_id=membership.product_id,
        price=price,
        department_id=membership.department_id,
        dimensions=(membership.campus.name, membership.membership_type.value),
        accrual=(membership_rules.accrual_date(today), membership.accrual_length),
        today=today,
        finalize=finalize,
    )


@dataclass
class _OrderProgress:
    student_id: int
    name: str
    membership: MembershipVariation


class MembershipOrderService:
    """Turns a webshop membership order into an ERP customer category and invoice."""

    def __init__(
        self,
        erp_client: ErpClient,
        notifier: Optional[StatusNotifier] = None,
        should_invoice: bool = False,
        should_create_customer: bool = False,
        today: Callable[[], date] = date.today,
    ):
        """
        Initialize the membership order service.

        Args:
            erp_client: client for the ERP web services
            notifier: status webhook, or None when no webhook is configured
            should_invoice: create invoices as Invoiced instead of Draft
            should_create_customer: create a customer when the student has none
            today: clock used for invoice and accrual dates
        """
        self.erp = erp_client
        self.notifier = notifier
        self.should_invoice = should_invoice
        self.should_create_customer = should_create_customer
        self.today = today

    def _notify(self, progress: _OrderProgress, status: str) -> None:
        if self.notifier is None:
            logger.debug('No status webhook configured', extra={'status': status})
            return
        self.notifier.send(StatusUpdate(
            student_id=progress.student_id,
            name=progress.name,
            membership_type=progress.membership.membership_type.value,
            status=status,
            campus_name=progress.membership.campus.name,
        ))

    def _resolve_customer(
        self,
        session: ErpSession,
        progress: _OrderProgress,
        request: MembershipOrderRequest,
        context: Optional[ErrorContext],
    ) -> tuple[Company, bool]:
        try:
            customer = session.companies.get_company(progress.student_id)
        except ErpError:
            logger.exception('Customer lookup failed', extra={'student_id': progress.student_id})
            self._notify(progress, STATUS_RECEIVED)
            raise

        if customer is not None:
            logger.info('Existing customer found', extra={'customer_id': customer.id})
            return customer, False

        if not self.should_create_customer:
            logger.info('Customer not found and creation is disabled', extra={'student_id': progress.student_id})
            self._notify(progress, STATUS_RECEIVED)
            raise CustomerNotFoundError(progress.student_id, context)

        created = session.companies.create_company(Company(
            id=progress.student_id,
            name=progress.name,
            first_name=request.customer.first_name,
            type=CompanyType.CONSUMER,
        ))
        metrics.add_metric(name='CustomerCreated', unit=MetricUnit.Count, value=1)
        logger.info('Customer created', extra={'customer_id': created.id, 'student_id': progress.student_id})
        return created, True

    @tracer.capture_method(capture_response=False)
    def process_order(
        self,
        request: MembershipOrderRequest,
        context: Optional[ErrorContext] = None,
    ) -> MembershipOrderResponse:
        """
        Process one membership order.

        Args:
            request: validated webshop order
            context: error context for tracing

        Returns:
            The customer and invoice the order produced

        Raises:
            CustomerNotFoundError: no customer exists and creation is disabled
            ErpError: any ERP failure, after the matching status update
        """
        student_id = membership_rules.normalize_student_number(request.snumber)
        membership = membership_rules.variation(request.selected_variation)
        progress = _OrderProgress(student_id=student_id, name=request.customer.full_name, membership=membership)

        tracer.put_annotation('student_id', student_id)
        tracer.put_annotation('membership_variation', membership.variation_id)

        session = self.erp.login()
        customer, created = self._resolve_customer(session, progress, request, context)
        customer_id = customer.id if customer.id is not None else student_id
        if customer.name:
            progress.name = customer.name

        session.companies.save_customer_categories([
            KeyValuePair(key=str(membership.category_id), value=str(student_id)),
        ])
        logger.info('Customer category updated', extra={
            'student_id': student_id,
            'category_id': membership.category_id,
        })

        order = build_invoice_order(customer_id, membership, request.price, self.today(), self.should_invoice)
        try:
            saved = session.invoices.save_invoice(order)
        except ErpError:
            logger.exception('Invoice creation failed', extra={'customer_id': customer_id})
            metrics.add_metric(name='MembershipInvoiceFailed', unit=MetricUnit.Count, value=1)
            self._notify(progress, STATUS_INVOICE_FAILED)
            raise

        self._notify(progress, STATUS_INVOICE_CREATED)
        metrics.add_metric(name='MembershipInvoiceCreated', unit=MetricUnit.Count, value=1)
        logger.info('Membership invoice created', extra={
            'customer_id': customer_id,
            'invoice_id': saved.invoice_id,
            'order_status': order.order_status.value,
        })

        return MembershipOrderResponse(
            customer_id=customer_id,
            customer_created=created,
            invoice_id=saved.invoice_id,
            order_status=order.order_status.value,
        )
