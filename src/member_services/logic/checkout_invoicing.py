"""
ERP invoices for memberships paid through the hosted checkout.

Once a checkout record is reconciled as paid, the payer becomes (or already
is) an ERP customer, joins the membership's customer category and gets an
invoice for the amount actually paid. Unlike webshop orders the customer is
always created when missing: the paying user is known to the app.
"""

from datetime import date
from typing import Callable, Optional

from aws_lambda_powertools.metrics import MetricUnit

from member_services.erp import ErpClient, ErpError, ErpSession
from member_services.erp.models import (
    Company,
    CompanyEmailAddresses,
    CompanyType,
    EmailAddress,
    KeyValuePair,
)
from member_services.handlers.utils.errors import BusinessLogicError, ErrorContext
from member_services.handlers.utils.observability import logger, metrics, tracer
from member_services.logic import membership_rules
from member_services.logic.checkout import PAYMENT_SUCCESSFUL
from member_services.logic.membership_orders import membership_invoice
from member_services.models.input import CheckoutUser, PaidCheckoutRequest
from member_services.models.output import CheckoutInvoiceResponse


class CheckoutNotPaidError(BusinessLogicError):
    def __init__(self, reference: str, status: str, context: Optional[ErrorContext] = None):
        super().__init__(
            message=f'Checkout {reference} has status {status} and cannot be invoiced',
            error_code='CHECKOUT_NOT_PAID',
            context=context,
        )
        self.reference = reference
        self.status = status


def invoice_price(paid_amount: int) -> float:
    """Invoice prices are NOK; the provider reports øre."""
    return paid_amount / 100


def new_customer(student_id: int, user: CheckoutUser) -> Company:
    names = user.name.split()
    return Company(
        id=student_id,
        name=' '.join(names) or str(student_id),
        first_name=names[0] if names else None,
        type=CompanyType.CONSUMER,
        email_addresses=CompanyEmailAddresses(primary=EmailAddress(value=user.email)) if user.email else None,
    )


class CheckoutInvoiceService:
    def __init__(
        self,
        erp_client: ErpClient,
        should_invoice: bool = False,
        today: Callable[[], date] = date.today,
    ):
        self.erp = erp_client
        self.should_invoice = should_invoice
        self.today = today

    def _customer(self, session: ErpSession, student_id: int, user: CheckoutUser) -> tuple[int, bool]:
        customer = session.companies.get_company(student_id)
        if customer is not None:
            logger.info('Existing customer found', extra={'customer_id': customer.id})
            return (customer.id if customer.id is not None else student_id), False

        created = session.companies.create_company(new_customer(student_id, user))
        metrics.add_metric(name='CustomerCreated', unit=MetricUnit.Count, value=1)
        logger.info('Customer created', extra={'customer_id': created.id, 'student_id': student_id})
        return (created.id if created.id is not None else student_id), True

    @tracer.capture_method(capture_response=False)
    def invoice_checkout(
        self,
        checkout: PaidCheckoutRequest,
        context: Optional[ErrorContext] = None,
    ) -> CheckoutInvoiceResponse:
        """
        Invoice a paid checkout in the ERP.

        Args:
            checkout: the reconciled checkout record with its user and membership
            context: error context for tracing

        Returns:
            The customer and invoice raised for the payment

        Raises:
            CheckoutNotPaidError: the checkout is not in the paid state
            ErpError: any ERP failure
        """
        tracer.put_annotation('checkout_reference', checkout.reference)
        if checkout.status != PAYMENT_SUCCESSFUL:
            raise CheckoutNotPaidError(checkout.reference, checkout.status, context)

        student_id = membership_rules.normalize_student_number(checkout.user.student_id)
        campus = checkout.user.campus
        today = self.today()

        session = self.erp.login()
        customer_id, created = self._customer(session, student_id, checkout.user)

        session.companies.save_customer_categories([
            KeyValuePair(key=str(checkout.membership.category), value=str(student_id)),
        ])

        price = invoice_price(checkout.paid_amount)
        order = membership_invoice(
            customer_id,
            product_id=checkout.product_id,
            price=price,
            department_id=membership_rules.department_for_campus(campus.campus_id),
            dimensions=(campus.name, checkout.membership.name),
            accrual=(membership_rules.checkout_accrual_date(today), membership_rules.CHECKOUT_ACCRUAL_MONTHS),
            today=today,
            finalize=self.should_invoice,
            include_vat=True,
        )

        try:
            saved = session.invoices.save_invoice(order)
        except ErpError:
            logger.exception('Checkout invoice failed', extra={
                'reference': checkout.reference,
                'customer_id': customer_id,
            })
            metrics.add_metric(name='CheckoutInvoiceFailed', unit=MetricUnit.Count, value=1)
            raise

        metrics.add_metric(name='CheckoutInvoiced', unit=MetricUnit.Count, value=1)
        logger.info('Checkout invoiced', extra={
            'reference': checkout.reference,
            'customer_id': customer_id,
            'invoice_id': saved.invoice_id,
            'order_status': order.order_status.value,
        })
        return CheckoutInvoiceResponse(
            reference=checkout.reference,
            customer_id=customer_id,
            customer_created=created,
            invoice_id=saved.invoice_id,
            order_status=order.order_status.value,
        )
