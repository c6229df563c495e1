"""
Membership payments through the payment provider's hosted checkout.

Creating a checkout stores a local record keyed by our reference, holding the
expected amount and the authorization token the provider echoes on its
callback. The callback is trusted only when it carries that token, and the
outcome is read back from the provider rather than from the callback body.
"""

import hmac
import secrets
import uuid
from typing import Any, Optional

from aws_lambda_powertools.metrics import MetricUnit

from member_services.clients.document_store import DocumentStoreClient
from member_services.clients.errors import ClientError
from member_services.clients.payment import CheckoutSessionInfo, PaymentClient
from member_services.handlers.utils.errors import ErrorContext, UnauthorizedRequestError
from member_services.handlers.utils.observability import logger, metrics, tracer
from member_services.models.input import CheckoutCallbackRequest, CheckoutRequest
from member_services.models.output import CheckoutCallbackResponse, CheckoutResponse

CHECKOUT_COLLECTION = 'checkout'
USER_COLLECTION = 'user'

STATUS_PENDING = 'pending'
STATUS_AMOUNT_MISMATCH = 'amount_mismatch'
STATUS_ERROR = 'error'
PAYMENT_SUCCESSFUL = 'PaymentSuccessful'


def new_reference() -> str:
    """Reference usable both by the provider and as a document id (max 36 chars)."""
    return uuid.uuid4().hex


class CheckoutService:
    def __init__(self, payment_client: PaymentClient, document_store: DocumentStoreClient, database_id: str = 'app'):
        self.payment = payment_client
        self.store = document_store
        self.database_id = database_id

    @tracer.capture_method(capture_response=False)
    def create_checkout(
        self,
        request: CheckoutRequest,
        callback_url: str,
        context: Optional[ErrorContext] = None,
    ) -> CheckoutResponse:
        """
        Start a checkout and record it for the signed-in user.

        The document store client must be scoped to the user's session so the
        record is created with that user's permissions.
        """
        reference = new_reference()
        callback_token = secrets.token_urlsafe(32)
        account = self.store.get_account()

        session = self.payment.create_checkout(
            reference=reference,
            amount=request.amount,
            description=request.description,
            return_url=request.return_url,
            callback_url=callback_url,
            callback_authorization_token=callback_token,
        )

        self.store.create_document(self.database_id, CHECKOUT_COLLECTION, reference, {
            'reference': reference,
            'amount': request.amount,
            'description': request.description,
            'membership': request.membership_id,
            'membership_id': request.membership_id,
            'status': STATUS_PENDING,
            'user_id': account.get('$id'),
            'callback_token': callback_token,
        })

        metrics.add_metric(name='CheckoutCreated', unit=MetricUnit.Count, value=1)
        logger.info('Checkout created', extra={'reference': reference, 'amount': request.amount})
        return CheckoutResponse(
            reference=reference,
            token=session.token,
            checkout_frontend_url=session.checkout_frontend_url,
            polling_url=session.polling_url,
        )

    def _verify_token(self, record: dict[str, Any], authorization: Optional[str], context: Optional[ErrorContext]):
        expected = record.get('callback_token') or ''
        if not expected or not authorization or not hmac.compare_digest(expected, authorization.strip()):
            metrics.add_metric(name='CheckoutCallbackRejected', unit=MetricUnit.Count, value=1)
            raise UnauthorizedRequestError('Callback authorization token does not match', context=context)

    @staticmethod
    def _outcome(record: dict[str, Any], info: CheckoutSessionInfo) -> str:
        if info.session_state != PAYMENT_SUCCESSFUL:
            return info.session_state
        expected = record.get('amount')
        if expected is not None and info.paid_amount is not None and int(expected) != info.paid_amount:
            return STATUS_AMOUNT_MISMATCH
        return PAYMENT_SUCCESSFUL

    @tracer.capture_method(capture_response=False)
    def reconcile_callback(
        self,
        request: CheckoutCallbackRequest,
        authorization: Optional[str],
        context: Optional[ErrorContext] = None,
    ) -> CheckoutCallbackResponse:
        """
        Reconcile a provider callback with the local checkout record.

        Args:
            request: callback body; only the reference is trusted
            authorization: Authorization header of the callback
            context: error context for tracing

        Raises:
            UnauthorizedRequestError: the token does not match the stored one
            ClientError: the provider lookup failed; the record is marked as errored first
        """
        reference = request.reference
        tracer.put_annotation('checkout_reference', reference)

        record = self.store.get_document(self.database_id, CHECKOUT_COLLECTION, reference)
        self._verify_token(record, authorization, context)

        try:
            info = self.payment.get_checkout(reference)
        except ClientError as exc:
            logger.warning('Checkout lookup failed', extra={'reference': reference, 'error': exc.message})
            self.store.update_document(self.database_id, CHECKOUT_COLLECTION, reference, {
                'status': STATUS_ERROR,
            })
            raise

        status = self._outcome(record, info)

        activated = False
        if status == PAYMENT_SUCCESSFUL and record.get('user_id'):
            self.store.update_document(self.database_id, USER_COLLECTION, record['user_id'], {
                'student_id': {'isMember': True},
            })
            activated = True
            metrics.add_metric(name='MembershipActivated', unit=MetricUnit.Count, value=1)

        self.store.update_document(self.database_id, CHECKOUT_COLLECTION, reference, {
            'status': status,
            'payment_method': info.payment_method,
            'paid_amount': info.paid_amount,
        })

        if status == STATUS_AMOUNT_MISMATCH:
            logger.warning('Paid amount differs from checkout amount', extra={
                'reference': reference,
                'expected_amount': record.get('amount'),
                'paid_amount': info.paid_amount,
            })
        logger.info('Checkout reconciled', extra={'reference': reference, 'status': status, 'activated': activated})
        return CheckoutCallbackResponse(
            reference=reference,
            status=status,
            session_state=info.session_state,
            membership_activated=activated,
        )
