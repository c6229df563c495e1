"""
Unit tests for checkout creation and callback reconciliation.
"""

import json

import pytest

from member_services.clients.document_store import DocumentStoreClient
from member_services.clients.errors import ClientUnavailableError
from member_services.clients.payment import PaymentClient
from member_services.handlers.utils.errors import UnauthorizedRequestError
from member_services.logic.checkout import CheckoutService
from member_services.models.input import CheckoutCallbackRequest, CheckoutRequest

REFERENCE = '0f1e2d3c4b5a69788796a5b4c3d2e1f0'


@pytest.fixture
def payment(http_client) -> PaymentClient:
    return PaymentClient(
        client_id='vipps-client',
        client_secret='vipps-secret',
        subscription_key='vipps-subscription',
        merchant_serial_number='123456',
        test_mode=True,
        http_client=http_client,
    )


@pytest.fixture
def user_store(http_client) -> DocumentStoreClient:
    return DocumentStoreClient('https://appwrite.test/v1', 'project-1', user_jwt='user-jwt', http_client=http_client)


def _record(**overrides):
    record = {
        '$id': REFERENCE,
        'reference': REFERENCE,
        'amount': 35000,
        'status': 'pending',
        'user_id': 'user-1',
        'callback_token': 'callback-secret',
    }
    record.update(overrides)
    return record


def _session_info(state='PaymentSuccessful', paid=35000):
    return {
        'reference': REFERENCE,
        'sessionId': 'session-1',
        'sessionState': state,
        'paymentMethod': 'Wallet',
        'paymentDetails': {'amount': {'currency': 'NOK', 'value': paid}, 'state': 'AUTHORIZED'},
    }


class TestCreateCheckout:
    def test_session_and_record(self, payment, user_store, backend):
        backend.route('GET', '/account', {'$id': 'user-1', 'email': 'kari@example.com'})
        backend.route('POST', '/checkout/v3/session', {
            'token': 'vipps-token',
            'checkoutFrontendUrl': 'https://checkout.test/session',
            'pollingUrl': 'https://apitest.vipps.no/checkout/v3/session/x',
        })
        backend.route('POST', '/collections/checkout/documents', {'$id': 'x'})
        request = CheckoutRequest.model_validate({
            'amount': 35000, 'description': 'Medlemskap', 'returnUrl': 'https://app.test/done', 'membershipId': 'm-1',
        })

        response = CheckoutService(payment, user_store).create_checkout(request, 'https://api.test/checkout/callback')

        assert response.token == 'vipps-token'
        assert len(response.reference) == 32
        sent = json.loads(backend.sent('POST', '/checkout/v3/session')[0].content)
        assert sent['transaction']['amount'] == {'currency': 'NOK', 'value': 35000}
        assert sent['transaction']['reference'] == response.reference
        assert sent['merchantInfo']['callbackUrl'] == 'https://api.test/checkout/callback'

        stored = json.loads(backend.sent('POST', '/collections/checkout/documents')[0].content)
        assert stored['documentId'] == response.reference
        assert stored['data']['user_id'] == 'user-1'
        assert stored['data']['status'] == 'pending'
        assert stored['data']['callback_token'] == sent['merchantInfo']['callbackAuthorizationToken']
        assert backend.sent('GET', '/account')[0].headers['X-Appwrite-JWT'] == 'user-jwt'


class TestReconcileCallback:
    def _callback(self):
        return CheckoutCallbackRequest.model_validate({'reference': REFERENCE, 'sessionState': 'PaymentSuccessful'})

    def test_successful_payment_activates_membership(self, payment, document_store, backend):
        backend.route('GET', f'/collections/checkout/documents/{REFERENCE}', _record())
        backend.route('GET', f'/checkout/v3/session/{REFERENCE}', _session_info())
        backend.route('PATCH', '/documents/', {})

        response = CheckoutService(payment, document_store).reconcile_callback(self._callback(), 'callback-secret')

        assert response.status == 'PaymentSuccessful'
        assert response.membership_activated is True
        user_patch = backend.sent('PATCH', '/collections/user/documents/user-1')[0]
        assert json.loads(user_patch.content) == {'data': {'student_id': {'isMember': True}}}
        checkout_patch = json.loads(backend.sent('PATCH', f'/collections/checkout/documents/{REFERENCE}')[0].content)
        assert checkout_patch['data'] == {'status': 'PaymentSuccessful', 'payment_method': 'Wallet', 'paid_amount': 35000}

    def test_wrong_token_is_rejected_before_asking_the_provider(self, payment, document_store, backend):
        backend.route('GET', f'/collections/checkout/documents/{REFERENCE}', _record())

        with pytest.raises(UnauthorizedRequestError):
            CheckoutService(payment, document_store).reconcile_callback(self._callback(), 'forged')

        assert backend.sent('GET', '/checkout/v3/session') == []
        assert backend.sent('PATCH', '/documents/') == []

    def test_amount_mismatch_does_not_activate(self, payment, document_store, backend):
        backend.route('GET', f'/collections/checkout/documents/{REFERENCE}', _record())
        backend.route('GET', f'/checkout/v3/session/{REFERENCE}', _session_info(paid=100))
        backend.route('PATCH', '/documents/', {})

        response = CheckoutService(payment, document_store).reconcile_callback(self._callback(), 'callback-secret')

        assert response.status == 'amount_mismatch'
        assert response.membership_activated is False
        assert backend.sent('PATCH', '/collections/user/documents') == []

    def test_terminated_session_keeps_provider_state(self, payment, document_store, backend):
        backend.route('GET', f'/collections/checkout/documents/{REFERENCE}', _record())
        backend.route('GET', f'/checkout/v3/session/{REFERENCE}', _session_info(state='PaymentTerminated'))
        backend.route('PATCH', '/documents/', {})

        response = CheckoutService(payment, document_store).reconcile_callback(self._callback(), 'callback-secret')

        assert response.status == 'PaymentTerminated'
        assert response.membership_activated is False

    def test_provider_failure_marks_the_record_as_errored(self, payment, document_store, backend):
        backend.route('GET', f'/collections/checkout/documents/{REFERENCE}', _record())
        backend.route('GET', f'/checkout/v3/session/{REFERENCE}', {'title': 'Service Unavailable'}, status=503)
        backend.route('PATCH', '/documents/', {})

        with pytest.raises(ClientUnavailableError):
            CheckoutService(payment, document_store).reconcile_callback(self._callback(), 'callback-secret')

        checkout_patch = backend.sent('PATCH', f'/collections/checkout/documents/{REFERENCE}')[0]
        assert json.loads(checkout_patch.content) == {'data': {'status': 'error'}}
        assert backend.sent('PATCH', '/collections/user/documents') == []
