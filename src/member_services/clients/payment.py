"""Payment provider client (Vipps MobilePay Checkout API v3)."""

from typing import Any, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from member_services.clients.base import DEFAULT_TIMEOUT_SECONDS, HttpServiceClient
from member_services.clients.errors import ClientUnavailableError

PRODUCTION_URL = 'https://api.vipps.no'
TEST_URL = 'https://apitest.vipps.no'
CURRENCY = 'NOK'


class CheckoutSession(BaseModel):
    """What the provider returns when a checkout session is created."""

    model_config = ConfigDict(populate_by_name=True, extra='allow')

    token: Optional[str] = None
    checkout_frontend_url: Optional[str] = Field(default=None, alias='checkoutFrontendUrl')
    polling_url: Optional[str] = Field(default=None, alias='pollingUrl')


class CheckoutSessionInfo(BaseModel):
    """Current state of a checkout session."""

    model_config = ConfigDict(populate_by_name=True, extra='allow')

    reference: str
    session_id: Optional[str] = Field(default=None, alias='sessionId')
    session_state: str = Field(alias='sessionState')
    payment_method: Optional[str] = Field(default=None, alias='paymentMethod')
    payment_details: Optional[dict[str, Any]] = Field(default=None, alias='paymentDetails')

    @property
    def paid_amount(self) -> Optional[int]:
        """Amount in minor units, if the provider reports one."""
        amount = (self.payment_details or {}).get('amount') or {}
        value = amount.get('value')
        return int(value) if value is not None else None


class PaymentClient(HttpServiceClient):
    service_name = 'Vipps'

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        subscription_key: str,
        merchant_serial_number: str,
        test_mode: bool = False,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.Client] = None,
    ):
        headers = {
            'client_id': client_id,
            'client_secret': client_secret,
            'Ocp-Apim-Subscription-Key': subscription_key,
            'Merchant-Serial-Number': merchant_serial_number,
            'Vipps-System-Name': 'member-services',
            'Content-Type': 'application/json',
        }
        super().__init__(TEST_URL if test_mode else PRODUCTION_URL, headers=headers, timeout=timeout,
                         http_client=http_client)

    def create_checkout(
        self,
        reference: str,
        amount: int,
        description: str,
        return_url: str,
        callback_url: str,
        callback_authorization_token: str,
    ) -> CheckoutSession:
        """
        Create a checkout session.

        Args:
            reference: our unique reference, reused as the local checkout document id
            amount: amount in minor units (øre)
            description: text shown to the payer
            return_url: where the payer is sent afterwards
            callback_url: where the provider posts the outcome
            callback_authorization_token: echoed back in the callback Authorization header
        """
        body = {
            'merchantInfo': {
                'callbackUrl': callback_url,
                'returnUrl': return_url,
                'callbackAuthorizationToken': callback_authorization_token,
            },
            'transaction': {
                'reference': reference,
                'amount': {'currency': CURRENCY, 'value': amount},
                'paymentDescription': description,
            },
        }
        return CheckoutSession.model_validate(self.request_json('POST', 'checkout/v3/session', json=body) or {})

    def get_checkout(self, reference: str) -> CheckoutSessionInfo:
        payload = self.request_json('GET', f'checkout/v3/session/{reference}')
        try:
            return CheckoutSessionInfo.model_validate(payload)
        except ValidationError as exc:
            raise ClientUnavailableError(self.service_name, f'malformed session info for {reference}') from exc
