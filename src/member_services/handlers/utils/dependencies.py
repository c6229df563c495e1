"""
Per-invocation construction of the external clients.

Nothing here is created at import time. A handler opens one
:class:`Dependencies` per request, asks it for the clients it needs and closes
it when the response is ready, so credentials, sessions and sockets never
outlive the invocation.
"""

from typing import Any, Callable, Optional, TypeVar

import httpx
from aws_lambda_powertools.utilities import parameters
from aws_lambda_powertools.utilities.typing import LambdaContext
from openai import OpenAI

from member_services.clients.directory import DirectoryClient
from member_services.clients.document_store import DocumentStoreClient
from member_services.clients.exchange_rates import ExchangeRateClient
from member_services.clients.expense_flow import ExpenseFlowClient
from member_services.clients.llm import LanguageModelClient
from member_services.clients.notifications import StatusNotifier
from member_services.clients.payment import PaymentClient
from member_services.clients.storefront import StorefrontClient
from member_services.erp import ErpClient, ErpCredentials
from member_services.handlers.models.env_vars import (
    ErpEnvVars,
    MembershipOrderEnvVars,
    get_directory_env_vars,
    get_document_store_env_vars,
    get_erp_env_vars,
    get_expense_flow_env_vars,
    get_language_model_env_vars,
    get_membership_order_env_vars,
    get_payment_env_vars,
    get_storefront_env_vars,
)
from member_services.handlers.utils.errors import ConfigurationError
from member_services.handlers.utils.observability import logger, tracer

T = TypeVar('T')

DEFAULT_CALL_TIMEOUT_SECONDS = 15.0
# leave room to build and return the response after the last remote call
RESPONSE_MARGIN_SECONDS = 1.0
MIN_CALL_TIMEOUT_SECONDS = 1.0


def create_http_client() -> httpx.Client:
    return httpx.Client()


def remaining_timeout(context: Optional[LambdaContext], default: float = DEFAULT_CALL_TIMEOUT_SECONDS) -> float:
    """
    Timeout for the next remote call, bounded by the invocation's remaining time.

    Args:
        context: Lambda context, or None outside Lambda
        default: configured upper bound for one call

    Returns:
        Seconds to allow the call, never below one second
    """
    if context is None or not hasattr(context, 'get_remaining_time_in_millis'):
        return default
    remaining = context.get_remaining_time_in_millis() / 1000 - RESPONSE_MARGIN_SECONDS
    return max(MIN_CALL_TIMEOUT_SECONDS, min(default, remaining))


def _load_config(getter: Callable[[], T]) -> T:
    try:
        return getter()
    except ValueError as exc:
        raise ConfigurationError(f'Invalid or missing environment configuration: {exc}') from exc


@tracer.capture_method(capture_response=False)
def resolve_erp_credentials(env: ErpEnvVars) -> ErpCredentials:
    """ERP credentials from Secrets Manager when a secret is configured, else from the environment."""
    if env.ERP_SECRET_NAME:
        secret: Any = parameters.get_secret(env.ERP_SECRET_NAME, transform='json', force_fetch=True)
        if not isinstance(secret, dict):
            raise ConfigurationError(f'Secret {env.ERP_SECRET_NAME} is not a JSON object')
        values = (secret.get('application_id'), secret.get('username'), secret.get('password'))
        source = 'secrets_manager'
    else:
        values = (env.ERP_APPLICATION_ID, env.ERP_USERNAME, env.ERP_PASSWORD)
        source = 'environment'

    if not all(values):
        raise ConfigurationError(f'ERP credentials are incomplete ({source})')

    logger.debug('Resolved ERP credentials', extra={'credential_source': source})
    application_id, username, password = values
    return ErpCredentials(application_id=application_id, username=username, password=password)


class Dependencies:
    """Factory for the clients one invocation needs, sharing one HTTP connection pool."""

    def __init__(self, context: Optional[LambdaContext] = None, http_client: Optional[httpx.Client] = None):
        self.context = context
        self._owns_http_client = http_client is None
        self.http = http_client or create_http_client()

    def close(self) -> None:
        if self._owns_http_client:
            self.http.close()

    def __enter__(self) -> 'Dependencies':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def timeout(self, default: float = DEFAULT_CALL_TIMEOUT_SECONDS) -> float:
        return remaining_timeout(self.context, default)

    def erp(self) -> ErpClient:
        env = _load_config(get_erp_env_vars)
        return ErpClient(
            resolve_erp_credentials(env),
            http_client=self.http,
            timeout=self.timeout(env.ERP_TIMEOUT_SECONDS),
        )

    def document_store(self, user_jwt: Optional[str] = None) -> DocumentStoreClient:
        """Admin-scoped client, or session-scoped when a user JWT is given."""
        env = _load_config(get_document_store_env_vars)
        return DocumentStoreClient(
            endpoint=str(env.APPWRITE_ENDPOINT),
            project_id=env.APPWRITE_PROJECT_ID,
            api_key=None if user_jwt else env.APPWRITE_API_KEY,
            user_jwt=user_jwt,
            timeout=self.timeout(),
            http_client=self.http,
        )

    def database_ids(self) -> tuple[str, str]:
        """(app database, ERP mirror database)."""
        env = _load_config(get_document_store_env_vars)
        return env.APPWRITE_DATABASE_ID, env.ERP_DATABASE_ID

    def membership_flags(self) -> MembershipOrderEnvVars:
        return _load_config(get_membership_order_env_vars)

    def status_notifier(self) -> Optional[StatusNotifier]:
        env = self.membership_flags()
        if env.STATUS_WEBHOOK_URL is None:
            return None
        return StatusNotifier(str(env.STATUS_WEBHOOK_URL), timeout=self.timeout(), http_client=self.http)

    def payment(self) -> PaymentClient:
        env = _load_config(get_payment_env_vars)
        return PaymentClient(
            client_id=env.VIPPS_CLIENT_ID,
            client_secret=env.VIPPS_CLIENT_SECRET,
            subscription_key=env.VIPPS_SUBSCRIPTION_KEY,
            merchant_serial_number=env.VIPPS_MERCHANT_SERIAL_NUMBER,
            test_mode=env.VIPPS_TEST_MODE,
            timeout=self.timeout(),
            http_client=self.http,
        )

    def payment_callback_url(self) -> str:
        return str(_load_config(get_payment_env_vars).VIPPS_CALLBACK_URL)

    def storefront(self) -> StorefrontClient:
        env = _load_config(get_storefront_env_vars)
        return StorefrontClient(
            consumer_key=env.WC_CONSUMER_KEY,
            consumer_secret=env.WC_CONSUMER_SECRET,
            base_url=env.WC_STORE_URL,
            timeout=self.timeout(),
            http_client=self.http,
        )

    def directory(self) -> DirectoryClient:
        env = _load_config(get_directory_env_vars)
        return DirectoryClient(
            tenant_id=env.AZURE_TENANT_ID,
            client_id=env.AZURE_CLIENT_ID,
            client_secret=env.AZURE_CLIENT_SECRET,
            timeout=self.timeout(),
            http_client=self.http,
        )

    def language_model(self) -> LanguageModelClient:
        env = _load_config(get_language_model_env_vars)
        timeout = self.timeout(30.0)
        openai_client = OpenAI(
            api_key=env.OPENAI_API_KEY,
            timeout=timeout,
            max_retries=0,
            http_client=self.http,
        )
        return LanguageModelClient(env.OPENAI_API_KEY, chat_model=env.OPENAI_CHAT_MODEL, client=openai_client)

    def exchange_rates(self) -> ExchangeRateClient:
        return ExchangeRateClient(timeout=self.timeout(), http_client=self.http)

    def expense_flow(self) -> ExpenseFlowClient:
        env = _load_config(get_expense_flow_env_vars)
        return ExpenseFlowClient(str(env.POWERAUTOMATE_URL), timeout=self.timeout(60.0), http_client=self.http)
