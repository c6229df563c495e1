"""
Environment variable models for type-safe configuration.

One model per concern; a handler reads only the models for the systems it
talks to. ``get_environment_variables`` validates and caches each model.
"""

from typing import Annotated, Optional

from aws_lambda_env_modeler import BaseModel as BaseEnvModel, get_environment_variables
from pydantic import Field, HttpUrl


class ErpEnvVars(BaseEnvModel):
    """Credentials for the ERP web services, inline or via Secrets Manager."""

    # When set, credentials are read from this secret (JSON with application_id, username, password)
    ERP_SECRET_NAME: Annotated[Optional[str], Field(
        default=None,
        description='Secrets Manager secret holding the ERP credentials'
    )] = None

    ERP_APPLICATION_ID: Annotated[str, Field(default='', description='ERP application id')] = ''
    ERP_USERNAME: Annotated[str, Field(default='', description='ERP API user')] = ''
    ERP_PASSWORD: Annotated[str, Field(default='', description='ERP API password', repr=False)] = ''

    ERP_TIMEOUT_SECONDS: Annotated[float, Field(
        default=30.0,
        description='Upper bound for a single ERP HTTP call',
        gt=0,
        le=300
    )] = 30.0


class DocumentStoreEnvVars(BaseEnvModel):
    """Document store and file storage (Appwrite)."""

    APPWRITE_ENDPOINT: Annotated[HttpUrl, Field(description='Appwrite API endpoint, including /v1')]
    APPWRITE_PROJECT_ID: Annotated[str, Field(min_length=1, description='Appwrite project id')]
    APPWRITE_API_KEY: Annotated[str, Field(min_length=1, description='Server API key', repr=False)]

    APPWRITE_DATABASE_ID: Annotated[str, Field(
        default='app',
        description='Database holding the app collections'
    )] = 'app'

    ERP_DATABASE_ID: Annotated[str, Field(
        default='24so',
        description='Database holding ERP mirror collections'
    )] = '24so'


class MembershipOrderEnvVars(BaseEnvModel):
    """Feature flags and webhook for membership orders coming from the shop."""

    SHOULD_INVOICE: Annotated[bool, Field(
        default=False,
        description='Create invoices as Invoiced instead of Draft'
    )] = False

    SHOULD_CREATE_CUSTOMER: Annotated[bool, Field(
        default=False,
        description='Create missing ERP customers instead of stopping'
    )] = False

    STATUS_WEBHOOK_URL: Annotated[Optional[HttpUrl], Field(
        default=None,
        description='Power Automate flow receiving order status updates'
    )] = None


class PaymentEnvVars(BaseEnvModel):
    """Payment provider (Vipps MobilePay Checkout)."""

    VIPPS_CLIENT_ID: Annotated[str, Field(min_length=1)]
    VIPPS_CLIENT_SECRET: Annotated[str, Field(min_length=1, repr=False)]
    VIPPS_SUBSCRIPTION_KEY: Annotated[str, Field(min_length=1, repr=False)]
    VIPPS_MERCHANT_SERIAL_NUMBER: Annotated[str, Field(min_length=1)]
    VIPPS_CALLBACK_URL: Annotated[HttpUrl, Field(description='Public URL of the checkout callback function')]

    VIPPS_TEST_MODE: Annotated[bool, Field(default=False, description='Use the provider test environment')] = False


class StorefrontEnvVars(BaseEnvModel):
    """Storefront (WooCommerce REST API)."""

    WC_CONSUMER_KEY: Annotated[str, Field(min_length=1)]
    WC_CONSUMER_SECRET: Annotated[str, Field(min_length=1, repr=False)]

    WC_STORE_URL: Annotated[str, Field(
        default='https://biso.no/wp-json/wc/v3',
        description='WooCommerce REST base URL'
    )] = 'https://biso.no/wp-json/wc/v3'


class DirectoryEnvVars(BaseEnvModel):
    """Directory (Microsoft Graph, client credentials)."""

    AZURE_TENANT_ID: Annotated[str, Field(min_length=1)]
    AZURE_CLIENT_ID: Annotated[str, Field(min_length=1)]
    AZURE_CLIENT_SECRET: Annotated[str, Field(min_length=1, repr=False)]


class LanguageModelEnvVars(BaseEnvModel):
    """Language model (OpenAI)."""

    OPENAI_API_KEY: Annotated[str, Field(min_length=1, repr=False)]

    OPENAI_CHAT_MODEL: Annotated[str, Field(
        default='gpt-4o-mini',
        description='Chat model used for JSON completions'
    )] = 'gpt-4o-mini'


class ExpenseFlowEnvVars(BaseEnvModel):
    """Expense submission flow (Power Automate)."""

    POWERAUTOMATE_URL: Annotated[HttpUrl, Field(description='HTTP trigger of the expense flow')]


def get_erp_env_vars() -> ErpEnvVars:
    return get_environment_variables(model=ErpEnvVars)


def get_document_store_env_vars() -> DocumentStoreEnvVars:
    return get_environment_variables(model=DocumentStoreEnvVars)


def get_membership_order_env_vars() -> MembershipOrderEnvVars:
    return get_environment_variables(model=MembershipOrderEnvVars)


def get_payment_env_vars() -> PaymentEnvVars:
    return get_environment_variables(model=PaymentEnvVars)


def get_storefront_env_vars() -> StorefrontEnvVars:
    return get_environment_variables(model=StorefrontEnvVars)


def get_directory_env_vars() -> DirectoryEnvVars:
    return get_environment_variables(model=DirectoryEnvVars)


def get_language_model_env_vars() -> LanguageModelEnvVars:
    return get_environment_variables(model=LanguageModelEnvVars)


def get_expense_flow_env_vars() -> ExpenseFlowEnvVars:
    return get_environment_variables(model=ExpenseFlowEnvVars)
