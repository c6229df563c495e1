"""
Request body parsing shared by every handler.

Callers send JSON, form-encoded fields, base64-encoded JSON, or a bare scalar
(a student number posted as plain text). All of them come out of
:func:`parse_body` as a dict, list or scalar.
"""

import base64
import binascii
import json
from typing import Any, Optional, TypeVar
from urllib.parse import parse_qsl

from aws_lambda_powertools.utilities.data_classes import APIGatewayProxyEvent
from pydantic import BaseModel

from member_services.handlers.utils.errors import ErrorContext, ValidationError

ModelT = TypeVar('ModelT', bound=BaseModel)

FORM_CONTENT_TYPE = 'application/x-www-form-urlencoded'


def header_value(event: APIGatewayProxyEvent, name: str) -> Optional[str]:
    """Case-insensitive header lookup."""
    wanted = name.lower()
    for key, value in (event.headers or {}).items():
        if key.lower() == wanted:
            return value
    return None


def bearer_token(event: APIGatewayProxyEvent) -> Optional[str]:
    authorization = header_value(event, 'Authorization') or ''
    scheme, _, token = authorization.partition(' ')
    if scheme.lower() == 'bearer' and token.strip():
        return token.strip()
    return None


def _try_json(text: str) -> tuple[bool, Any]:
    try:
        return True, json.loads(text)
    except ValueError:
        return False, None


def _try_base64_json(text: str) -> tuple[bool, Any]:
    try:
        decoded = base64.b64decode(text, validate=True).decode('utf-8')
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return False, None
    parsed, value = _try_json(decoded)
    if parsed and isinstance(value, (dict, list)):
        return True, value
    return False, None


def _looks_like_form(text: str) -> bool:
    return '=' in text and not text.lstrip().startswith(('{', '['))


def parse_body(event: APIGatewayProxyEvent) -> Any:
    """
    Decode the request body whatever encoding the caller chose.

    Returns:
        {} for an empty body, the decoded JSON value, the form fields as a dict,
        or the stripped text when nothing else matches
    """
    raw = event.decoded_body
    if raw is None:
        return {}
    if isinstance(raw, bytes):
        raw = raw.decode('utf-8', errors='replace')
    text = raw.strip()
    if not text:
        return {}

    content_type = (header_value(event, 'Content-Type') or '').lower()
    if FORM_CONTENT_TYPE in content_type:
        return dict(parse_qsl(text, keep_blank_values=True))

    parsed, value = _try_json(text)
    if parsed:
        return value

    parsed, value = _try_base64_json(text)
    if parsed:
        return value

    if _looks_like_form(text):
        return dict(parse_qsl(text, keep_blank_values=True))

    return text


def parse_request(
    event: APIGatewayProxyEvent,
    model: type[ModelT],
    context: Optional[ErrorContext] = None,
) -> ModelT:
    """Parse the body into ``model``; a non-object body is a validation error."""
    body = parse_body(event)
    if not isinstance(body, dict):
        raise ValidationError(message='Request body must be a JSON object', context=context)
    return model.model_validate(body)
