"""
Language model helpers: translation, expense descriptions and receipt analysis.

Each helper asks for a JSON object and validates the fields it reads; a
completion missing them is treated as a failure of the model service.
"""

import json
from datetime import date
from typing import Any, Optional

from member_services.clients.errors import ClientError, ClientUnavailableError
from member_services.clients.exchange_rates import BASE_CURRENCY, ExchangeRateClient
from member_services.clients.llm import SERVICE_NAME, LanguageModelClient
from member_services.handlers.utils.observability import logger, tracer
from member_services.models.input import ExpenseDescriptionRequest, TranslateRequest
from member_services.models.output import (
    ExpenseDescriptionResponse,
    ReceiptAnalysisResponse,
    TranslateResponse,
)

TRANSLATE_PROMPT = (
    'You are a helpful assistant that translates text. You are provided an object containing three '
    'properties: source language, target language, and the text requiring translation. Your task is to '
    'translate the content and return it back as a JSON object in the exact structure it was sent to you. '
    'Never provide a description of the result. You are only to return the content itself.'
)

DESCRIPTION_PROMPT = (
    'You are a helpful assistant designed to output JSON. In the following message, you are presented with '
    'a stringified version of an object. This object contains 2 fields: descriptions and event. Your task is '
    'to determine a suitable description for an entire expense based on all the provided descriptions and '
    'the optional event name if present. Output the result as JSON with the field: description.'
)

RECEIPT_PROMPT = (
    'You are a helpful assistant designed to output JSON. You will analyze receipt text and output a JSON '
    'object with:\n'
    '- date in YYYY-MM-DD format\n'
    '- amount as a number\n'
    '- description (max 10 words)\n'
    '- currency (3-letter code, e.g., NOK, USD, EUR)\n'
    '- confidence (0-1 indicating how confident you are in the extraction)\n\n'
    'Pay special attention to currency symbols (€, $, £, kr) and currency codes to determine the correct '
    'currency. Default to NOK if no currency is clearly indicated and the text appears to be Norwegian.'
)


def _required_text(completion: dict[str, Any], field: str) -> str:
    value = completion.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ClientUnavailableError(SERVICE_NAME, f'completion has no {field}')
    return value


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.replace(' ', '').replace(',', '.'))
        except ValueError:
            return None
    return None


def _iso_date(value: Any) -> Optional[date]:
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


class AssistantService:
    def __init__(self, language_model: LanguageModelClient, exchange_rates: Optional[ExchangeRateClient] = None):
        self.llm = language_model
        self.exchange_rates = exchange_rates

    @tracer.capture_method(capture_response=False)
    def translate(self, request: TranslateRequest) -> TranslateResponse:
        completion = self.llm.complete_json(TRANSLATE_PROMPT, request.model_dump_json())
        return TranslateResponse(translated_text=_required_text(completion, 'text'))

    @tracer.capture_method(capture_response=False)
    def describe_expense(self, request: ExpenseDescriptionRequest) -> ExpenseDescriptionResponse:
        payload = json.dumps({'descriptions': request.descriptions, 'event': request.event}, ensure_ascii=False)
        completion = self.llm.complete_json(DESCRIPTION_PROMPT, payload)
        return ExpenseDescriptionResponse(
            description=_required_text(completion, 'description'),
            date=completion.get('date') if isinstance(completion.get('date'), str) else None,
            amount=_number(completion.get('amount')),
        )

    def _rate(self, on: date, currency: str) -> Optional[float]:
        if self.exchange_rates is None:
            return None
        try:
            return self.exchange_rates.rate_to_nok(on, currency)
        except ClientError as exc:
            logger.warning('Exchange rate lookup failed', extra={
                'currency': currency,
                'date': on.isoformat(),
                'error': exc.message,
            })
            return None

    @tracer.capture_method(capture_response=False)
    def analyze_receipt(self, text: str) -> ReceiptAnalysisResponse:
        """
        Extract date, amount, description and currency from receipt text.

        Amounts in another currency are converted with the rate published for
        the receipt date; without a rate the NOK amount is left empty.
        """
        completion = self.llm.complete_json(RECEIPT_PROMPT, text)
        currency = str(completion.get('currency') or BASE_CURRENCY).strip().upper() or BASE_CURRENCY
        amount = _number(completion.get('amount'))
        receipt_date = completion.get('date') if isinstance(completion.get('date'), str) else None

        analysis = ReceiptAnalysisResponse(
            date=receipt_date,
            amount=amount,
            description=completion.get('description') if isinstance(completion.get('description'), str) else None,
            currency=currency,
            confidence=_number(completion.get('confidence')),
        )

        parsed_date = _iso_date(receipt_date)
        if currency != BASE_CURRENCY and parsed_date is not None:
            rate = self._rate(parsed_date, currency)
            analysis.exchange_rate = rate
            analysis.nok_amount = round(amount * rate, 2) if rate is not None and amount is not None else None
            logger.info('Converted receipt amount', extra={'currency': currency, 'rate': rate})
        return analysis
