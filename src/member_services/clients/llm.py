"""Language model client (OpenAI chat completions in JSON mode)."""

import json
from typing import Any, Optional

from openai import APIConnectionError, APIStatusError, APITimeoutError, AuthenticationError, OpenAI

from member_services.clients.errors import ClientAuthenticationError, ClientRequestError, ClientUnavailableError

DEFAULT_CHAT_MODEL = 'gpt-4o-mini'
SERVICE_NAME = 'OpenAI'


class LanguageModelClient:
    """
    Thin wrapper over the OpenAI SDK returning parsed JSON objects.

    The SDK's own retries are disabled; a failed completion surfaces as a
    client error and the caller decides what to return.
    """

    def __init__(
        self,
        api_key: str,
        chat_model: str = DEFAULT_CHAT_MODEL,
        timeout: float = 30.0,
        client: Optional[OpenAI] = None,
    ):
        self.chat_model = chat_model
        self._client = client or OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def complete_json(self, system_prompt: str, user_content: str, temperature: float = 0.0) -> dict[str, Any]:
        """
        Run one chat completion with ``response_format=json_object``.

        Returns:
            The decoded JSON object the model produced
        """
        try:
            response = self._client.chat.completions.create(
                model=self.chat_model,
                messages=[
                    {'role': 'system', 'content': system_prompt},
                    {'role': 'user', 'content': user_content},
                ],
                response_format={'type': 'json_object'},
                temperature=temperature,
            )
        except AuthenticationError as exc:
            raise ClientAuthenticationError(SERVICE_NAME, 'API key rejected', exc.status_code) from exc
        except (APITimeoutError, APIConnectionError) as exc:
            raise ClientUnavailableError(SERVICE_NAME, str(exc)) from exc
        except APIStatusError as exc:
            if exc.status_code < 500:
                raise ClientRequestError(SERVICE_NAME, exc.message, exc.status_code) from exc
            raise ClientUnavailableError(SERVICE_NAME, exc.message, exc.status_code) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ClientUnavailableError(SERVICE_NAME, 'completion contained no content')
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ClientUnavailableError(SERVICE_NAME, 'completion was not valid JSON') from exc
        if not isinstance(parsed, dict):
            raise ClientUnavailableError(SERVICE_NAME, 'completion was not a JSON object')
        return parsed
