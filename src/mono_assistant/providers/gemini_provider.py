"""
Google Gemini provider implementation

Gemini does not speak the OpenAI wire format, so this adapter talks to the
native ``generateContent`` endpoint directly with httpx.
"""

from typing import Any

import httpx

from mono_assistant.providers.base import (
    ProviderAdapter,
    map_status_error,
    parse_retry_after,
)
from mono_assistant.providers.credentials import CredentialStore
from mono_assistant.providers.exceptions import (
    InvalidCredentialError,
    ServiceUnavailableError,
    UnknownProviderFailure,
)
from mono_assistant.providers.provider_manager import register_adapter
from mono_assistant.providers.types import ChatParameters, ProviderDescriptor
from mono_assistant.utils.logging import get_logger

logger = get_logger("providers.gemini")

DEFAULT_MAX_OUTPUT_TOKENS = 8192


@register_adapter("gemini")
class GeminiAdapter(ProviderAdapter):
    """Adapter for the Google Gemini generateContent API"""

    base_url = "https://generativelanguage.googleapis.com/v1beta"

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        credentials: CredentialStore,
        *,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        **kwargs,
    ):
        super().__init__(descriptor, credentials, **kwargs)
        if base_url:
            self.base_url = base_url
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def _build_body(self, prompt: str, params: ChatParameters) -> dict[str, Any]:
        contents: list[dict[str, Any]] = []
        system_parts = [params.system_prompt] if params.system_prompt else []

        for message in params.history:
            if message["role"] == "system":
                system_parts.append(message["content"])
                continue
            role = "user" if message["role"] == "user" else "model"
            contents.append({"role": role, "parts": [{"text": message["content"]}]})
        contents.append({"role": "user", "parts": [{"text": prompt}]})

        body: dict[str, Any] = {
            "contents": contents,
            "generationConfig": {
                "temperature": params.temperature,
                "maxOutputTokens": params.max_tokens or DEFAULT_MAX_OUTPUT_TOKENS,
            },
        }
        if system_parts:
            body["systemInstruction"] = {
                "parts": [{"text": text} for text in system_parts]
            }
        return body

    async def _chat_completion(
        self, api_key: str, prompt: str, model: str, params: ChatParameters
    ) -> str:
        try:
            response = await self.client.post(
                f"/models/{model}:generateContent",
                json=self._build_body(prompt, params),
                headers={"x-goog-api-key": api_key},
            )
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            raise ServiceUnavailableError(
                provider=self.provider_id, diagnostic=str(e)
            ) from e

        if response.status_code != 200:
            self._handle_status(response, model)

        try:
            data = response.json()
        except ValueError as e:
            raise UnknownProviderFailure(
                provider=self.provider_id,
                model=model,
                diagnostic="Invalid JSON in Gemini response",
            ) from e
        return self._parse_response(data, model)

    def _handle_status(self, response: httpx.Response, model: str) -> None:
        body = response.text
        # Gemini reports a bad key as 400 rather than 401
        if response.status_code == 400 and "API_KEY_INVALID" in body:
            raise InvalidCredentialError(
                provider=self.provider_id, diagnostic=f"HTTP 400: {body}"
            )
        raise map_status_error(
            response.status_code,
            body,
            self.provider_id,
            model=model,
            retry_after=parse_retry_after(response.headers.get("retry-after")),
        )

    def _parse_response(self, data: Any, model: str) -> str:
        text = None
        candidates = data.get("candidates") if isinstance(data, dict) else None
        if candidates:
            content = candidates[0].get("content") or {}
            parts = content.get("parts") or []
            if parts:
                text = parts[0].get("text")
        if not text:
            raise UnknownProviderFailure(
                provider=self.provider_id,
                model=model,
                diagnostic="Empty response from Gemini",
            )
        return text

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
