"""
Adapters for OpenAI-compatible vendor APIs

Groq, OpenAI and OpenRouter all speak the OpenAI chat.completions and
audio.transcriptions wire format, so they share one adapter built on the
openai library and differ only in base URL and headers.
"""

from typing import Any, NoReturn

import openai
from openai import AsyncOpenAI

from mono_assistant.providers.base import (
    ProviderAdapter,
    map_status_error,
    parse_retry_after,
)
from mono_assistant.providers.credentials import CredentialStore
from mono_assistant.providers.exceptions import (
    ServiceUnavailableError,
    UnknownProviderFailure,
)
from mono_assistant.providers.types import ChatParameters, ProviderDescriptor
from mono_assistant.utils.logging import get_logger

logger = get_logger("providers.compatible_drivers")


class OpenAICompatibleAdapter(ProviderAdapter):
    """Adapter for vendors exposing the OpenAI REST API shape"""

    base_url: str = "https://api.openai.com/v1"
    default_headers: dict[str, str] = {}
    audio_filename = "audio.m4a"
    audio_content_type = "audio/m4a"

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        credentials: CredentialStore,
        *,
        base_url: str | None = None,
        **kwargs,
    ):
        super().__init__(descriptor, credentials, **kwargs)
        if base_url:
            self.base_url = base_url
        self._client: AsyncOpenAI | None = None
        self._client_key: str | None = None

    async def _client_for(self, api_key: str) -> AsyncOpenAI:
        """Return a client bound to the current credential.

        A new client is built whenever the stored credential changes, and the
        previous one is closed. Retries are disabled: transient failures are
        reported, not hidden.
        """
        client = self._client
        if client is None or self._client_key != api_key:
            stale = client
            client = self._client = AsyncOpenAI(
                api_key=api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
                default_headers=self.default_headers or None,
            )
            self._client_key = api_key
            if stale is not None:
                await stale.close()
        return client

    async def _chat_completion(
        self, api_key: str, prompt: str, model: str, params: ChatParameters
    ) -> str:
        payload: dict[str, Any] = {
            "model": model,
            "messages": params.to_messages(prompt),
            "temperature": params.temperature,
            "stream": False,
        }
        if params.max_tokens is not None:
            payload["max_tokens"] = params.max_tokens

        client = await self._client_for(api_key)
        try:
            response = await client.chat.completions.create(**payload)
        except Exception as e:
            self._handle_error(e, model)

        logger.debug("Response from %s: %s", self.provider_id, response)
        return self._parse_chat_response(response, model)

    def _parse_chat_response(self, response: Any, model: str) -> str:
        choices = getattr(response, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        content = getattr(message, "content", None) if message else None
        if not content:
            raise UnknownProviderFailure(
                provider=self.provider_id,
                model=model,
                diagnostic=f"Empty response from {self.name}",
            )
        return content

    async def _audio_transcription(
        self, api_key: str, audio: bytes, model: str, language: str | None
    ) -> str:
        payload: dict[str, Any] = {
            "model": model,
            "file": (self.audio_filename, audio, self.audio_content_type),
        }
        if language:
            payload["language"] = language

        client = await self._client_for(api_key)
        try:
            response = await client.audio.transcriptions.create(**payload)
        except Exception as e:
            self._handle_error(e, model)

        if isinstance(response, str):
            text = response
        else:
            text = getattr(response, "text", None)
        if text is None:
            raise UnknownProviderFailure(
                provider=self.provider_id,
                model=model,
                diagnostic="Invalid transcription response format",
            )
        return text

    def _extract_error_details(self, e: Exception) -> tuple[int | None, Any]:
        """Extract status code and response from exception.

        Args:
            e: The exception to extract details from

        Returns:
            Tuple of (status_code, response) where either or both can be None
        """
        if getattr(e, "status_code", None) is not None:
            return int(e.status_code), getattr(e, "response", None)

        response = getattr(e, "response", None)
        if getattr(response, "status_code", None) is not None:
            return int(response.status_code), response

        return None, None

    def _error_body(self, e: Exception, response: Any) -> str:
        body = getattr(e, "body", None)
        if body is not None:
            return str(body)
        text = getattr(response, "text", None)
        if isinstance(text, str):
            return text
        return str(e)

    def _handle_error(self, e: Exception, model: str) -> NoReturn:
        """Translate an openai library error into the error taxonomy."""
        logger.debug(f"Error type: {type(e).__module__}.{type(e).__name__}")

        if isinstance(e, openai.APIConnectionError):
            raise ServiceUnavailableError(
                provider=self.provider_id, diagnostic=str(e)
            ) from e

        status_code, response = self._extract_error_details(e)
        if status_code is not None:
            headers = getattr(response, "headers", None) or {}
            body = self._error_body(e, response)
            logger.debug(f"Detected status code {status_code} from {self.provider_id}")
            raise map_status_error(
                status_code,
                body,
                self.provider_id,
                model=model,
                retry_after=parse_retry_after(headers.get("retry-after")),
            ) from e

        self._raise_unmapped(e, model)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
            self._client_key = None
