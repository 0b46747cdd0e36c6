"""Unit tests for the Gemini adapter using httpx.MockTransport"""

import json

import httpx
import pytest

from mono_assistant.providers.catalog import load_catalog
from mono_assistant.providers.exceptions import (
    CapabilityUnsupportedError,
    InvalidCredentialError,
    ModelUnsupportedError,
    RateLimitedError,
    ServiceUnavailableError,
    UnknownProviderFailure,
)
from mono_assistant.providers.gemini_provider import (
    DEFAULT_MAX_OUTPUT_TOKENS,
    GeminiAdapter,
)
from mono_assistant.providers.types import ChatParameters


def _reply(text):
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


class Recorder:
    """MockTransport handler that stores requests and replays one response."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def make_gemini(credentials):
    def factory(handler):
        credentials.set("gemini", "AIza-test")
        adapter = GeminiAdapter(
            load_catalog().lookup("gemini"),
            credentials,
            transport=httpx.MockTransport(handler),
        )
        return adapter

    return factory


class TestGeminiChat:
    @pytest.mark.asyncio
    async def test_success(self, make_gemini):
        handler = Recorder(httpx.Response(200, json=_reply("Bonjour")))
        gemini = make_gemini(handler)

        reply = await gemini.chat_completion("Hello")

        assert reply == "Bonjour"
        request = handler.requests[0]
        assert request.url.path == "/v1beta/models/gemini-1.5-flash:generateContent"
        assert request.headers["x-goog-api-key"] == "AIza-test"
        assert "AIza-test" not in str(request.url)
        body = json.loads(request.content)
        assert body["contents"] == [{"role": "user", "parts": [{"text": "Hello"}]}]
        assert body["generationConfig"] == {
            "temperature": 0.7,
            "maxOutputTokens": DEFAULT_MAX_OUTPUT_TOKENS,
        }
        assert "systemInstruction" not in body
        await gemini.aclose()

    @pytest.mark.asyncio
    async def test_history_and_system_prompt(self, make_gemini):
        handler = Recorder(httpx.Response(200, json=_reply("ok")))
        gemini = make_gemini(handler)
        params = ChatParameters(
            system_prompt="be brief",
            history=[
                {"role": "system", "content": "answer in French"},
                {"role": "user", "content": "q1"},
                {"role": "assistant", "content": "a1"},
            ],
            max_tokens=50,
        )

        await gemini.chat_completion("q2", model_id="gemini-1.5-pro", params=params)

        body = json.loads(handler.requests[0].content)
        assert body["systemInstruction"] == {
            "parts": [{"text": "be brief"}, {"text": "answer in French"}]
        }
        assert [c["role"] for c in body["contents"]] == ["user", "model", "user"]
        assert body["generationConfig"]["maxOutputTokens"] == 50
        assert "gemini-1.5-pro" in handler.requests[0].url.path
        await gemini.aclose()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, body, expected",
        [
            (
                400,
                '{"error": {"status": "INVALID_ARGUMENT", "details": '
                '[{"reason": "API_KEY_INVALID"}]}}',
                InvalidCredentialError,
            ),
            (403, '{"error": {"status": "PERMISSION_DENIED"}}', InvalidCredentialError),
            (429, '{"error": {"status": "RESOURCE_EXHAUSTED"}}', RateLimitedError),
            (404, '{"error": {"status": "NOT_FOUND"}}', ModelUnsupportedError),
            (500, "internal", ServiceUnavailableError),
            (400, '{"error": {"status": "INVALID_ARGUMENT"}}', UnknownProviderFailure),
        ],
    )
    async def test_status_mapping(self, make_gemini, status, body, expected):
        gemini = make_gemini(Recorder(httpx.Response(status, text=body)))
        with pytest.raises(expected) as exc_info:
            await gemini.chat_completion("Hello")
        assert exc_info.value.provider_id == "gemini"
        await gemini.aclose()

    @pytest.mark.asyncio
    async def test_timeout_is_service_unavailable(self, make_gemini):
        gemini = make_gemini(Recorder(error=httpx.ReadTimeout("timed out")))
        with pytest.raises(ServiceUnavailableError):
            await gemini.chat_completion("Hello")
        await gemini.aclose()

    @pytest.mark.asyncio
    async def test_connection_error_is_service_unavailable(self, make_gemini):
        gemini = make_gemini(Recorder(error=httpx.ConnectError("refused")))
        with pytest.raises(ServiceUnavailableError):
            await gemini.chat_completion("Hello")
        await gemini.aclose()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [{"candidates": []}, {}, {"candidates": [{"content": {"parts": []}}]}],
    )
    async def test_empty_candidates_is_unknown(self, make_gemini, payload):
        gemini = make_gemini(Recorder(httpx.Response(200, json=payload)))
        with pytest.raises(UnknownProviderFailure):
            await gemini.chat_completion("Hello")
        await gemini.aclose()

    @pytest.mark.asyncio
    async def test_invalid_json_is_unknown(self, make_gemini):
        gemini = make_gemini(Recorder(httpx.Response(200, text="<html>")))
        with pytest.raises(UnknownProviderFailure):
            await gemini.chat_completion("Hello")
        await gemini.aclose()

    @pytest.mark.asyncio
    async def test_transcription_not_supported(self, make_gemini):
        handler = Recorder(httpx.Response(200, json=_reply("never")))
        gemini = make_gemini(handler)
        with pytest.raises(CapabilityUnsupportedError):
            await gemini.audio_transcription(b"\x00")
        assert handler.requests == []
        await gemini.aclose()
