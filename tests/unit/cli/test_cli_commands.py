"""CLI tests against a real bootstrap in an isolated MONO_HOME."""

import logging
from unittest.mock import AsyncMock, patch

import pytest
from dotenv import dotenv_values
from rich.console import Console
from typer.testing import CliRunner

from mono_assistant.cli.main import app
from mono_assistant.core.service import AIService

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_env(mono_home, monkeypatch):
    monkeypatch.setattr(
        "mono_assistant.cli.commands.provider.console", Console(width=200)
    )
    yield mono_home
    logging.getLogger().handlers.clear()


def invoke(*args, **kwargs):
    return runner.invoke(app, list(args), **kwargs)


class TestKeyCommands:
    def test_set_and_list(self, cli_env):
        result = invoke("key", "set", "groq", "--api-key", "gsk-1")
        assert result.exit_code == 0
        assert "API key saved for groq" in result.output
        assert "gsk-1" not in result.output

        stored = dotenv_values(cli_env / "credentials.env")
        assert stored == {"MONO_GROQ_API_KEY": "gsk-1"}

        result = invoke("key", "list")
        assert result.exit_code == 0
        assert "groq" in result.output.split()

    def test_set_prompts_for_key(self, cli_env):
        result = invoke("key", "set", "openai", input="sk-prompted\n")
        assert result.exit_code == 0
        assert "sk-prompted" not in result.output
        assert dotenv_values(cli_env / "credentials.env") == {
            "MONO_OPENAI_API_KEY": "sk-prompted"
        }

    def test_set_unknown_provider(self):
        result = invoke("key", "set", "nope", "--api-key", "x")
        assert result.exit_code == 1
        assert "Unknown AI provider 'nope'" in result.output

    def test_list_empty(self):
        result = invoke("key", "list")
        assert result.exit_code == 0
        assert "No API keys configured" in result.output

    def test_remove(self):
        invoke("key", "set", "groq", "--api-key", "gsk-1")
        result = invoke("key", "remove", "groq")
        assert result.exit_code == 0
        assert "API key removed for groq" in result.output
        assert "No API keys configured" in invoke("key", "list").output

    def test_remove_unknown_provider(self):
        invoke("key", "set", "groq", "--api-key", "gsk-1")
        result = invoke("key", "remove", "grok")
        assert result.exit_code == 1
        assert "Unknown AI provider 'grok'" in result.output
        assert "API key removed" not in result.output
        assert "groq" in invoke("key", "list").output

    def test_reset_requires_confirmation(self):
        invoke("key", "set", "groq", "--api-key", "gsk-1")

        result = invoke("key", "reset", input="n\n")
        assert result.exit_code == 1
        assert "Aborted" in result.output
        assert "groq" in invoke("key", "list").output

        result = invoke("key", "reset", "--yes")
        assert result.exit_code == 0
        assert "All API keys removed" in result.output
        assert "No API keys configured" in invoke("key", "list").output


class TestProviderCommands:
    def test_list(self):
        invoke("key", "set", "gemini", "--api-key", "AIza-1")
        result = invoke("provider", "list")

        assert result.exit_code == 0
        for provider_id in ("groq", "openai", "gemini", "openrouter"):
            assert provider_id in result.output
        gemini_row = next(
            line for line in result.output.splitlines() if "gemini" in line
        )
        assert "set" in gemini_row

    def test_select_and_status(self, cli_env):
        result = invoke("provider", "select", "groq")
        assert result.exit_code == 0
        assert "Selected provider: groq" in result.output
        assert "No API key set for groq" in result.output
        assert (cli_env / "state.yaml").exists()

        result = invoke("provider", "status")
        assert result.exit_code == 0
        assert "Selected provider: groq" in result.output
        groq_row = next(
            line for line in result.output.splitlines() if line.startswith("groq")
        )
        assert "unconfigured" in groq_row

    def test_select_unknown_keeps_selection(self):
        invoke("provider", "select", "openai")
        result = invoke("provider", "select", "nope")
        assert result.exit_code == 1
        assert "Unknown AI provider 'nope'" in result.output
        assert "Selected provider: openai" in invoke("provider", "status").output

    def test_models_and_set_model(self):
        result = invoke("provider", "models", "groq")
        assert result.exit_code == 0
        assert "llama-3.1-8b-instant" in result.output
        assert "whisper-large-v3-turbo" in result.output

        result = invoke("provider", "set-model", "groq", "llama-3.1-70b")
        assert result.exit_code == 0
        assert "Using llama-3.1-70b for chat_completion with groq" in result.output

        result = invoke("provider", "models", "groq", "-c", "chat_completion")
        starred = [line for line in result.output.splitlines() if "*" in line]
        assert len(starred) == 1
        assert "llama-3.1-70b" in starred[0]
        assert "whisper" not in result.output

    def test_set_model_rejects_wrong_capability(self):
        result = invoke("provider", "set-model", "groq", "whisper-large-v3-turbo")
        assert result.exit_code == 1
        assert "not supported by groq" in result.output


class TestChatCommands:
    def test_chat_without_selection(self):
        result = invoke("chat", "hello")
        assert result.exit_code == 1
        assert "No AI provider selected" in result.output

    def test_chat_without_key(self):
        invoke("provider", "select", "groq")
        result = invoke("chat", "hello")
        assert result.exit_code == 1
        assert "Please set your groq API key" in result.output

    def test_chat_prints_reply(self):
        invoke("provider", "select", "groq")
        with patch.object(
            AIService, "chat_completion", AsyncMock(return_value="Hi there")
        ) as chat:
            result = invoke(
                "chat", "hello", "-m", "llama-3.1-70b", "-s", "be brief", "-t", "0.2"
            )

        assert result.exit_code == 0
        assert "Hi there" in result.output
        chat.assert_awaited_once_with(
            "hello",
            model_id="llama-3.1-70b",
            context_hints={"system_prompt": "be brief", "temperature": 0.2},
        )

    def test_transcribe(self, tmp_path):
        audio = tmp_path / "memo.m4a"
        audio.write_bytes(b"\x00\x01")
        with patch.object(
            AIService, "transcribe", AsyncMock(return_value="meeting notes")
        ) as transcribe:
            result = invoke("transcribe", str(audio), "-l", "en")

        assert result.exit_code == 0
        assert "meeting notes" in result.output
        transcribe.assert_awaited_once_with(
            b"\x00\x01", model_id=None, language="en"
        )

    def test_transcribe_missing_file(self, tmp_path):
        result = invoke("transcribe", str(tmp_path / "missing.m4a"))
        assert result.exit_code == 2

    def test_summarize_text(self):
        with patch.object(
            AIService, "summarize", AsyncMock(return_value="- decided")
        ) as summarize:
            result = invoke("summarize", "we talked for an hour", "-m", "m1")

        assert result.exit_code == 0
        assert "- decided" in result.output
        summarize.assert_awaited_once_with("we talked for an hour", model_id="m1")

    def test_summarize_file(self, tmp_path):
        transcript = tmp_path / "notes.txt"
        transcript.write_text("long meeting transcript", encoding="utf-8")
        with patch.object(
            AIService, "summarize", AsyncMock(return_value="- point")
        ) as summarize:
            result = invoke("summarize", str(transcript))

        assert result.exit_code == 0
        summarize.assert_awaited_once_with("long meeting transcript", model_id=None)

    def test_summarize_unsupported_by_provider(self):
        invoke("key", "set", "groq", "--api-key", "gsk-1")
        invoke("provider", "select", "groq")
        result = invoke("summarize", "some text")
        assert result.exit_code == 1
        assert "groq does not support this operation" in result.output
