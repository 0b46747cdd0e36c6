import logging

import pytest

from mono_assistant.utils.logging import (
    EMOJI_MAP,
    EmojiFormatter,
    get_logger,
    register_secret,
    setup_logging,
    unregister_secret,
)


def test_get_logger_namespaces_subsystem():
    assert get_logger("providers.router").name == "mono.providers.router"


def test_emoji_format(log_stream):
    get_logger("test").warning("careful")
    expected = f"{EMOJI_MAP['WARNING']} [WARNING ] (mono.test) careful\n"
    assert log_stream.getvalue() == expected


@pytest.mark.parametrize("level", ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
def test_every_level_has_an_emoji(log_stream, level):
    get_logger("test").log(getattr(logging, level), "msg")
    assert log_stream.getvalue().startswith(EMOJI_MAP[level])


def test_extra_fields_are_appended():
    record = logging.LogRecord("mono.x", logging.INFO, "", 0, "hello", (), None)
    record.provider = "groq"
    assert EmojiFormatter().format(record).endswith("hello | provider='groq'")


def test_registered_secret_is_redacted(log_stream):
    register_secret("sk-live-123")
    get_logger("test").info("calling with key sk-live-123")
    get_logger("test").info("formatted %s", "sk-live-123")

    output = log_stream.getvalue()
    assert "sk-live-123" not in output
    assert output.count("***") == 2


def test_secret_redacted_from_traceback(log_stream):
    register_secret("sk-live-123")
    try:
        raise RuntimeError("rejected key sk-live-123")
    except RuntimeError:
        get_logger("test").error("vendor failed", exc_info=True)

    output = log_stream.getvalue()
    assert "RuntimeError" in output
    assert "sk-live-123" not in output


def test_unregistered_secret_is_not_redacted(log_stream):
    register_secret("sk-old")
    unregister_secret("sk-old")
    get_logger("test").info("value sk-old")
    assert "sk-old" in log_stream.getvalue()


def test_setup_logging_replaces_handlers(log_stream):
    setup_logging(level=logging.INFO, stream=log_stream)
    assert len(logging.getLogger().handlers) == 1
    assert logging.getLogger().level == logging.INFO


def test_secret_registered_twice_needs_two_releases(log_stream):
    register_secret("sk-shared")
    register_secret("sk-shared")
    unregister_secret("sk-shared")
    get_logger("test").info("first sk-shared")
    unregister_secret("sk-shared")
    get_logger("test").info("second sk-shared")

    first, second = log_stream.getvalue().splitlines()
    assert "sk-shared" not in first
    assert "sk-shared" in second
