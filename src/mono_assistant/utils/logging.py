import logging
import sys
import threading
from collections import Counter
from typing import TextIO

# Emojis per level
EMOJI_MAP = {
    "DEBUG": "🐞",
    "INFO": "💡",
    "WARNING": "⚠️",
    "ERROR": "🔥",
    "CRITICAL": "💀",
}

REDACTED = "***"


class EmojiFormatter(logging.Formatter):
    """Custom formatter that adds emojis, subsystem context, and extra fields."""

    def format(self, record: logging.LogRecord) -> str:
        emoji = EMOJI_MAP.get(record.levelname, "")
        log_line = (
            f"{emoji} [{record.levelname:<8}] ({record.name}) {record.getMessage()}"
        )

        # Anything not present on a bare LogRecord came in through `extra=`
        default_attrs = logging.LogRecord(
            name="",
            level=logging.NOTSET,
            pathname="",
            lineno=0,
            msg="",
            args=(),
            exc_info=None,
        ).__dict__

        extra_attrs = {
            k: v
            for k, v in record.__dict__.items()
            if k not in default_attrs and not k.startswith("_")
        }

        if extra_attrs:
            extra_str = " ".join(f"{k}={v!r}" for k, v in extra_attrs.items())
            log_line = f"{log_line} | {extra_str}"

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            log_line = f"{log_line}\n{record.exc_text}"

        return log_line


class SecretRedactionFilter(logging.Filter):
    """Masks known credential values in log records.

    Secrets are registered by the credential stores whenever a provider takes
    hold of a value, so a key that slips into a vendor error message or an
    f-string is replaced before any handler sees it. Registrations are counted:
    a value shared by several providers stays masked until every holder has
    released it.
    """

    def __init__(self) -> None:
        super().__init__()
        self._secrets: Counter[str] = Counter()
        self._lock = threading.Lock()

    def add(self, secret: str) -> None:
        if secret:
            with self._lock:
                self._secrets[secret] += 1

    def discard(self, secret: str) -> None:
        with self._lock:
            if self._secrets[secret] <= 1:
                self._secrets.pop(secret, None)
            else:
                self._secrets[secret] -= 1

    def clear(self) -> None:
        with self._lock:
            self._secrets.clear()

    def redact(self, text: str) -> str:
        with self._lock:
            secrets = sorted(self._secrets, key=len, reverse=True)
        for secret in secrets:
            text = text.replace(secret, REDACTED)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        message = record.getMessage()
        redacted = self.redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        if record.exc_info:
            # Render once so the traceback text can be scrubbed too
            record.exc_text = self.redact(
                logging.Formatter().formatException(record.exc_info)
            )
            record.exc_info = None
        return True


_redaction_filter = SecretRedactionFilter()


def register_secret(secret: str) -> None:
    """Register a secret value to be masked in all log output."""
    _redaction_filter.add(secret)


def unregister_secret(secret: str) -> None:
    """Stop masking a secret value (e.g. after the credential is removed)."""
    _redaction_filter.discard(secret)


def setup_logging(level: int = logging.INFO, stream: TextIO | None = None) -> None:
    """Configure root logger with emoji formatter and secret redaction."""
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(EmojiFormatter())
    handler.addFilter(_redaction_filter)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)


# Helper for subsystems
def get_logger(name: str) -> logging.Logger:
    """Get a subsystem logger."""
    return logging.getLogger(f"mono.{name}")
