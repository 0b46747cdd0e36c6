"""
Chat, transcription and summarization commands against the selected provider.
"""

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import typer

from mono_assistant.cli.options import LOG_LEVEL_OPTION, parse_log_level
from mono_assistant.core.bootstrap import bootstrap, teardown
from mono_assistant.core.error_handler import safe_entrypoint
from mono_assistant.core.service import AIService
from mono_assistant.utils.logging import get_logger

log = get_logger("cli.chat")

T = TypeVar("T")


def _run(log_level: str, call: Callable[[AIService], Awaitable[T]]) -> T:
    """Bootstrap, run one service call and close network clients."""
    ctx = bootstrap(log_level=parse_log_level(log_level))

    async def runner() -> T:
        try:
            return await call(ctx.deps.service)
        finally:
            await teardown(ctx)

    return asyncio.run(runner())


@safe_entrypoint("cli.chat", exit_code=1)
def chat(
    prompt: str = typer.Argument(..., help="Message to send"),
    model: str | None = typer.Option(None, "--model", "-m", help="Model id"),
    system: str | None = typer.Option(None, "--system", "-s", help="System prompt"),
    temperature: float = typer.Option(
        0.7, "--temperature", "-t", min=0.0, max=2.0, help="Sampling temperature"
    ),
    max_tokens: int | None = typer.Option(None, "--max-tokens", help="Reply limit"),
    log_level: str = LOG_LEVEL_OPTION,
) -> None:
    """Send a prompt to the selected provider and print the reply."""
    hints = {"system_prompt": system, "temperature": temperature}
    if max_tokens is not None:
        hints["max_tokens"] = max_tokens

    reply = _run(
        log_level,
        lambda service: service.chat_completion(
            prompt, model_id=model, context_hints=hints
        ),
    )
    typer.echo(reply)


@safe_entrypoint("cli.transcribe", exit_code=1)
def transcribe(
    audio_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Audio file"
    ),
    model: str | None = typer.Option(None, "--model", "-m", help="Model id"),
    language: str | None = typer.Option(
        None, "--language", "-l", help="ISO-639-1 language hint"
    ),
    log_level: str = LOG_LEVEL_OPTION,
) -> None:
    """Transcribe an audio file with the selected provider."""
    audio = audio_file.read_bytes()
    log.debug(f"Read {len(audio)} bytes from {audio_file}")

    text = _run(
        log_level,
        lambda service: service.transcribe(audio, model_id=model, language=language),
    )
    typer.echo(text)


def _read_text_source(source: str) -> str:
    path = Path(source)
    try:
        is_file = path.is_file()
    except (OSError, ValueError):
        # Long or NUL-containing text is not a usable path
        is_file = False
    if not is_file:
        return source
    text = path.read_text(encoding="utf-8")
    log.debug(f"Read {len(text)} characters from {path}")
    return text


@safe_entrypoint("cli.summarize", exit_code=1)
def summarize(
    source: str = typer.Argument(..., help="Text file to summarize, or the text"),
    model: str | None = typer.Option(None, "--model", "-m", help="Model id"),
    log_level: str = LOG_LEVEL_OPTION,
) -> None:
    """Summarize a transcript with the selected provider."""
    text = _read_text_source(source)
    summary = _run(log_level, lambda service: service.summarize(text, model_id=model))
    typer.echo(summary)
