"""
API key management commands.
"""

import typer

from mono_assistant.cli.options import LOG_LEVEL_OPTION, parse_log_level
from mono_assistant.core.bootstrap import bootstrap
from mono_assistant.core.error_handler import safe_entrypoint

app = typer.Typer(name="key", help="Manage provider API keys")


@app.command(name="set")
@safe_entrypoint("cli.key.set", exit_code=1)
def set_key(
    provider_id: str = typer.Argument(..., help="Provider id (e.g. groq)"),
    api_key: str = typer.Option(
        ...,
        "--api-key",
        prompt="API key",
        hide_input=True,
        help="The key; prompted for when omitted",
    ),
    log_level: str = LOG_LEVEL_OPTION,
) -> None:
    """Store the API key of a provider, replacing any previous one."""
    service = bootstrap(log_level=parse_log_level(log_level)).deps.service
    service.set_credential(provider_id, api_key)
    typer.echo(f"API key saved for {provider_id}")


@app.command()
@safe_entrypoint("cli.key.remove", exit_code=1)
def remove(
    provider_id: str = typer.Argument(..., help="Provider id"),
    log_level: str = LOG_LEVEL_OPTION,
) -> None:
    """Delete the stored API key of a provider."""
    service = bootstrap(log_level=parse_log_level(log_level)).deps.service
    service.remove_credential(provider_id)
    typer.echo(f"API key removed for {provider_id}")


@app.command(name="list")
@safe_entrypoint("cli.key.list", exit_code=1)
def list_keys(log_level: str = LOG_LEVEL_OPTION) -> None:
    """List providers that have an API key (keys are never shown)."""
    service = bootstrap(log_level=parse_log_level(log_level)).deps.service
    configured = [
        d.id for d in service.list_providers() if service.has_credential(d.id)
    ]
    if not configured:
        typer.echo("No API keys configured")
        return
    for provider_id in configured:
        typer.echo(provider_id)


@app.command()
@safe_entrypoint("cli.key.reset", exit_code=1)
def reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    log_level: str = LOG_LEVEL_OPTION,
) -> None:
    """Delete every stored API key."""
    if not yes and not typer.confirm("Remove all stored API keys?"):
        typer.echo("Aborted")
        raise typer.Exit(code=1)
    service = bootstrap(log_level=parse_log_level(log_level)).deps.service
    service.reset()
    typer.echo("All API keys removed")
