"""
Provider commands: list, status, select and model preferences.
"""

import typer
from rich.console import Console
from rich.table import Table

from mono_assistant.cli.options import LOG_LEVEL_OPTION, parse_log_level
from mono_assistant.core.bootstrap import bootstrap
from mono_assistant.core.error_handler import safe_entrypoint
from mono_assistant.providers.types import Capability

app = typer.Typer(name="provider", help="Manage AI providers")
console = Console()


@app.command(name="list")
@safe_entrypoint("cli.provider.list", exit_code=1)
def list_providers(log_level: str = LOG_LEVEL_OPTION) -> None:
    """List registered providers and whether an API key is set."""
    service = bootstrap(log_level=parse_log_level(log_level)).deps.service
    selected = service.selected_provider

    table = Table(show_header=True, header_style="bold")
    table.add_column("")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Capabilities")
    table.add_column("Models", justify="right")
    table.add_column("API key")

    for descriptor in service.list_providers():
        table.add_row(
            "*" if descriptor.id == selected else "",
            descriptor.id,
            descriptor.display_name,
            ", ".join(sorted(c.value for c in descriptor.capabilities)),
            str(len(descriptor.models)),
            "set" if service.has_credential(descriptor.id) else "missing",
        )
    console.print(table)


@app.command()
@safe_entrypoint("cli.provider.status", exit_code=1)
def status(log_level: str = LOG_LEVEL_OPTION) -> None:
    """Show the configuration state of every provider."""
    service = bootstrap(log_level=parse_log_level(log_level)).deps.service
    statuses = service.get_status()

    typer.echo(f"{'Provider':<14} {'State':<14} {'Models':<8} Capabilities")
    typer.echo("-" * 60)
    for provider_id, provider_status in statuses.items():
        capabilities = ", ".join(
            sorted(c.value for c in provider_status.supported_capabilities)
        )
        typer.echo(
            f"{provider_id:<14} {provider_status.state.value:<14} "
            f"{provider_status.model_count:<8} {capabilities}"
        )

    selected = service.selected_provider
    typer.echo(f"\nSelected provider: {selected or '(none)'}")


@app.command()
@safe_entrypoint("cli.provider.select", exit_code=1)
def select(
    provider_id: str = typer.Argument(..., help="Provider to make active"),
    log_level: str = LOG_LEVEL_OPTION,
) -> None:
    """Select the provider used for chat and transcription."""
    service = bootstrap(log_level=parse_log_level(log_level)).deps.service
    service.select_provider(provider_id)
    typer.echo(f"Selected provider: {provider_id}")
    if not service.has_credential(provider_id):
        typer.echo(f"No API key set for {provider_id}. Run: mono key set {provider_id}")


@app.command()
@safe_entrypoint("cli.provider.models", exit_code=1)
def models(
    provider_id: str = typer.Argument(..., help="Provider to list models for"),
    capability: Capability | None = typer.Option(
        None, "--capability", "-c", help="Only models with this capability"
    ),
    log_level: str = LOG_LEVEL_OPTION,
) -> None:
    """List the models of a provider; the preferred chat model is starred."""
    service = bootstrap(log_level=parse_log_level(log_level)).deps.service
    preferred = service.get_model(
        provider_id, capability or Capability.CHAT_COMPLETION
    )

    table = Table(show_header=True, header_style="bold")
    table.add_column("")
    table.add_column("Model")
    table.add_column("Name")
    table.add_column("Context", justify="right")
    table.add_column("Cost")
    for model in service.get_models(provider_id, capability):
        table.add_row(
            "*" if model.id == preferred else "",
            model.id,
            model.name,
            str(model.context_window) if model.context_window else "-",
            model.cost_tier.value,
        )
    console.print(table)


@app.command(name="set-model")
@safe_entrypoint("cli.provider.set_model", exit_code=1)
def set_model(
    provider_id: str = typer.Argument(..., help="Provider id"),
    model_id: str = typer.Argument(..., help="Model id from 'mono provider models'"),
    capability: Capability = typer.Option(
        Capability.CHAT_COMPLETION, "--capability", "-c", help="Capability"
    ),
    log_level: str = LOG_LEVEL_OPTION,
) -> None:
    """Set the preferred model of a provider for one capability."""
    service = bootstrap(log_level=parse_log_level(log_level)).deps.service
    service.set_model(provider_id, model_id, capability)
    typer.echo(f"Using {model_id} for {capability.value} with {provider_id}")
