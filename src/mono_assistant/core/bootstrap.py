"""Application bootstrap sequence and dependency injection."""

import logging
from pathlib import Path

from mono_assistant.config.config_manager import ConfigManager
from mono_assistant.config.env_manager import EnvManager
from mono_assistant.config.path_manager import PathManager
from mono_assistant.config.schemas import AppConfig
from mono_assistant.core.app_context import AppContext
from mono_assistant.core.dependencies import AppDependencies
from mono_assistant.core.exceptions import ConfigError, MonoAssistantError
from mono_assistant.core.service import AIService
from mono_assistant.providers import build_adapters
from mono_assistant.providers.base import ProviderAdapter
from mono_assistant.providers.catalog import ProviderCatalog, load_catalog
from mono_assistant.providers.credentials import (
    CredentialStore,
    DotenvCredentialStore,
    InMemoryCredentialStore,
    migrate_from_env,
)
from mono_assistant.providers.exceptions import UnknownProviderError
from mono_assistant.providers.router import ServiceRouter
from mono_assistant.providers.selection import SelectionStore
from mono_assistant.utils.logging import get_logger, setup_logging

logger = get_logger("core.bootstrap")


def _setup_environment(env_manager: EnvManager) -> None:
    """Load .env files before configuration is read."""
    try:
        env_manager.load_env_files()
    except ConfigError as e:
        logger.warning("Failed to load .env files: %s", e)


def bootstrap(
    config_path: str | Path | None = None,
    *,
    log_level: int | None = None,
    config_manager: ConfigManager | None = None,
    credential_store: CredentialStore | None = None,
    catalog: ProviderCatalog | None = None,
    adapters: dict[str, ProviderAdapter] | None = None,
) -> AppContext:
    """Initialize and wire the application.

    Every component can be passed in pre-built (tests pass in-memory stores
    and mock adapters); anything omitted is built from configuration.

    Args:
        config_path: Optional extra YAML config file
        log_level: Override log level
        config_manager: Optional pre-configured config manager
        credential_store: Optional credential store
        catalog: Optional provider catalog
        adapters: Optional adapters by provider id (replaces the built-ins)

    Returns:
        Initialized AppContext; ``ctx.deps.service`` is the AIService

    Raises:
        RuntimeError: If application initialization fails
    """
    setup_logging(level=log_level or logging.INFO)

    try:
        logger.debug("Starting application bootstrap")

        if config_manager is None:
            path_manager = PathManager()
            env_manager = EnvManager()
            _setup_environment(env_manager)
            config_paths: list[Path | str] = [path_manager.get_config_file()]
            if config_path:
                config_paths.append(config_path)
            config_manager = ConfigManager(
                config_paths=config_paths,
                env_manager=env_manager,
                path_manager=path_manager,
            )
        config = config_manager.config
        _setup_logging(config, log_level)

        deps = AppDependencies(config_manager=config_manager)
        if catalog is None:
            catalog = _initialize_catalog(config_manager, config)
        deps.catalog = catalog
        if credential_store is None:
            credential_store = _initialize_credentials(config_manager, config, catalog)
        deps.credential_store = credential_store
        deps.router = _initialize_router(
            config_manager, config, catalog, credential_store, adapters
        )
        deps.service = AIService(catalog, credential_store, deps.router)

        ctx = AppContext(dependencies=deps)
        ctx.register("service", deps.service)
        ctx.register("router", deps.router)
        deps.mark_initialized()

        logger.info("Application bootstrap completed successfully")
        return ctx

    except MonoAssistantError as e:
        logger.critical(f"Failed to bootstrap application: {e}")
        raise RuntimeError(f"Failed to initialize application: {e}") from e


async def teardown(ctx: AppContext) -> None:
    """Close network clients opened during the application's lifetime."""
    await ctx.aclose()
    logger.debug("Application shut down")


# --- Helper Functions ---


def _setup_logging(config: AppConfig, log_level: int | None = None) -> None:
    if log_level is not None:
        setup_logging(level=log_level)
        return
    setup_logging(level=getattr(logging, config.logging.level))


def _initialize_catalog(
    config_manager: ConfigManager, config: AppConfig
) -> ProviderCatalog:
    path = config.catalog.path
    if not path:
        return load_catalog()
    return load_catalog(config_manager.path_manager.resolve_path(path))


def _initialize_credentials(
    config_manager: ConfigManager, config: AppConfig, catalog: ProviderCatalog
) -> CredentialStore:
    settings = config.credentials
    store: CredentialStore
    if settings.backend == "memory":
        store = InMemoryCredentialStore()
    else:
        path = config_manager.resolve_file(
            settings.file, config_manager.path_manager.get_credentials_file()
        )
        store = DotenvCredentialStore(
            path,
            provider_ids=catalog.ids(),
            env_prefix=config_manager.env_manager.env_prefix,
        )
        logger.debug(f"Using credential file {path}")

    if settings.migrate_env:
        migrated = migrate_from_env(store, catalog.ids())
        if migrated:
            logger.info(f"Migrated legacy API keys: {', '.join(migrated)}")
    return store


def _initialize_router(
    config_manager: ConfigManager,
    config: AppConfig,
    catalog: ProviderCatalog,
    credentials: CredentialStore,
    adapters: dict[str, ProviderAdapter] | None,
) -> ServiceRouter:
    selection_store = None
    if config.selection.persist:
        selection_store = SelectionStore(
            config_manager.resolve_file(
                config.selection.state_file,
                config_manager.path_manager.get_state_file(),
            )
        )

    if adapters is None:
        adapters = build_adapters(
            catalog,
            credentials,
            rate_limits={
                provider_id: limit.model_dump()
                for provider_id, limit in config.rate_limits.items()
            },
            overrides={
                provider_id: {"base_url": url}
                for provider_id, url in config.adapters.base_urls.items()
            },
            timeout=config.adapters.timeout,
        )

    router = ServiceRouter(catalog, credentials, adapters, selection_store)

    default_provider = config.selection.default_provider
    if router.selected_provider is None and default_provider:
        try:
            router.select_provider(default_provider)
        except UnknownProviderError:
            logger.warning(
                f"Configured default provider '{default_provider}' is unknown"
            )
    return router
