"""Application context holding shared resources and state."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from mono_assistant.core.dependencies import AppDependencies


class AppContext:
    """Central context object that holds application-wide resources and dependencies."""

    def __init__(self, dependencies: AppDependencies | None = None) -> None:
        self._resources: dict[str, Any] = {}
        self._dependencies = dependencies

    @property
    def deps(self) -> AppDependencies:
        """Get the application dependencies.

        Raises:
            RuntimeError: If dependencies are not initialized
        """
        if self._dependencies is None:
            raise RuntimeError(
                "Dependencies not initialized. Did you call bootstrap()?"
            )
        return self._dependencies

    def register(self, name: str, resource: Any) -> None:
        self._resources[name] = resource

    def get(self, name: str, default: Any = None) -> Any | None:
        return self._resources.get(name, default)

    async def aclose(self) -> None:
        """Release network clients held by the dependencies."""
        if self._dependencies is not None:
            await self._dependencies.aclose()

    def __getitem__(self, name: str) -> Any:
        return self._resources[name]

    def __contains__(self, name: str) -> bool:
        return name in self._resources
