"""
Persistence for the active provider selection and model preferences.
"""

import threading
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from mono_assistant.providers.exceptions import StorageError
from mono_assistant.utils.logging import get_logger

logger = get_logger("providers.selection")


class SelectionState(BaseModel):
    """Persisted router state."""

    selected_provider: str | None = None
    # provider id -> capability value -> model id
    models: dict[str, dict[str, str]] = Field(default_factory=dict)


class SelectionStore:
    """YAML file holding the ``SelectionState`` across restarts."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._lock = threading.Lock()

    def load(self) -> SelectionState:
        """Read the saved state; a missing or corrupt file yields an empty state."""
        with self._lock:
            if not self.path.exists():
                return SelectionState()
            try:
                with open(self.path, encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}
                return SelectionState.model_validate(data)
            except (OSError, yaml.YAMLError, ValidationError) as e:
                logger.warning(f"Ignoring unreadable selection state {self.path}: {e}")
                return SelectionState()

    def save(self, state: SelectionState) -> None:
        """Write the state.

        Raises:
            StorageError: If the file cannot be written
        """
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
                with open(tmp_path, "w", encoding="utf-8") as f:
                    yaml.safe_dump(
                        state.model_dump(), f, default_flow_style=False, sort_keys=True
                    )
                tmp_path.replace(self.path)
            except OSError as e:
                raise StorageError(f"Failed to save selection state: {e}") from e
        logger.debug(f"Saved selection state to {self.path}")
