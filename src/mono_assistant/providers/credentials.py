"""
Per-provider credential storage.

A credential store holds at most one secret per provider id. Mutations of a
key are serialized with a per-key lock; reads of a key take the same lock, so
a reader never sees a half-written value. Distinct keys never share a lock.
"""

import abc
import os
import threading
from collections.abc import Iterable
from pathlib import Path

from dotenv import dotenv_values, set_key, unset_key

from mono_assistant.providers.exceptions import StorageError
from mono_assistant.providers.types import PROVIDER_ID_PATTERN
from mono_assistant.utils.logging import get_logger, register_secret, unregister_secret

logger = get_logger("providers.credentials")


def credential_env_key(provider_id: str, prefix: str = "MONO_") -> str:
    """Name of the dotenv entry holding a provider's secret.

    Provider ids are lowercase, so upper-casing maps each id to its own entry.
    """
    if not PROVIDER_ID_PATTERN.match(provider_id):
        raise ValueError(f"Invalid provider id '{provider_id}'")
    return f"{prefix}{provider_id.upper()}_API_KEY"


class CredentialStore(abc.ABC):
    """Base class for credential stores.

    Subclasses implement the raw ``_read``/``_write``/``_delete`` operations;
    locking and secret registration for log redaction happen here.
    """

    def __init__(self) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, provider_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(provider_id)
            if lock is None:
                lock = self._locks[provider_id] = threading.Lock()
            return lock

    @abc.abstractmethod
    def _read(self, provider_id: str) -> str | None:
        """Return the stored secret or None"""

    @abc.abstractmethod
    def _write(self, provider_id: str, secret: str) -> None:
        """Persist the secret, raising StorageError on failure"""

    @abc.abstractmethod
    def _delete(self, provider_id: str) -> None:
        """Remove the secret if present"""

    @abc.abstractmethod
    def _stored_ids(self) -> list[str]:
        """Ids that currently hold a secret"""

    def set(self, provider_id: str, secret: str) -> None:
        """Store a secret, overwriting any existing value.

        Raises:
            ValueError: If the secret is empty or the id cannot be stored
            StorageError: If the backend write fails
        """
        if not secret:
            raise ValueError("secret cannot be empty")
        with self._lock_for(provider_id):
            previous = self._read(provider_id)
            self._write(provider_id, secret)
        if previous != secret:
            register_secret(secret)
            if previous:
                unregister_secret(previous)
        logger.info(f"Stored credential for {provider_id}")

    def get(self, provider_id: str) -> str | None:
        """Return the secret for a provider, or None when unconfigured."""
        with self._lock_for(provider_id):
            try:
                return self._read(provider_id)
            except Exception as e:
                logger.warning(f"Failed to read credential for {provider_id}: {e}")
                return None

    def remove(self, provider_id: str) -> None:
        """Remove a provider's secret. Removing a missing secret is a no-op."""
        with self._lock_for(provider_id):
            previous = self._read(provider_id)
            if previous is None:
                return
            self._delete(provider_id)
        unregister_secret(previous)
        logger.info(f"Removed credential for {provider_id}")

    def has(self, provider_id: str) -> bool:
        return self.get(provider_id) is not None

    def configured_ids(self) -> list[str]:
        return list(self._stored_ids())

    def clear(self) -> None:
        """Remove every stored secret (full data reset)."""
        for provider_id in self.configured_ids():
            self.remove(provider_id)


class InMemoryCredentialStore(CredentialStore):
    """Process-local credential store."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__()
        self._secrets: dict[str, str] = {}
        for provider_id, secret in (initial or {}).items():
            self.set(provider_id, secret)

    def _read(self, provider_id: str) -> str | None:
        return self._secrets.get(provider_id)

    def _write(self, provider_id: str, secret: str) -> None:
        self._secrets[provider_id] = secret

    def _delete(self, provider_id: str) -> None:
        self._secrets.pop(provider_id, None)

    def _stored_ids(self) -> list[str]:
        return list(self._secrets.keys())


class DotenvCredentialStore(CredentialStore):
    """Credential store persisted to a private dotenv file.

    Each secret lives under ``MONO_<PROVIDER>_API_KEY``. The file is created
    with owner-only permissions. The in-memory view is updated only after the
    file write succeeded.
    """

    def __init__(
        self,
        path: Path | str,
        provider_ids: Iterable[str] | None = None,
        env_prefix: str = "MONO_",
    ) -> None:
        super().__init__()
        self.path = Path(path)
        self.env_prefix = env_prefix
        self._known_ids = set(provider_ids or [])
        self._cache: dict[str, str] = {}
        self._file_lock = threading.Lock()
        self._load()

    def _env_key(self, provider_id: str) -> str:
        return credential_env_key(provider_id, self.env_prefix)

    def _load(self) -> None:
        if not self.path.exists():
            logger.debug(f"Credential file does not exist yet: {self.path}")
            return

        values = dotenv_values(self.path)
        by_key = {self._env_key(pid): pid for pid in self._known_ids}
        suffix = "_API_KEY"
        for key, value in values.items():
            if not value or not key.startswith(self.env_prefix):
                continue
            if not key.endswith(suffix):
                continue
            provider_id = by_key.get(key)
            if provider_id is None:
                provider_id = key[len(self.env_prefix) : -len(suffix)].lower()
            self._cache[provider_id] = value
            register_secret(value)
        logger.debug(f"Loaded {len(self._cache)} credentials from {self.path}")

    def _ensure_file(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self.path.touch(mode=0o600)
        else:
            os.chmod(self.path, 0o600)

    def _read(self, provider_id: str) -> str | None:
        return self._cache.get(provider_id)

    def _write(self, provider_id: str, secret: str) -> None:
        env_key = self._env_key(provider_id)
        try:
            with self._file_lock:
                self._ensure_file()
                success, _, _ = set_key(self.path, env_key, secret, quote_mode="always")
        except (OSError, ValueError) as e:
            raise StorageError(
                f"Failed to store API key for {provider_id}: {e}", provider_id
            ) from e
        if not success:
            raise StorageError(
                f"Failed to store API key for {provider_id}", provider_id
            )
        self._cache[provider_id] = secret

    def _delete(self, provider_id: str) -> None:
        env_key = self._env_key(provider_id)
        try:
            with self._file_lock:
                if self.path.exists():
                    unset_key(self.path, env_key, quote_mode="always")
        except OSError as e:
            raise StorageError(
                f"Failed to remove API key for {provider_id}: {e}", provider_id
            ) from e
        self._cache.pop(provider_id, None)

    def _stored_ids(self) -> list[str]:
        return list(self._cache.keys())


def migrate_from_env(
    store: CredentialStore, provider_ids: Iterable[str]
) -> list[str]:
    """Copy legacy ``<PROVIDER>_API_KEY`` environment variables into the store.

    Only providers without a stored secret are migrated.

    Returns:
        The provider ids that were migrated
    """
    migrated = []
    for provider_id in provider_ids:
        env_value = os.getenv(credential_env_key(provider_id, prefix=""))
        if not env_value or store.has(provider_id):
            continue
        try:
            store.set(provider_id, env_value)
        except StorageError as e:
            logger.warning(f"Could not migrate credential for {provider_id}: {e}")
            continue
        migrated.append(provider_id)
        logger.info(f"Migrated {provider_id} API key to secure storage")
    return migrated
