"""
StorageBackend abstract interface for generated LEDES export files.
Backends are chosen by the STORAGE_BACKEND env var; callers only see keys.
"""

import abc
from pathlib import Path


class StorageBackend(abc.ABC):
    @abc.abstractmethod
    def save(self, data: bytes, filename: str, subfolder: str = "") -> str:
        """Persist data and return the storage key."""

    @abc.abstractmethod
    def load(self, key: str) -> bytes:
        """Return the raw bytes stored under key."""

    @abc.abstractmethod
    def exists(self, key: str) -> bool:
        """Return True if key exists in storage."""


class LocalDiskStorage(StorageBackend):
    """
    Stores export files on the local filesystem.
    Root is set from settings.local_storage_path.
    """

    def __init__(self, root: str):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, key: str) -> Path:
        target = (self.root / key).resolve()
        # Keys come from user-supplied client ids; never escape the root
        if self.root.resolve() not in target.parents:
            raise ValueError(f"Storage key escapes storage root: {key!r}")
        return target

    def save(self, data: bytes, filename: str, subfolder: str = "") -> str:
        key = f"{subfolder}/{filename}" if subfolder else filename
        target_path = self._resolve(key)
        target_path.parent.mkdir(parents=True, exist_ok=True)
        target_path.write_bytes(data)
        return str(target_path.relative_to(self.root.resolve()))

    def load(self, key: str) -> bytes:
        return self._resolve(key).read_bytes()

    def exists(self, key: str) -> bool:
        return self._resolve(key).exists()


def get_storage() -> StorageBackend:
    """Factory: returns the configured storage backend."""
    from billing_core.settings import settings

    if settings.storage_backend == "local":
        return LocalDiskStorage(settings.local_storage_path)
    raise ValueError(f"Unknown storage backend: {settings.storage_backend!r}")
