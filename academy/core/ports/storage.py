from typing import Protocol


class FileStorePort(Protocol):
    """Keyed blob storage for generated documents."""

    def save(self, key: str, data: bytes) -> str:
        """Store ``data`` under ``key``; returns the key actually used."""
        ...

    def get(self, key: str) -> bytes:
        """Raises FileNotFoundError when nothing is stored under ``key``."""
        ...

    def exists(self, key: str) -> bool: ...

    def delete(self, key: str) -> bool: ...
