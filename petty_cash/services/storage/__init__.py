"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements a JSON-file key-value backend, designed to be swappable.
"""

from pathlib import Path

from petty_cash.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStorageInterface,
    StorageError,
    StorageReadError,
    StorageWriteError,
)
from petty_cash.services.storage.json_file import JsonFileStorage
from petty_cash.services.storage.memory import InMemoryStorage
from petty_cash.services.storage.audit_log import KeyValueAuditStorage


def create_storage(backend: str, data_dir: Path) -> KeyValueStorageInterface:
    """Build the key-value backend named in settings."""
    if backend == "memory":
        return InMemoryStorage()
    if backend == "file":
        return JsonFileStorage(data_dir)
    raise ValueError(f"Unknown storage backend: {backend}")


__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStorageInterface",
    # Exceptions
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    # Implementations
    "InMemoryStorage",
    "JsonFileStorage",
    "KeyValueAuditStorage",
    "create_storage",
]
