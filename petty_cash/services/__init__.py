"""
Services package.

Import the lifecycle services from their modules directly:
    from petty_cash.services.transitions import StatusTransitionService
    from petty_cash.services import aggregation
"""

from petty_cash.services.storage import (
    AuditStorageInterface,
    InMemoryStorage,
    JsonFileStorage,
    KeyValueAuditStorage,
    KeyValueStorageInterface,
    StorageError,
    StorageReadError,
    StorageWriteError,
    create_storage,
)

__all__ = [
    "AuditStorageInterface",
    "InMemoryStorage",
    "JsonFileStorage",
    "KeyValueAuditStorage",
    "KeyValueStorageInterface",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    "create_storage",
]
