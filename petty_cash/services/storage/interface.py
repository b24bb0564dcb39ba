"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the expense collection in a local JSON file today
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The interface is intentionally tiny: one string value per key. The whole
expense collection is written under a single key, so an overwrite of that
key is the unit of atomicity.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from petty_cash.errors import PersistenceError
from petty_cash.models.audit import AuditEvent


class KeyValueStorageInterface(ABC):
    """
    Abstract interface for a local durable key-value slot.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Returns:
            The stored string, or None if the key was never written

        Raises:
            StorageReadError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Overwrite the value stored under a key.

        The overwrite is all-or-nothing: readers see either the old or
        the new value, never a partial write.

        Raises:
            StorageWriteError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if the key existed
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Events of one user intent, in chronological order."""
        pass

    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """Events for a specific entity, in chronological order."""
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """The most recent events (newest first)."""
        pass


class StorageError(PersistenceError):
    """Base exception for storage operations."""
    pass


class StorageReadError(StorageError):
    """Could not read a key from the backend."""
    pass


class StorageWriteError(StorageError):
    """Could not write a key to the backend."""
    pass
