"""
Key-value implementation of audit log storage.

The log is a JSON array kept under one key. Appends rewrite the array;
audit volume for a petty-cash fund is small enough for that.
"""

from typing import Optional
from uuid import UUID

import structlog
from pydantic import TypeAdapter

from petty_cash.models.audit import AuditEvent
from petty_cash.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStorageInterface,
    StorageReadError,
)


logger = structlog.get_logger(__name__)

_EVENTS = TypeAdapter(list[AuditEvent])


class KeyValueAuditStorage(AuditStorageInterface):
    """
    Audit log stored in a key-value slot.

    Audit events are append-only.
    """

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        key: str = "cajachica_audit",
        max_events: Optional[int] = 5000,
    ):
        self._storage = storage
        self._key = key
        self._max_events = max_events

    def _load(self) -> list[AuditEvent]:
        raw = self._storage.get(self._key)
        if not raw:
            return []
        try:
            return _EVENTS.validate_json(raw)
        except ValueError as e:
            raise StorageReadError(f"Audit log under {self._key} is unreadable: {e}") from e

    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            events = self._load()
            events.append(event)
            if self._max_events is not None and len(events) > self._max_events:
                # Oldest events fall off; the slot stays bounded
                events = events[-self._max_events:]
            self._storage.set(self._key, _EVENTS.dump_json(events).decode("utf-8"))
            return True
        except Exception as e:
            # Don't raise - audit logging should not break the main flow
            logger.warning(
                "audit_append_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._load() if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._load()
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = self._load()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
