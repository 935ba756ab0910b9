"""
Audit Sinks

DESIGN DECISION: The audit logger writes to an abstract sink so the
session trail can be kept in memory today and sent somewhere else later
without touching the logger.

Audit trails are append-only - we never modify recorded events.
"""

from abc import ABC, abstractmethod
from collections import deque
from typing import Optional

from expense_ledger.models.audit import AuditEvent, AuditEventType


class AuditSink(ABC):
    """
    Abstract destination for audit events.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event.

        Returns:
            True if recorded successfully
        """
        pass

    @abstractmethod
    def get_events_by_entry(self, entry_id: int) -> list[AuditEvent]:
        """
        Get all events for a specific ledger entry, oldest first.
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
        event_type: Optional[AuditEventType] = None,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class InMemoryAuditSink(AuditSink):
    """
    Bounded in-memory trail for one session.

    Oldest events are dropped once max_events is reached.
    """

    def __init__(self, max_events: int = 500):
        self._events: deque[AuditEvent] = deque(maxlen=max_events)

    def __len__(self) -> int:
        return len(self._events)

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_entry(self, entry_id: int) -> list[AuditEvent]:
        return [e for e in self._events if e.entity_id == entry_id]

    def get_recent_events(
        self,
        limit: int = 100,
        event_type: Optional[AuditEventType] = None,
    ) -> list[AuditEvent]:
        events = [
            e for e in reversed(self._events)
            if event_type is None or e.event_type == event_type
        ]
        return events[:limit]

    def clear(self) -> None:
        self._events.clear()
