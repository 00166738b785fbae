"""One-way notifications for observers and indexers.

Events are published after an operation commits. Delivery is best effort:
a failing handler is logged and skipped, it never affects the ledger and is
never retried.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger(__name__)

ITEM_REGISTERED = "item-registered"
CUSTODY_TRANSFERRED = "custody-transferred"
EVENT_NAMES = (ITEM_REGISTERED, CUSTODY_TRANSFERRED)

EventHandler = Callable[["LedgerEvent"], Any]


@dataclass(frozen=True)
class LedgerEvent:
    name: str
    item_id: int
    participants: dict[str, str] = field(default_factory=dict)
    timestamp: int = 0
    sequence: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "event": self.name,
            "item_id": self.item_id,
            **self.participants,
            "timestamp": self.timestamp,
            "sequence": self.sequence,
        }


class EventBus:
    """Synchronous pub/sub with a bounded history of recent events."""

    def __init__(self, history_size: int = 1000) -> None:
        self._handlers: list[tuple[str | None, EventHandler]] = []
        self._history: deque[LedgerEvent] = deque(maxlen=history_size)
        self._sequence = 0
        self._lock = threading.Lock()

    def subscribe(self, handler: EventHandler, name: str | None = None) -> EventHandler:
        """Register *handler* for events called *name* (all events if None)."""
        if name is not None and name not in EVENT_NAMES:
            raise ValueError(f"Unknown event name: {name}")
        with self._lock:
            self._handlers.append((name, handler))
        return handler

    def unsubscribe(self, handler: EventHandler) -> bool:
        with self._lock:
            before = len(self._handlers)
            self._handlers = [(n, h) for n, h in self._handlers if h is not handler]
            return len(self._handlers) != before

    def record(self, name: str, item_id: int, participants: dict[str, str], timestamp: int) -> LedgerEvent:
        """Build the next sequenced event and add it to the history.

        Handlers are not called; pass the event to ``dispatch`` for that.
        """
        with self._lock:
            self._sequence += 1
            event = LedgerEvent(
                name=name,
                item_id=item_id,
                participants=dict(participants),
                timestamp=timestamp,
                sequence=self._sequence,
            )
            self._history.append(event)
        return event

    def emit(self, name: str, item_id: int, participants: dict[str, str], timestamp: int) -> LedgerEvent:
        """Record an event and deliver it to subscribers."""
        event = self.record(name, item_id, participants, timestamp)
        self.dispatch(event)
        return event

    def dispatch(self, event: LedgerEvent) -> None:
        with self._lock:
            handlers = [h for n, h in self._handlers if n is None or n == event.name]
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.warning(
                    "Event handler %r failed for %s (item %d)",
                    handler,
                    event.name,
                    event.item_id,
                    exc_info=True,
                )

    def recent(self, limit: int | None = None) -> list[LedgerEvent]:
        """Return the most recent events, oldest first."""
        with self._lock:
            events = list(self._history)
        if limit is not None:
            events = events[-limit:] if limit > 0 else []
        return events
