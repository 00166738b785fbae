"""Append-only, capacity-bounded provenance log keyed by item id."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

from custodia.ledger.errors import LogFull

logger = logging.getLogger(__name__)

MAX_LOG_ENTRIES = 50


@dataclass(frozen=True)
class LogEntry:
    """One custody event. Never edited once recorded."""

    custodian: str
    timestamp: int
    location: str
    notes: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LogEntry:
        return cls(
            custodian=data["custodian"],
            timestamp=int(data["timestamp"]),
            location=data["location"],
            notes=data["notes"],
        )


class ProvenanceLog:
    """Per-item ordered entry lists with a hard length cap.

    Insertion order is chronological order is custody order. Appending past
    ``MAX_LOG_ENTRIES`` raises ``LogFull``; nothing is ever overwritten.
    The log does not validate ownership or metadata - the item registry
    does that before calling ``append``.
    """

    def __init__(self, entries: dict[int, list[LogEntry]] | None = None) -> None:
        self._entries: dict[int, list[LogEntry]] = entries if entries is not None else {}

    def length(self, item_id: int) -> int:
        return len(self._entries.get(item_id, ()))

    def ensure_capacity(self, item_id: int) -> None:
        """Raise ``LogFull`` if one more entry would exceed the ceiling."""
        if self.length(item_id) >= MAX_LOG_ENTRIES:
            raise LogFull(f"provenance log for item {item_id} holds {MAX_LOG_ENTRIES} entries")

    def append(
        self,
        item_id: int,
        custodian: str,
        location: str,
        notes: str,
        timestamp: int,
    ) -> LogEntry:
        self.ensure_capacity(item_id)
        entries = self._entries.setdefault(item_id, [])
        if entries and timestamp < entries[-1].timestamp:
            raise ValueError(
                f"timestamp {timestamp} precedes last entry ({entries[-1].timestamp}) of item {item_id}"
            )
        entry = LogEntry(custodian=custodian, timestamp=timestamp, location=location, notes=notes)
        entries.append(entry)
        logger.debug("Appended entry %d to item %d (custodian=%s)", len(entries), item_id, custodian)
        return entry

    def get_log(self, item_id: int) -> list[LogEntry]:
        """Return a copy of the item's entries, empty if it was never registered."""
        return list(self._entries.get(item_id, ()))

    def last_entry(self, item_id: int) -> LogEntry | None:
        entries = self._entries.get(item_id)
        return entries[-1] if entries else None
