"""Ledger state container and optional JSON snapshot persistence."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from custodia.ledger.log import LogEntry

logger = logging.getLogger(__name__)

STATE_FORMAT_VERSION = 1


@dataclass
class LedgerState:
    """All mutable ledger state in one place.

    The participant registry, item registry and provenance log hold
    references to these containers; only ``CustodyLedger`` mutates them,
    and only while holding its write lock.
    """

    admin: str
    participants: set[str] = field(default_factory=set)
    last_item_id: int = 0
    owners: dict[int, str] = field(default_factory=dict)
    logs: dict[int, list[LogEntry]] = field(default_factory=dict)
    height: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": STATE_FORMAT_VERSION,
            "admin": self.admin,
            "participants": sorted(self.participants),
            "last_item_id": self.last_item_id,
            "owners": {str(k): v for k, v in sorted(self.owners.items())},
            "logs": {
                str(k): [e.to_dict() for e in entries]
                for k, entries in sorted(self.logs.items())
            },
            "height": self.height,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LedgerState:
        version = data.get("version", STATE_FORMAT_VERSION)
        if version != STATE_FORMAT_VERSION:
            raise ValueError(f"Unsupported ledger state version: {version}")
        state = cls(
            admin=data["admin"],
            participants=set(data.get("participants", [])),
            last_item_id=int(data.get("last_item_id", 0)),
            owners={int(k): v for k, v in data.get("owners", {}).items()},
            logs={
                int(k): [LogEntry.from_dict(e) for e in entries]
                for k, entries in data.get("logs", {}).items()
            },
            height=int(data.get("height", 0)),
        )
        state.check_consistency()
        return state

    def restore(self, other: LedgerState) -> None:
        """Overwrite this state in place with *other*.

        The registries hold references to the containers, so they are
        refilled rather than replaced.
        """
        self.participants.clear()
        self.participants.update(other.participants)
        self.last_item_id = other.last_item_id
        self.owners.clear()
        self.owners.update(other.owners)
        self.logs.clear()
        self.logs.update({k: list(v) for k, v in other.logs.items()})
        self.height = other.height

    def check_consistency(self) -> None:
        """Raise ``ValueError`` if the custody invariants do not hold."""
        expected_ids = set(range(1, self.last_item_id + 1))
        if set(self.owners) != expected_ids:
            raise ValueError("owner map does not cover item ids 1..last_item_id")
        if set(self.logs) != expected_ids:
            raise ValueError("provenance logs do not cover item ids 1..last_item_id")
        for item_id, entries in self.logs.items():
            if not entries:
                raise ValueError(f"item {item_id} has an empty provenance log")
            if entries[-1].custodian != self.owners[item_id]:
                raise ValueError(f"item {item_id}: last custodian is not the current owner")
            stamps = [e.timestamp for e in entries]
            if stamps != sorted(stamps):
                raise ValueError(f"item {item_id}: log timestamps are not chronological")
            if stamps[-1] > self.height:
                raise ValueError(f"item {item_id}: log timestamp ahead of ledger height")


class JsonStateStore:
    """Persist ``LedgerState`` snapshots to a single JSON file.

    Writes go to a temporary file in the same directory and are moved into
    place with ``os.replace`` so a crash never leaves a half-written file.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> LedgerState | None:
        """Return the stored state, or None if no snapshot exists yet."""
        if not self._path.exists():
            return None
        with open(self._path, encoding="utf-8") as f:
            data = json.load(f)
        state = LedgerState.from_dict(data)
        logger.info(
            "Loaded ledger state from %s (items=%d, participants=%d)",
            self._path,
            state.last_item_id,
            len(state.participants),
        )
        return state

    def save(self, state: LedgerState) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".ledger-", suffix=".json", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(state.to_dict(), f, indent=2)
            os.replace(tmp_name, self._path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
