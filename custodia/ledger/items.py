"""Item registry - id issuance, current owner tracking, custody transfer.

Items behave like non-fungible tokens: ids are issued sequentially from 1,
never reused, and each minted item has exactly one owner. There is no burn.
"""

from __future__ import annotations

import logging

from custodia.ledger.clock import LogicalClock
from custodia.ledger.errors import (
    InvalidCustodian,
    ItemNotFound,
    NotOwner,
    NotRegistered,
)
from custodia.ledger.log import ProvenanceLog
from custodia.ledger.participants import ParticipantRegistry
from custodia.ledger.storage import LedgerState
from custodia.ledger.validation import validate_metadata

logger = logging.getLogger(__name__)


class ItemRegistry:
    def __init__(
        self,
        state: LedgerState,
        participants: ParticipantRegistry,
        log: ProvenanceLog,
        clock: LogicalClock,
    ) -> None:
        self._state = state
        self._participants = participants
        self._log = log
        self._clock = clock

    @property
    def last_item_id(self) -> int:
        return self._state.last_item_id

    def item_exists(self, item_id: int) -> bool:
        return item_id in self._state.owners

    def get_owner(self, item_id: int) -> str | None:
        return self._state.owners.get(item_id)

    def register_item(self, caller: str, location: str, notes: str) -> int:
        """Mint the next item id to *caller* and record its first log entry."""
        if not self._participants.is_registered(caller):
            raise NotRegistered(f"caller {caller!r} is not a registered participant")
        location, notes = validate_metadata(location, notes)

        item_id = self._state.last_item_id + 1
        timestamp = self._clock.advance()

        self._log.append(item_id, caller, location, notes, timestamp)
        self._state.last_item_id = item_id
        self._state.owners[item_id] = caller
        return item_id

    def transfer_custody(
        self,
        caller: str,
        item_id: int,
        new_custodian: str,
        location: str,
        notes: str,
    ) -> bool:
        """Hand *item_id* from its current owner to *new_custodian*.

        Checks run in a fixed order so every implementation reports the same
        error for the same input: existence, ownership, target registration,
        self-transfer, metadata, log capacity.
        """
        owner = self._state.owners.get(item_id)
        if owner is None:
            raise ItemNotFound(f"item {item_id} does not exist")
        if caller != owner:
            raise NotOwner(f"{caller!r} is not the owner of item {item_id}")
        if not self._participants.is_registered(new_custodian):
            raise NotRegistered(f"new custodian {new_custodian!r} is not a registered participant")
        if new_custodian == caller:
            raise InvalidCustodian(f"item {item_id} is already held by {caller!r}")
        location, notes = validate_metadata(location, notes)
        self._log.ensure_capacity(item_id)

        timestamp = self._clock.advance()
        self._log.append(item_id, new_custodian, location, notes, timestamp)
        self._state.owners[item_id] = new_custodian
        return True
