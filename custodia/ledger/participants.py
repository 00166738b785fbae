"""Participant registry - the set of identities allowed to hold custody."""

from __future__ import annotations

import logging

from custodia.ledger.errors import AlreadyRegistered, NotRegistered, Unauthorized
from custodia.ledger.storage import LedgerState

logger = logging.getLogger(__name__)


class ParticipantRegistry:
    """Authorize and revoke custodians.

    Only the administrator captured in the ledger state may change the set.
    There is no operation to hand the administrator role to someone else.
    """

    def __init__(self, state: LedgerState) -> None:
        self._state = state

    @property
    def admin(self) -> str:
        return self._state.admin

    def _require_admin(self, caller: str) -> None:
        if caller != self._state.admin:
            raise Unauthorized(f"{caller!r} is not the administrator")

    def register(self, caller: str, participant_id: str) -> None:
        self._require_admin(caller)
        if participant_id in self._state.participants:
            raise AlreadyRegistered(f"participant {participant_id!r} is already registered")
        self._state.participants.add(participant_id)

    def deregister(self, caller: str, participant_id: str) -> None:
        self._require_admin(caller)
        if participant_id not in self._state.participants:
            raise NotRegistered(f"participant {participant_id!r} is not registered")
        self._state.participants.discard(participant_id)

    def is_registered(self, participant_id: str) -> bool:
        return participant_id in self._state.participants

    def count(self) -> int:
        return len(self._state.participants)
