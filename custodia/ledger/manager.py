"""CustodyLedger - the single serializing entry point for all operations.

Composes the participant registry, item registry, provenance log, logical
clock and event bus around one ``LedgerState``. Every public operation runs
under one re-entrant lock, so operations apply atomically and no caller ever
observes intermediate state. Notifications are recorded under the lock and
delivered to observers after it is released.
"""

from __future__ import annotations

import copy
import logging
import threading
from typing import Any, Callable

from custodia.ledger.clock import LogicalClock
from custodia.ledger.errors import CustodyError
from custodia.ledger.events import CUSTODY_TRANSFERRED, ITEM_REGISTERED, EventBus
from custodia.ledger.items import ItemRegistry
from custodia.ledger.log import LogEntry, ProvenanceLog
from custodia.ledger.participants import ParticipantRegistry
from custodia.ledger.storage import JsonStateStore, LedgerState

logger = logging.getLogger(__name__)


class CustodyLedger:
    """Public operation surface of the custody ledger.

    The administrator is fixed when the ledger is created (or restored from
    a snapshot) and cannot be changed afterwards.
    """

    def __init__(
        self,
        admin: str | None = None,
        *,
        state: LedgerState | None = None,
        store: JsonStateStore | None = None,
        clock_source: Callable[[], int] | None = None,
        event_history_size: int = 1000,
    ) -> None:
        if state is None:
            if not admin:
                raise ValueError("an administrator identity is required")
            state = LedgerState(admin=admin)
        elif admin and admin != state.admin:
            logger.warning(
                "Ignoring configured administrator %r; restored state is administered by %r",
                admin,
                state.admin,
            )

        self._state = state
        self._store = store
        self._lock = threading.RLock()
        self._clock = LogicalClock(start=state.height, source=clock_source)
        self._log = ProvenanceLog(state.logs)
        self._participants = ParticipantRegistry(state)
        self._items = ItemRegistry(state, self._participants, self._log, self._clock)
        self._events = EventBus(history_size=event_history_size)
        self._needs_backup = store is not None or clock_source is not None

    @classmethod
    def from_config(cls, config: Any) -> CustodyLedger:
        """Build a ledger from settings, restoring a persisted snapshot if any."""
        store = JsonStateStore(config.state_path) if config.state_path else None
        state = store.load() if store is not None else None
        ledger = cls(
            admin=config.admin_id,
            state=state,
            store=store,
            event_history_size=config.event_history_size,
        )
        logger.info(
            "Custody ledger ready - admin=%s, items=%d, persistence=%s",
            ledger.admin,
            ledger.get_last_item_id(),
            store.path if store is not None else "memory",
        )
        return ledger

    @property
    def admin(self) -> str:
        return self._state.admin

    @property
    def events(self) -> EventBus:
        return self._events

    # -- Internal -------------------------------------------------------------

    @staticmethod
    def _check_item_id(item_id: Any) -> int:
        if isinstance(item_id, bool) or not isinstance(item_id, int):
            raise TypeError(f"item id must be an int, got {type(item_id).__name__}")
        return item_id

    def _commit(self) -> None:
        self._state.height = self._clock.now()
        if self._store is not None:
            self._store.save(self._state)

    def _apply(self, operation: str, caller: str, func: Callable[[], Any]) -> Any:
        """Run *func* and persist the result, all or nothing.

        Domain errors are raised by *func* before it mutates anything. Any
        later failure (snapshot save, injected clock source) restores the
        state and height captured before the operation.
        """
        backup = copy.deepcopy(self._state) if self._needs_backup else None
        height = self._clock.now()
        try:
            result = func()
            self._commit()
        except CustodyError as e:
            logger.warning("%s rejected for caller=%s: %s (%s)", operation, caller, e.code, e.message)
            raise
        except Exception:
            if backup is not None:
                self._state.restore(backup)
            self._clock.reset(height)
            logger.error("%s rolled back for caller=%s", operation, caller, exc_info=True)
            raise
        return result

    # -- Administrative operations --------------------------------------------

    def register_participant(self, caller: str, participant_id: str) -> bool:
        def op() -> None:
            self._participants.register(caller, participant_id)
            self._clock.advance()

        with self._lock:
            self._apply("register_participant", caller, op)
        logger.info("Participant registered: %s", participant_id)
        return True

    def deregister_participant(self, caller: str, participant_id: str) -> bool:
        def op() -> None:
            self._participants.deregister(caller, participant_id)
            self._clock.advance()

        with self._lock:
            self._apply("deregister_participant", caller, op)
        logger.info("Participant deregistered: %s", participant_id)
        return True

    # -- Asset operations -----------------------------------------------------

    def register_item(self, caller: str, location: str, notes: str) -> int:
        """Mint a new item owned by *caller*. Returns the new item id."""
        with self._lock:
            item_id = self._apply(
                "register_item",
                caller,
                lambda: self._items.register_item(caller, location, notes),
            )
            event = self._events.record(ITEM_REGISTERED, item_id, {"owner": caller}, self._clock.now())
        logger.info("Item %d registered by %s at %s", item_id, caller, location)
        self._events.dispatch(event)
        return item_id

    def transfer_custody(
        self,
        caller: str,
        item_id: int,
        new_custodian: str,
        location: str,
        notes: str,
    ) -> bool:
        self._check_item_id(item_id)
        with self._lock:
            self._apply(
                "transfer_custody",
                caller,
                lambda: self._items.transfer_custody(caller, item_id, new_custodian, location, notes),
            )
            event = self._events.record(
                CUSTODY_TRANSFERRED,
                item_id,
                {"from": caller, "to": new_custodian},
                self._clock.now(),
            )
        logger.info("Item %d transferred %s -> %s at %s", item_id, caller, new_custodian, location)
        self._events.dispatch(event)
        return True

    # -- Queries --------------------------------------------------------------

    def get_item_owner(self, item_id: int) -> str | None:
        self._check_item_id(item_id)
        with self._lock:
            return self._items.get_owner(item_id)

    def get_provenance_log(self, item_id: int) -> list[LogEntry]:
        self._check_item_id(item_id)
        with self._lock:
            return self._log.get_log(item_id)

    def is_participant_registered(self, participant_id: str) -> bool:
        with self._lock:
            return self._participants.is_registered(participant_id)

    def get_last_item_id(self) -> int:
        with self._lock:
            return self._items.last_item_id

    def item_exists(self, item_id: int) -> bool:
        self._check_item_id(item_id)
        with self._lock:
            return self._items.item_exists(item_id)

    def summary(self) -> dict[str, Any]:
        """Return counts describing the ledger."""
        with self._lock:
            return {
                "admin": self._state.admin,
                "participants": self._participants.count(),
                "items": self._items.last_item_id,
                "log_entries": sum(len(v) for v in self._state.logs.values()),
                "height": self._clock.now(),
                "persistent": self._store is not None,
            }
