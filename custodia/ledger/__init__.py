"""Custodia ledger - participant authorization, item custody, provenance logs.

Core components:
    ParticipantRegistry  - Admin-maintained set of authorized custodians
    ItemRegistry         - Sequential item ids and current-owner tracking
    ProvenanceLog        - Append-only, 50-entry-capped custody history per item
    LogicalClock         - Non-decreasing height used to timestamp log entries
    EventBus             - One-way item-registered / custody-transferred notifications
    LedgerState          - The single state object shared by the components
    JsonStateStore       - Optional atomic JSON snapshot persistence
    CustodyLedger        - Serialized public operation surface
"""

from custodia.ledger.clock import LogicalClock
from custodia.ledger.errors import (
    AlreadyRegistered,
    CustodyError,
    InvalidCustodian,
    ItemNotFound,
    LogFull,
    NotOwner,
    NotRegistered,
    Unauthorized,
    ValidationFailed,
)
from custodia.ledger.events import (
    CUSTODY_TRANSFERRED,
    ITEM_REGISTERED,
    EventBus,
    LedgerEvent,
)
from custodia.ledger.items import ItemRegistry
from custodia.ledger.log import MAX_LOG_ENTRIES, LogEntry, ProvenanceLog
from custodia.ledger.manager import CustodyLedger
from custodia.ledger.participants import ParticipantRegistry
from custodia.ledger.storage import JsonStateStore, LedgerState
from custodia.ledger.validation import (
    MAX_LOCATION_LENGTH,
    MAX_NOTES_LENGTH,
    validate_location,
    validate_notes,
)

__all__ = [
    "AlreadyRegistered",
    "CUSTODY_TRANSFERRED",
    "CustodyError",
    "CustodyLedger",
    "EventBus",
    "ITEM_REGISTERED",
    "InvalidCustodian",
    "ItemNotFound",
    "ItemRegistry",
    "JsonStateStore",
    "LedgerEvent",
    "LedgerState",
    "LogEntry",
    "LogFull",
    "LogicalClock",
    "MAX_LOCATION_LENGTH",
    "MAX_LOG_ENTRIES",
    "MAX_NOTES_LENGTH",
    "NotOwner",
    "NotRegistered",
    "ParticipantRegistry",
    "ProvenanceLog",
    "Unauthorized",
    "ValidationFailed",
    "validate_location",
    "validate_notes",
]
