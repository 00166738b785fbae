"""Pydantic request/response models for the Custodia API.

Identities, location and notes are plain strings: every rule about them is
enforced by the ledger, in its fixed check order, so API callers get the
same error codes as library callers.
"""

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Participants
# ---------------------------------------------------------------------------

class ParticipantRequest(BaseModel):
    participant_id: str


class ParticipantStatus(BaseModel):
    participant_id: str
    registered: bool


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------

class RegisterItemRequest(BaseModel):
    location: str
    notes: str


class RegisterItemResponse(BaseModel):
    item_id: int


class TransferRequest(BaseModel):
    new_custodian: str
    location: str
    notes: str


class OkResponse(BaseModel):
    ok: bool = True


class OwnerResponse(BaseModel):
    item_id: int
    owner: str | None = None


class ExistsResponse(BaseModel):
    item_id: int
    exists: bool


class LogEntryModel(BaseModel):
    custodian: str
    timestamp: int
    location: str
    notes: str


class ProvenanceLogResponse(BaseModel):
    item_id: int
    entries: list[LogEntryModel] = []


class LedgerSummary(BaseModel):
    admin: str
    participants: int = 0
    items: int = 0
    log_entries: int = 0
    height: int = 0
    persistent: bool = False


class LastItemIdResponse(BaseModel):
    last_item_id: int


# ---------------------------------------------------------------------------
# Errors / health
# ---------------------------------------------------------------------------

class ErrorResponse(BaseModel):
    error: str
    detail: str = ""
    field: str | None = None
    reason: str | None = None


class HealthResponse(BaseModel):
    status: str = "healthy"
    ledger_ready: bool = False
    persistent: bool = False
    items: int = 0
