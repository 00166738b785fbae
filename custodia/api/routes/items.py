"""Item endpoints - registration, custody transfer, owner and log queries."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path

from custodia.api.auth import rate_limit_default, require_caller
from custodia.api.dependencies import get_ledger
from custodia.api.models import (
    ExistsResponse,
    LogEntryModel,
    OkResponse,
    OwnerResponse,
    ProvenanceLogResponse,
    RegisterItemRequest,
    RegisterItemResponse,
    TransferRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["items"], dependencies=[Depends(rate_limit_default)])

MAX_ITEM_ID = 2**64 - 1

ItemId = Annotated[int, Path(ge=0, le=MAX_ITEM_ID)]


@router.post("/items", response_model=RegisterItemResponse, status_code=201)
def register_item(request: RegisterItemRequest, caller: str = Depends(require_caller)):
    """Mint a new item owned by the caller and open its provenance log."""
    item_id = get_ledger().register_item(caller, request.location, request.notes)
    return RegisterItemResponse(item_id=item_id)


@router.post("/items/{item_id}/transfer", response_model=OkResponse)
def transfer_custody(
    item_id: ItemId,
    request: TransferRequest,
    caller: str = Depends(require_caller),
):
    """Hand an item to another registered participant. Current owner only."""
    get_ledger().transfer_custody(
        caller,
        item_id,
        request.new_custodian,
        request.location,
        request.notes,
    )
    return OkResponse()


@router.get("/items/{item_id}/owner", response_model=OwnerResponse)
def get_item_owner(item_id: ItemId):
    return OwnerResponse(item_id=item_id, owner=get_ledger().get_item_owner(item_id))


@router.get("/items/{item_id}/exists", response_model=ExistsResponse)
def item_exists(item_id: ItemId):
    return ExistsResponse(item_id=item_id, exists=get_ledger().item_exists(item_id))


@router.get("/items/{item_id}/log", response_model=ProvenanceLogResponse)
def get_provenance_log(item_id: ItemId):
    """Return the ordered custody history; empty for unknown items."""
    entries = get_ledger().get_provenance_log(item_id)
    return ProvenanceLogResponse(
        item_id=item_id,
        entries=[LogEntryModel(**e.to_dict()) for e in entries],
    )
