"""Participant registry endpoints (administrator operations and lookup)."""

import logging

from fastapi import APIRouter, Depends

from custodia.api.auth import rate_limit_default, require_caller
from custodia.api.dependencies import get_ledger
from custodia.api.models import OkResponse, ParticipantRequest, ParticipantStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["participants"], dependencies=[Depends(rate_limit_default)])


@router.post("/participants", response_model=OkResponse, status_code=201)
def register_participant(request: ParticipantRequest, caller: str = Depends(require_caller)):
    """Authorize a participant. Administrator only."""
    get_ledger().register_participant(caller, request.participant_id)
    return OkResponse()


@router.delete("/participants/{participant_id}", response_model=OkResponse)
def deregister_participant(participant_id: str, caller: str = Depends(require_caller)):
    """Revoke a participant. Items they hold and past log entries are untouched."""
    get_ledger().deregister_participant(caller, participant_id)
    return OkResponse()


@router.get("/participants/{participant_id}", response_model=ParticipantStatus)
def is_participant_registered(participant_id: str):
    return ParticipantStatus(
        participant_id=participant_id,
        registered=get_ledger().is_participant_registered(participant_id),
    )
