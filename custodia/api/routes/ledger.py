"""Ledger-wide queries: summary, last item id, recent notifications."""

from typing import Any

from fastapi import APIRouter, Depends, Query

from custodia.api.auth import rate_limit_default
from custodia.api.dependencies import get_ledger
from custodia.api.models import LastItemIdResponse, LedgerSummary

router = APIRouter(prefix="/api", tags=["ledger"], dependencies=[Depends(rate_limit_default)])


@router.get("/ledger", response_model=LedgerSummary)
def ledger_summary():
    return LedgerSummary(**get_ledger().summary())


@router.get("/ledger/last-item-id", response_model=LastItemIdResponse)
def get_last_item_id():
    return LastItemIdResponse(last_item_id=get_ledger().get_last_item_id())


@router.get("/ledger/events")
def recent_events(limit: int = Query(default=50, ge=1, le=1000)) -> dict[str, Any]:
    """Return recent item-registered / custody-transferred notifications."""
    events = get_ledger().events.recent(limit)
    return {"events": [e.to_dict() for e in events], "count": len(events)}
