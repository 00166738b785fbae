"""Health check endpoint."""

import logging

from fastapi import APIRouter

from custodia.api.dependencies import get_ledger
from custodia.api.models import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health():
    """Report whether the ledger is loaded. No authentication required."""
    try:
        summary = get_ledger().summary()
    except (OSError, ValueError):
        logger.warning("Ledger health check failed", exc_info=True)
        return HealthResponse(status="offline")

    return HealthResponse(
        status="healthy",
        ledger_ready=True,
        persistent=summary["persistent"],
        items=summary["items"],
    )
