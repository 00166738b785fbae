"""Process-wide ledger instance shared by all routers."""

import logging
import threading

from custodia.config import get_config
from custodia.ledger import CustodyLedger

logger = logging.getLogger(__name__)

# Lazy singleton
_ledger: CustodyLedger | None = None
_ledger_lock = threading.Lock()


def get_ledger() -> CustodyLedger:
    """Get or create the ledger singleton from the current configuration."""
    global _ledger
    with _ledger_lock:
        if _ledger is None:
            _ledger = CustodyLedger.from_config(get_config())
        return _ledger


def reset_ledger() -> None:
    """Drop the singleton so the next request builds a fresh ledger."""
    global _ledger
    with _ledger_lock:
        _ledger = None
