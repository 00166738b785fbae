"""
Custodia - append-only chain-of-custody ledger for uniquely identified items.
"""

__version__ = "0.1.0"

from custodia.config import Config, get_config
from custodia.ledger import CustodyLedger, CustodyError, LogEntry

__all__ = [
    "Config",
    "get_config",
    "CustodyLedger",
    "CustodyError",
    "LogEntry",
]
