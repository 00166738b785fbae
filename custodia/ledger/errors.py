"""Error taxonomy for custody ledger operations.

Every failure is raised before the first mutation of ledger state, so a
caught ``CustodyError`` always means the operation left no trace.
"""

from __future__ import annotations


class CustodyError(Exception):
    """Base class for all ledger errors. ``code`` is stable across surfaces."""

    code = "CustodyError"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_dict(self) -> dict[str, str]:
        return {"error": self.code, "detail": self.message}


class Unauthorized(CustodyError):
    """Caller lacks administrative rights."""

    code = "Unauthorized"


class ItemNotFound(CustodyError):
    code = "ItemNotFound"


class NotOwner(CustodyError):
    code = "NotOwner"


class AlreadyRegistered(CustodyError):
    code = "AlreadyRegistered"


class NotRegistered(CustodyError):
    code = "NotRegistered"


class InvalidCustodian(CustodyError):
    """Transfer target is the current owner."""

    code = "InvalidCustodian"


class ValidationFailed(CustodyError):
    """A metadata string is empty or longer than its field maximum.

    Both conditions share this error code; ``reason`` tells them apart
    ("empty" or "too_long") for callers that care.
    """

    code = "ValidationFailed"

    def __init__(self, field: str, reason: str, message: str = "") -> None:
        super().__init__(message or f"{field} is {reason.replace('_', ' ')}")
        self.field = field
        self.reason = reason

    def to_dict(self) -> dict[str, str]:
        data = super().to_dict()
        data["field"] = self.field
        data["reason"] = self.reason
        return data


class LogFull(CustodyError):
    """The item's provenance log reached its capacity ceiling. Permanent."""

    code = "LogFull"
