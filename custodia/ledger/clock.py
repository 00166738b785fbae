"""Monotonic logical clock standing in for ledger block height."""

from __future__ import annotations

import threading
from typing import Callable


class LogicalClock:
    """Non-decreasing height counter.

    Without a source, every ``advance()`` moves the height forward by one.
    With an injected *source* (e.g. a wall-clock or an external block
    height feed), ``advance()`` adopts the source value but never moves
    backwards.
    """

    def __init__(self, start: int = 0, source: Callable[[], int] | None = None) -> None:
        if start < 0:
            raise ValueError("clock start must be >= 0")
        self._height = start
        self._source = source
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            return self._height

    def reset(self, height: int) -> None:
        """Return to *height* after an operation that did not commit."""
        if height < 0:
            raise ValueError("clock height must be >= 0")
        with self._lock:
            self._height = height

    def advance(self) -> int:
        """Move to the next height and return it."""
        with self._lock:
            if self._source is None:
                self._height += 1
            else:
                self._height = max(self._height, int(self._source()))
            return self._height
