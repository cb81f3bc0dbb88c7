"""Cooperative cancellation flag checked at compilation-unit boundaries."""

from __future__ import annotations

import threading
from concurrent.futures import CancelledError


class CancellationToken:
    """Set once, observed by every unit of work of one build."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason: str | None = None

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def check(self) -> None:
        """Raise ``concurrent.futures.CancelledError`` once cancelled."""
        if self._event.is_set():
            raise CancelledError(self.reason or "cancelled")
