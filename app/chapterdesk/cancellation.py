from __future__ import annotations

from threading import Event

from app.chapterdesk.errors import RequestCancelled


class CancellationToken:
    """
    Tied to the lifetime of whoever issued a backend call (one browser request).
    Once cancelled, responses that arrive afterwards are discarded.
    """

    def __init__(self) -> None:
        self._event = Event()
        self.reason: str | None = None

    def cancel(self, reason: str = "cancelled") -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelled(f"Request cancelled ({self.reason})")
