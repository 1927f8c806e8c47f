"""Cooperative cancellation for export runs."""

import threading

from .errors import ExportCancelled


class CancelToken:
    """Cancellation signal passed explicitly into every blocking call.

    Components check the token before each page, instance and archive
    member, so a cancelled run stops at the next such boundary and
    unwinds through the normal failure path.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation. Safe to call from a signal handler."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, stage: str) -> None:
        """Raise ExportCancelled if cancellation was requested.

        Args:
            stage: Stage name reported on the raised error
        """
        if self._event.is_set():
            raise ExportCancelled(message=f"export cancelled during {stage}", stage=stage)
