"""Cooperative cancellation shared between coroutines and worker threads."""

import threading
from typing import Optional

from .exceptions import OperationCancelledError


class CancellationToken:
    """
    Flag checked by long-running operations at page and chunk boundaries.

    Backed by a ``threading.Event`` so it can be observed from code running
    in ``asyncio.to_thread`` workers as well as from the event loop.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, operation: Optional[str] = None) -> None:
        """Raise OperationCancelledError if cancellation was requested."""
        if self._event.is_set():
            message = f"{operation} cancelled" if operation else "Operation cancelled"
            raise OperationCancelledError(message, operation=operation)


def check_cancelled(token: Optional[CancellationToken], operation: Optional[str] = None) -> None:
    """Check an optional token."""
    if token is not None:
        token.raise_if_cancelled(operation)
