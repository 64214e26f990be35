#!/usr/bin/env python3
"""Cooperative cancellation shared by sync strategies and async analyzers."""

import threading

from chunkwise.domain.exceptions import OperationCancelledError


class CancellationToken:
    """
    Thread-safe cancellation flag.

    Loops that iterate segments call ``raise_if_cancelled`` once per segment.
    A ``threading.Event`` backs the flag so the token also works inside
    strategies running in an executor thread.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, operation: str, processed: int | None = None) -> None:
        """
        Raise if cancellation was requested.

        Raises:
            OperationCancelledError: If the token has been cancelled
        """
        if self._event.is_set():
            raise OperationCancelledError(operation, processed)


def check_cancelled(token: CancellationToken | None, operation: str, processed: int | None = None) -> None:
    """Raise if ``token`` is set and cancelled; a missing token never cancels."""
    if token is not None:
        token.raise_if_cancelled(operation, processed)
