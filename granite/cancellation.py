"""
Cooperative cancellation for long-running client operations.

A token is passed down through every async boundary of an operation
(schema introspection, prefix deletion, single requests) and checked at
each suspension point. Cancelling never interrupts a request in flight;
the operation stops at the next check.
"""

import threading

from .exceptions import OperationCancelledError


class CancellationToken:
    """
    Cancellation flag shared between a caller and a running operation.

    Example:
        token = CancellationToken()
        task = asyncio.create_task(storage.delete_prefix("photos", "2023/", cancel_token=token))
        ...
        token.cancel()
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, operation: str = "Operation") -> None:
        if self._event.is_set():
            raise OperationCancelledError(f"{operation} cancelled")

    def __repr__(self):
        return f"<CancellationToken cancelled={self.cancelled}>"
