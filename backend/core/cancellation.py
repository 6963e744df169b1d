"""
Cooperative cancellation for automation runs.

One CancellationSignal is created per run. It can be raised once and
is never reset; a new run gets a new signal.
"""

import threading
from typing import Optional


class OperationCancelled(Exception):
    """Raised at a suspension point once the run's signal has been raised"""
    pass


class CancellationSignal:
    """
    Raise-once cancellation flag shared between the caller and the loop.

    Thread-safe: backed by threading.Event, so cancel() from the caller's
    thread is immediately visible to a wait() on the loop thread.
    """

    def __init__(self):
        self._event: Optional[threading.Event] = threading.Event()

    @property
    def is_cancelled(self) -> bool:
        return self._event is None or self._event.is_set()

    @property
    def is_closed(self) -> bool:
        return self._event is None

    def cancel(self) -> None:
        """Raise the signal. Repeated calls are harmless."""
        if self._event is not None:
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self.is_cancelled:
            raise OperationCancelled("Automation run was cancelled")

    def wait(self, seconds: float) -> bool:
        """
        Block up to `seconds`, returning True as soon as the signal is raised.
        """
        if self._event is None:
            return True
        return self._event.wait(max(0.0, seconds))

    def close(self) -> None:
        """
        Release the signal. A closed signal reads as cancelled, so any
        straggling waiter fails fast instead of sleeping.
        """
        if self._event is not None:
            self._event.set()
            self._event = None
