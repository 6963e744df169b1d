"""
Clock - the delay primitive behind every stage and inter-cycle pause.

A real deployment can swap SystemClock for something that waits on
equipment I/O; anything with a matching sleep() works.
"""

from typing import Protocol

from .cancellation import CancellationSignal, OperationCancelled


class Clock(Protocol):
    """Protocol for cancellable waits"""

    def sleep(self, milliseconds: float, signal: CancellationSignal) -> None:
        """
        Wait for `milliseconds`.

        Raises OperationCancelled if `signal` is raised before or during the wait.
        """
        ...


class SystemClock:
    """Wall-clock waits that wake up the moment the signal is raised."""

    def sleep(self, milliseconds: float, signal: CancellationSignal) -> None:
        signal.raise_if_cancelled()
        if signal.wait(milliseconds / 1000.0):
            raise OperationCancelled("Automation run was cancelled")
