"""
Events - Notification channel between the controller and its subscribers
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List

from core.types import AutomationState, NotificationKind
from core.logger import log_warn


class NotificationChannel:
    """
    Synchronous publish/subscribe for the three notification kinds.

    Callbacks run in-line on the emitting thread, in the order the
    controller emits. Nothing is buffered or replayed for late subscribers.
    """

    def __init__(self):
        self._subscribers: Dict[NotificationKind, List[Callable[[Any], None]]] = {
            kind: [] for kind in NotificationKind
        }
        self._lock = threading.Lock()

    # =========================================================================
    # Subscription
    # =========================================================================

    def subscribe(self, kind: NotificationKind, callback: Callable[[Any], None]) -> None:
        with self._lock:
            self._subscribers[kind].append(callback)

    def unsubscribe(self, kind: NotificationKind, callback: Callable[[Any], None]) -> None:
        """Remove a callback. Unknown callbacks are ignored."""
        with self._lock:
            try:
                self._subscribers[kind].remove(callback)
            except ValueError:
                pass

    def on_state_changed(self, callback: Callable[[AutomationState], None]) -> None:
        self.subscribe(NotificationKind.STATE_CHANGED, callback)

    def on_log_message(self, callback: Callable[[str], None]) -> None:
        self.subscribe(NotificationKind.LOG_MESSAGE, callback)

    def on_error_occurred(self, callback: Callable[[Exception], None]) -> None:
        self.subscribe(NotificationKind.ERROR_OCCURRED, callback)

    def subscriber_count(self, kind: NotificationKind) -> int:
        with self._lock:
            return len(self._subscribers[kind])

    # =========================================================================
    # Emission
    # =========================================================================

    def emit(self, kind: NotificationKind, payload: Any) -> None:
        # Snapshot so a callback may (un)subscribe while being notified
        with self._lock:
            callbacks = list(self._subscribers[kind])

        for callback in callbacks:
            try:
                callback(payload)
            except Exception as e:
                log_warn(f"[EVENTS] {kind.name} subscriber failed: {e}")

    def emit_state_changed(self, state: AutomationState) -> None:
        self.emit(NotificationKind.STATE_CHANGED, state)

    def emit_log_message(self, message: str) -> None:
        self.emit(NotificationKind.LOG_MESSAGE, message)

    def emit_error_occurred(self, error: Exception) -> None:
        self.emit(NotificationKind.ERROR_OCCURRED, error)
