"""
Automation Controller - Main facade for the staged automation loop.

Owns the current state, the running flag, the per-run cancellation
signal and the background loop thread. Stage work is delegated to the
handler table; the controller only applies the returned transitions
and broadcasts what happened.
"""

from __future__ import annotations

import asyncio
import threading
from collections import deque
from typing import Any, Deque, Dict, Mapping, Optional, Tuple, TYPE_CHECKING

from core.types import AutomationState, NotificationKind, Transition
from core.cancellation import CancellationSignal, OperationCancelled
from core.clock import Clock, SystemClock
from core.settings import AutomationSettings
from core.logger import log_ok, log_state, log_cancel, log_critical, log_warn
from automation.events import NotificationChannel
from automation.handlers import (
    DecisionPredicates,
    StageContext,
    StageHandler,
    create_default_handlers,
)

if TYPE_CHECKING:
    from fetch.client import DataFetcher
    from fetch.url_store import IUrlStore


class AutomationController:
    """
    Drives equipment through the fixed automation states.

    Usage:
        ctrl = AutomationController()
        ctrl.events.on_state_changed(print)
        ctrl.start_automation()      # returns immediately
        ...
        await ctrl.stop_automation_async()   # or ctrl.stop_automation()

    Thread-safety: state writes are short critical sections that also queue
    the matching notifications. Subscribers run outside that lock, one
    delivering thread at a time, in the exact order the writes were made.
    A thread that finds delivery busy leaves its notifications to the
    thread already delivering, so emergency_stop() never waits on a
    subscriber.
    """

    def __init__(
        self,
        settings: Optional[AutomationSettings] = None,
        handlers: Optional[Mapping[AutomationState, StageHandler]] = None,
        predicates: Optional[DecisionPredicates] = None,
        clock: Optional[Clock] = None,
        events: Optional[NotificationChannel] = None,
        fetcher: Optional["DataFetcher"] = None,
        urls: Optional["IUrlStore"] = None,
    ):
        self.settings = settings or AutomationSettings()
        self.predicates = predicates or DecisionPredicates()
        self.events = events or NotificationChannel()
        self._clock: Clock = clock or SystemClock()
        self._fetcher = fetcher
        self._urls = urls

        self._handlers: Dict[AutomationState, StageHandler] = create_default_handlers()
        if handlers:
            self._handlers.update(handlers)

        self._state = AutomationState.IDLE
        self._running = False
        self._signal: Optional[CancellationSignal] = None
        self._loop_thread: Optional[threading.Thread] = None
        self._lock = threading.RLock()
        self._disposed = False

        # Not reentrant: a subscriber that triggers a write only queues it
        self._delivery_lock = threading.Lock()
        self._pending: Deque[Tuple[NotificationKind, Any]] = deque()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def state(self) -> AutomationState:
        """Current automation state."""
        return self._state

    @property
    def is_running(self) -> bool:
        """Whether the automation loop is active."""
        return self._running

    @property
    def handlers(self) -> Dict[AutomationState, StageHandler]:
        """Copy of the active handler table."""
        return dict(self._handlers)

    def set_handler(self, state: AutomationState, handler: StageHandler) -> None:
        """Replace the handler for one state. Takes effect on its next dispatch."""
        self._handlers[state] = handler

    # =========================================================================
    # Public API
    # =========================================================================

    def start_automation(self) -> None:
        """
        Start the automation loop in a background thread.

        No-op if already running. Returns without waiting for any state.
        Allowed after dispose(); the run gets a fresh cancellation signal.
        """
        with self._lock:
            if self._running:
                return

        # A previous run may still be unwinding (e.g. after emergency_stop).
        # Joined outside the lock: the old loop may need it to finish.
        self._join_loop()

        with self._lock:
            if self._running:
                return
            if self._loop_thread is not None:
                raise RuntimeError("Previous automation loop is still running")
            if self._signal is not None:
                self._signal.close()

            self._running = True
            self._disposed = False
            self._signal = CancellationSignal()
            self._loop_thread = threading.Thread(
                target=self._run_loop,
                args=(self._signal,),
                name="automation-loop",
                daemon=True,
            )
            self._loop_thread.start()

        log_ok("Automation started")

    async def stop_automation_async(self) -> None:
        """
        Cooperatively stop the loop and wait for it to exit.

        Forces IDLE once the loop is gone, whatever stage it was in. If the
        loop outlives join_timeout_s the state is left alone.
        """
        if not self._request_stop():
            return
        if await asyncio.to_thread(self._join_loop):
            self._finish_stop()

    def stop_automation(self) -> None:
        """Blocking variant of stop_automation_async()."""
        if not self._request_stop():
            return
        if self._join_loop():
            self._finish_stop()

    def emergency_stop(self) -> None:
        """
        Raise the cancellation signal and force EMERGENCY.

        Does not wait for the loop; it notices the signal at its next
        suspension point and exits. Never blocks on subscribers: if another
        thread is mid-delivery, that thread delivers StateChanged(Emergency).
        """
        with self._lock:
            if self._signal is not None:
                self._signal.cancel()
            self._store_state(AutomationState.EMERGENCY)
        log_cancel("EMERGENCY STOP requested")
        self._deliver()

    def force_state_change(self, new_state: AutomationState) -> None:
        """Override the current state, bypassing all handler logic."""
        self._set_state(new_state)

    def dispose(self) -> None:
        """Stop the loop, wait for it, then release the signal. Idempotent."""
        if self._disposed:
            return
        self.stop_automation()
        self._join_loop()
        with self._lock:
            if self._signal is not None:
                self._signal.close()
                self._signal = None
            self._disposed = True

    def __enter__(self) -> "AutomationController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    def get_status(self) -> Dict[str, object]:
        """Snapshot for status reporting."""
        return {
            "state": self._state.value,
            "is_running": self._running,
            "timings": self.settings.timings.to_dict(),
            "inter_cycle_pause_ms": self.settings.inter_cycle_pause_ms,
        }

    # =========================================================================
    # State writes
    # =========================================================================

    def _set_state(self, new_state: AutomationState) -> bool:
        """Store a new state and notify. Same-state writes are silent."""
        with self._lock:
            changed = self._store_state(new_state)
        self._deliver()
        return changed

    def _store_state(self, new_state: AutomationState) -> bool:
        # Caller holds self._lock
        if self._state == new_state:
            return False
        self._state = new_state
        log_state(f"→ {new_state.value}")
        self._pending.append((NotificationKind.STATE_CHANGED, new_state))
        self._pending.append((NotificationKind.LOG_MESSAGE, f"State changed: {new_state.value}"))
        return True

    def _enter_from_loop(self, new_state: AutomationState, signal: CancellationSignal) -> None:
        """
        State write on behalf of the loop.

        Once the run is cancelled, the loop no longer gets to move the
        state: stop/emergency own it from then on.
        """
        with self._lock:
            signal.raise_if_cancelled()
            self._store_state(new_state)
        self._deliver()

    def _apply(self, transition: Transition, signal: CancellationSignal) -> bool:
        """Apply a handler's verdict. Returns True when the loop must end."""
        with self._lock:
            signal.raise_if_cancelled()
            if transition.next_state is not None:
                self._store_state(transition.next_state)
            if transition.halt:
                self._running = False
        self._deliver()
        return transition.halt

    # =========================================================================
    # Notification delivery
    # =========================================================================

    def _notify(self, kind: NotificationKind, payload: Any) -> None:
        """Queue a notification behind any pending state changes, then deliver."""
        with self._lock:
            self._pending.append((kind, payload))
        self._deliver()

    def _notify_log(self, message: str) -> None:
        self._notify(NotificationKind.LOG_MESSAGE, message)

    def _deliver(self) -> None:
        """
        Drain the notification queue unless another thread is already doing so.

        The draining thread re-checks the queue after releasing the delivery
        lock, so a notification queued in that window is not stranded.
        """
        while True:
            if not self._delivery_lock.acquire(blocking=False):
                return
            try:
                while True:
                    with self._lock:
                        if not self._pending:
                            break
                        kind, payload = self._pending.popleft()
                    self.events.emit(kind, payload)
            finally:
                self._delivery_lock.release()
            with self._lock:
                if not self._pending:
                    return

    # =========================================================================
    # Stop helpers
    # =========================================================================

    def _request_stop(self) -> bool:
        with self._lock:
            if not self._running:
                return False
            self._running = False
            if self._signal is not None:
                self._signal.cancel()
        log_cancel("Stop requested")
        return True

    def _join_loop(self) -> bool:
        """Wait for the loop thread. False if it is still alive afterwards."""
        thread = self._loop_thread
        if thread is None or thread is threading.current_thread():
            return True
        thread.join(self.settings.join_timeout_s)
        if thread.is_alive():
            log_warn("Automation loop did not exit within the join timeout")
            return False
        with self._lock:
            if self._loop_thread is thread:
                self._loop_thread = None
        return True

    def _finish_stop(self) -> None:
        self._set_state(AutomationState.IDLE)
        log_ok("Automation stopped")

    # =========================================================================
    # Main loop
    # =========================================================================

    def _make_context(self, signal: CancellationSignal) -> StageContext:
        return StageContext(
            signal=signal,
            clock=self._clock,
            timings=self.settings.timings,
            predicates=self.predicates,
            emit_log=self._notify_log,
            fetcher=self._fetcher,
            urls=self._urls,
        )

    def _run_loop(self, signal: CancellationSignal) -> None:
        context = self._make_context(signal)
        try:
            self._enter_from_loop(AutomationState.INITIALIZE, signal)

            while self._running:
                signal.raise_if_cancelled()
                state = self._state
                handler = self._handlers.get(state)

                if handler is None:
                    self._notify_log(f"Unknown state: {state.value}")
                    self._enter_from_loop(AutomationState.ERROR, signal)
                elif self._apply(handler.run(context), signal):
                    return

                self._clock.sleep(self.settings.inter_cycle_pause_ms, signal)

        except OperationCancelled:
            self._report_cancelled()

        except Exception as e:
            # An exception after cancellation belongs to the abort
            with self._lock:
                stage = self._state.value
                aborted = signal.is_cancelled
                if not aborted:
                    self._pending.append((NotificationKind.ERROR_OCCURRED, e))
                    self._store_state(AutomationState.ERROR)
            if aborted:
                log_warn(f"Handler failed after cancellation in {stage}: {e}")
                self._report_cancelled()
            else:
                log_critical(f"Automation fault in {stage}: {e}")
                self._deliver()

        finally:
            self._running = False

    def _report_cancelled(self) -> None:
        log_cancel("Automation cancelled")
        self._notify_log("Automation cancelled")
