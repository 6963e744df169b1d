"""Pytest configuration and shared fixtures."""

import sys
import threading
import time
from pathlib import Path
from typing import Callable, List

import pytest

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.types import AutomationState
from core.settings import AutomationSettings, StageTimings
from automation.events import NotificationChannel


def wait_until(condition: Callable[[], bool], timeout: float = 2.0, interval: float = 0.002) -> bool:
    """Poll `condition` until it holds or `timeout` seconds pass."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(interval)
    return condition()


class Recorder:
    """Collects every notification a channel emits."""

    def __init__(self, events: NotificationChannel):
        self.states: List[AutomationState] = []
        self.logs: List[str] = []
        self.errors: List[Exception] = []
        self._lock = threading.Lock()
        events.on_state_changed(self._on_state)
        events.on_log_message(self._on_log)
        events.on_error_occurred(self._on_error)

    def _on_state(self, state: AutomationState) -> None:
        with self._lock:
            self.states.append(state)

    def _on_log(self, message: str) -> None:
        with self._lock:
            self.logs.append(message)

    def _on_error(self, error: Exception) -> None:
        with self._lock:
            self.errors.append(error)

    def snapshot(self) -> List[AutomationState]:
        with self._lock:
            return list(self.states)


@pytest.fixture
def fast_timings() -> StageTimings:
    """Stage delays of a few milliseconds."""
    return StageTimings().scaled(0.002)


@pytest.fixture
def fast_settings(fast_timings) -> AutomationSettings:
    """Settings for tests that let the loop run freely."""
    return AutomationSettings(
        timings=fast_timings,
        inter_cycle_pause_ms=1,
        join_timeout_s=5.0,
    )


@pytest.fixture
def make_recorder() -> Callable[[NotificationChannel], Recorder]:
    return Recorder


@pytest.fixture
def wait_for() -> Callable[..., bool]:
    return wait_until
