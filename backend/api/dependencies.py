"""
API Dependencies - Dependency injection for FastAPI

One AppState per process: the automation controller plus the
collaborators the shell hands to it.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Deque, Dict, List, Optional

from core.types import AutomationState
from core.settings import AutomationSettings
from fetch.client import DataFetcher
from fetch.url_store import UrlStore
from controller import AutomationController


LOG_BUFFER_SIZE = 200


@dataclass
class AppState:
    """
    Application state container.

    Subscribes to the controller's notifications and keeps the most recent
    log lines and the last fault for the status endpoints.
    """
    urls: UrlStore = field(default_factory=UrlStore)
    settings: AutomationSettings = field(default_factory=AutomationSettings)
    controller: Optional[AutomationController] = None
    fetcher: Optional[DataFetcher] = None

    recent_logs: Deque[Dict[str, str]] = field(default_factory=lambda: deque(maxlen=LOG_BUFFER_SIZE))
    last_error: Optional[str] = None
    last_problem: Optional[str] = None

    def __post_init__(self):
        if self.fetcher is None:
            self.fetcher = DataFetcher(on_problem=self._record_problem)
        if self.controller is None:
            self.controller = AutomationController(
                settings=self.settings,
                fetcher=self.fetcher,
                urls=self.urls,
            )
        self.controller.events.on_log_message(self._record_log)
        self.controller.events.on_error_occurred(self._record_error)

    def _record_log(self, message: str) -> None:
        self.recent_logs.append({
            "timestamp": datetime.now().isoformat(),
            "message": message,
        })

    def _record_error(self, error: Exception) -> None:
        self.last_error = f"{type(error).__name__}: {error}"

    def _record_problem(self, message: str) -> None:
        self.last_problem = message

    def get_status(self) -> Dict[str, Any]:
        """Get current status for API."""
        status = self.controller.get_status()
        status["last_error"] = self.last_error
        status["states"] = [s.value for s in AutomationState]
        return status

    def get_log(self, limit: int = 50) -> List[Dict[str, str]]:
        """Get recent log lines, oldest first."""
        if limit <= 0:
            return []
        return list(self.recent_logs)[-limit:]

    def shutdown(self) -> None:
        self.controller.dispose()
        self.fetcher.close()


# Global instance
_app_state: Optional[AppState] = None


def get_app_state() -> AppState:
    """Get the global app state instance."""
    global _app_state
    if _app_state is None:
        _app_state = AppState()
    return _app_state


def get_controller() -> AutomationController:
    """Get the automation controller."""
    return get_app_state().controller
