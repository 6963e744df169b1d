"""
Stage Handlers - One handler per automation state

Each handler does ONE stage of work (simulated by a cancellable delay
unless overridden) and returns a Transition telling the controller
where to go next. Concrete automations replace individual handlers or
decision predicates; the controller loop is never touched.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Type, TYPE_CHECKING

from core.types import AutomationState, Transition
from core.cancellation import CancellationSignal
from core.clock import Clock
from core.settings import StageTimings
from core.logger import log_stage, log_warn

if TYPE_CHECKING:
    from fetch.client import DataFetcher
    from fetch.url_store import IUrlStore


Predicate = Callable[["StageContext"], bool]


def always(context: "StageContext") -> bool:
    return True


def never(context: "StageContext") -> bool:
    return False


@dataclass
class DecisionPredicates:
    """
    Pass/fail checks consulted by the default handlers.

    Every check passes by default so the skeleton runs end-to-end with no
    equipment attached. Error recovery is the exception: it is off unless
    a concrete automation supplies its own policy.
    """
    initialization_complete: Predicate = always
    data_update_complete: Predicate = always
    quality_pass: Predicate = always
    data_report_complete: Predicate = always
    should_continue: Predicate = always
    attempt_error_recovery: Predicate = never


@dataclass
class StageContext:
    """Per-run context handed to every stage handler"""
    signal: CancellationSignal
    clock: Clock
    timings: StageTimings
    predicates: DecisionPredicates
    emit_log: Callable[[str], None]

    # Optional collaborators
    fetcher: Optional["DataFetcher"] = None
    urls: Optional["IUrlStore"] = None

    # Free-form scratch space shared between stages of one run
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_cancelled(self) -> bool:
        return self.signal.is_cancelled

    def delay(self, milliseconds: float) -> None:
        """Cancellable wait; raises OperationCancelled when the run is stopped."""
        self.clock.sleep(milliseconds, self.signal)


class StageHandler(ABC):
    """Base class for all stage handlers"""

    name: str = "Stage"

    @abstractmethod
    def run(self, context: StageContext) -> Transition:
        """Perform the stage and decide the next state"""
        pass

    def log(self, context: StageContext, message: str) -> None:
        """Log to the console and to the controller's log subscribers"""
        log_stage(f"[{self.name}] {message}")
        context.emit_log(message)


class CheckedStageHandler(StageHandler):
    """
    Delay, then branch on a decision predicate.

    Subclasses fill in the class attributes; `predicate` names a field
    of DecisionPredicates.
    """

    message: str = ""
    timing: str = ""
    predicate: str = ""
    on_success: AutomationState = AutomationState.IDLE
    on_failure: AutomationState = AutomationState.ERROR

    def run(self, context: StageContext) -> Transition:
        self.log(context, self.message)
        context.delay(getattr(context.timings, self.timing))

        check = getattr(context.predicates, self.predicate)
        if check(context):
            return Transition.advance(self.on_success)
        return Transition.advance(self.on_failure)


# =============================================================================
# Default handlers
# =============================================================================


class InitializeHandler(CheckedStageHandler):
    name = "INITIALIZE"
    message = "Initializing equipment..."
    timing = "initialize"
    predicate = "initialization_complete"
    on_success = AutomationState.START_PROCESS


class DataUpdateHandler(CheckedStageHandler):
    name = "DATA_UPDATE"
    message = "Updating data..."
    timing = "data_update"
    predicate = "data_update_complete"
    on_success = AutomationState.START_PROCESS


class StartProcessHandler(StageHandler):
    name = "START_PROCESS"

    def run(self, context: StageContext) -> Transition:
        self.log(context, "Starting process...")
        context.delay(context.timings.start_process)
        return Transition.advance(AutomationState.PROCESSING)


class ProcessingHandler(StageHandler):
    """Main work stage (machine control, data acquisition, ...)"""
    name = "PROCESSING"

    def run(self, context: StageContext) -> Transition:
        self.log(context, "Processing...")
        context.delay(context.timings.processing)
        return Transition.advance(AutomationState.QUALITY_CHECK)


class QualityCheckHandler(CheckedStageHandler):
    name = "QUALITY_CHECK"
    message = "Running quality check..."
    timing = "quality_check"
    predicate = "quality_pass"
    on_success = AutomationState.DATA_REPORT


class DataReportHandler(CheckedStageHandler):
    name = "DATA_REPORT"
    message = "Reporting data..."
    timing = "data_report"
    predicate = "data_report_complete"
    on_success = AutomationState.COMPLETE


class CompleteHandler(CheckedStageHandler):
    """Cycle finished: start another one or rest in IDLE"""
    name = "COMPLETE"
    message = "Work complete"
    timing = "complete"
    predicate = "should_continue"
    on_success = AutomationState.START_PROCESS
    on_failure = AutomationState.IDLE


class ErrorHandler(StageHandler):
    """Retry from INITIALIZE if recovery succeeds, otherwise stop in IDLE"""
    name = "ERROR"

    def run(self, context: StageContext) -> Transition:
        self.log(context, "Error state - attempting recovery...")
        context.delay(context.timings.error_recovery)

        if context.predicates.attempt_error_recovery(context):
            return Transition.advance(AutomationState.INITIALIZE)
        return Transition.stop_at(AutomationState.IDLE)


class EmergencyHandler(StageHandler):
    name = "EMERGENCY"

    def run(self, context: StageContext) -> Transition:
        self.log(context, "Emergency stop")
        context.delay(context.timings.emergency_shutdown)
        return Transition.halt_loop()


class IdleHandler(StageHandler):
    name = "IDLE"

    def run(self, context: StageContext) -> Transition:
        context.delay(context.timings.idle_wait)
        return Transition.stay()


# =============================================================================
# Collaborator-backed handlers
# =============================================================================


class RemoteDataUpdateHandler(StageHandler):
    """
    DATA_UPDATE override that pulls fresh data through the fetch collaborator.

    `endpoint` is either a name from the URL store or an absolute URL.
    The decoded payload is kept in `context.data[key]` for later stages.
    """
    name = "DATA_UPDATE"

    def __init__(self, endpoint: str, model: Optional[Type[Any]] = None, key: str = "data_update"):
        self.endpoint = endpoint
        self.model = model
        self.key = key

    def _resolve_url(self, context: StageContext) -> Optional[str]:
        if self.endpoint.startswith(("http://", "https://")):
            return self.endpoint
        if context.urls is None:
            return None
        return context.urls.get(self.endpoint)

    def run(self, context: StageContext) -> Transition:
        self.log(context, f"Updating data from '{self.endpoint}'...")
        context.signal.raise_if_cancelled()

        if context.fetcher is None:
            log_warn(f"[{self.name}] No data fetcher configured")
            return Transition.advance(AutomationState.ERROR)

        url = self._resolve_url(context)
        if not url:
            self.log(context, f"No URL configured for '{self.endpoint}'")
            return Transition.advance(AutomationState.ERROR)

        payload = context.fetcher.get_json(url, self.model)
        context.signal.raise_if_cancelled()
        if payload is None:
            return Transition.advance(AutomationState.ERROR)

        context.data[self.key] = payload
        if context.predicates.data_update_complete(context):
            return Transition.advance(AutomationState.START_PROCESS)
        return Transition.advance(AutomationState.ERROR)


# === Handler table factory ===

def create_default_handlers() -> Dict[AutomationState, StageHandler]:
    """Create the default strategy table: one handler per state"""
    return {
        AutomationState.IDLE: IdleHandler(),
        AutomationState.INITIALIZE: InitializeHandler(),
        AutomationState.DATA_UPDATE: DataUpdateHandler(),
        AutomationState.START_PROCESS: StartProcessHandler(),
        AutomationState.PROCESSING: ProcessingHandler(),
        AutomationState.QUALITY_CHECK: QualityCheckHandler(),
        AutomationState.DATA_REPORT: DataReportHandler(),
        AutomationState.COMPLETE: CompleteHandler(),
        AutomationState.ERROR: ErrorHandler(),
        AutomationState.EMERGENCY: EmergencyHandler(),
    }
