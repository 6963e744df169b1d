"""
Core immutable types for the automation controller.

All decision types are frozen dataclasses so a handler's verdict
cannot be altered after it is returned to the loop.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


# =============================================================================
# Automation States
# =============================================================================


class AutomationState(Enum):
    """
    The ten fixed phases of an automation run.

    IDLE is the rest state (initial, and terminal on a graceful stop).
    EMERGENCY is the hard-terminal state: the loop ends once it runs.
    """
    IDLE = "Idle"
    INITIALIZE = "Initialize"
    DATA_UPDATE = "DataUpdate"
    START_PROCESS = "StartProcess"
    PROCESSING = "Processing"
    QUALITY_CHECK = "QualityCheck"
    DATA_REPORT = "DataReport"
    COMPLETE = "Complete"
    ERROR = "Error"
    EMERGENCY = "Emergency"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, text: str) -> AutomationState:
        """
        Look up a state by member name or display name, ignoring case.

        Accepts "QUALITY_CHECK", "QualityCheck" and "qualitycheck" alike.
        Raises ValueError for anything else.
        """
        key = text.strip().replace("_", "").replace("-", "").lower()
        for state in cls:
            if state.value.lower() == key:
                return state
        raise ValueError(f"Unknown automation state: {text!r}")


# =============================================================================
# Transition Decision
# =============================================================================


@dataclass(frozen=True)
class Transition:
    """
    Verdict returned by a stage handler.

    next_state: state to enter, or None to stay where we are
    halt:       stop the loop after applying next_state
    """
    next_state: Optional[AutomationState] = None
    halt: bool = False

    @classmethod
    def advance(cls, state: AutomationState) -> Transition:
        return cls(next_state=state)

    @classmethod
    def stay(cls) -> Transition:
        return cls()

    @classmethod
    def stop_at(cls, state: AutomationState) -> Transition:
        """Enter `state`, then end the loop."""
        return cls(next_state=state, halt=True)

    @classmethod
    def halt_loop(cls) -> Transition:
        """End the loop without touching the current state."""
        return cls(halt=True)


# =============================================================================
# Notification Kinds
# =============================================================================


class NotificationKind(Enum):
    """Events broadcast by the controller."""
    STATE_CHANGED = auto()   # payload: AutomationState
    LOG_MESSAGE = auto()     # payload: str
    ERROR_OCCURRED = auto()  # payload: Exception
