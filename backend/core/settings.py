"""
Settings - stage timings and controller options.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Optional


INTER_CYCLE_PAUSE_MS = 50


@dataclass(frozen=True)
class StageTimings:
    """Simulated duration of each stage, in milliseconds"""
    initialize: float = 1000
    data_update: float = 800
    start_process: float = 500
    processing: float = 2000
    quality_check: float = 1000
    data_report: float = 1200
    complete: float = 500
    error_recovery: float = 2000
    emergency_shutdown: float = 100
    idle_wait: float = 100

    def scaled(self, factor: float) -> "StageTimings":
        """Copy with every duration multiplied by `factor`."""
        if factor < 0:
            raise ValueError("Scale factor must be >= 0")
        return replace(self, **{f.name: getattr(self, f.name) * factor for f in fields(self)})

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class AutomationSettings:
    """Controller settings"""
    timings: StageTimings = field(default_factory=StageTimings)
    inter_cycle_pause_ms: float = INTER_CYCLE_PAUSE_MS
    # None = wait for the loop for as long as it takes
    join_timeout_s: Optional[float] = None


@dataclass
class FetchSettings:
    """Data-fetch collaborator settings"""
    timeout_s: float = 5.0
