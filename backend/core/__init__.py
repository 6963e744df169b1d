"""Core infrastructure layer - states, cancellation, clock, settings"""

from .types import AutomationState, Transition, NotificationKind
from .cancellation import CancellationSignal, OperationCancelled
from .clock import Clock, SystemClock
from .settings import StageTimings, AutomationSettings, FetchSettings

__all__ = [
    'AutomationState', 'Transition', 'NotificationKind',
    'CancellationSignal', 'OperationCancelled',
    'Clock', 'SystemClock',
    'StageTimings', 'AutomationSettings', 'FetchSettings',
]
