"""Automation layer - stage handlers and notifications"""

from .events import NotificationChannel
from .handlers import (
    StageHandler,
    StageContext,
    CheckedStageHandler,
    DecisionPredicates,
    IdleHandler,
    InitializeHandler,
    DataUpdateHandler,
    StartProcessHandler,
    ProcessingHandler,
    QualityCheckHandler,
    DataReportHandler,
    CompleteHandler,
    ErrorHandler,
    EmergencyHandler,
    RemoteDataUpdateHandler,
    create_default_handlers,
)

__all__ = [
    'NotificationChannel',
    'StageHandler', 'StageContext', 'CheckedStageHandler', 'DecisionPredicates',
    'IdleHandler', 'InitializeHandler', 'DataUpdateHandler',
    'StartProcessHandler', 'ProcessingHandler', 'QualityCheckHandler',
    'DataReportHandler', 'CompleteHandler', 'ErrorHandler', 'EmergencyHandler',
    'RemoteDataUpdateHandler', 'create_default_handlers',
]
