"""
Structured logging for the automation controller.

Prefixes:
  ⚡ CRITICAL - Faults, unhandled errors
  ⚠️  WARN     - Warnings, unexpected behavior
  ✓  OK       - Success confirmations
  ⇄  STATE    - State transitions
  ▶  STAGE    - Stage handler progress
  ⏹  CANCEL   - Cancellation, stop, emergency
  ⇣  FETCH    - Data-fetch requests
"""

from enum import Enum
from typing import Optional
from datetime import datetime


class LogLevel(Enum):
    CRITICAL = "⚡ CRITICAL"
    WARN = "⚠️  WARN    "
    OK = "✓  OK      "
    STATE = "⇄  STATE   "
    STAGE = "▶  STAGE   "
    CANCEL = "⏹  CANCEL  "
    FETCH = "⇣  FETCH   "
    INFO = "ℹ  INFO    "


def log(level: LogLevel, message: str, data: Optional[dict] = None):
    """Log a message with structured prefix."""
    timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
    prefix = level.value

    line = f"[{timestamp}] {prefix} | {message}"
    if data:
        line += f" | {data}"

    print(line)


# Convenience functions
def log_critical(msg: str, data: Optional[dict] = None):
    log(LogLevel.CRITICAL, msg, data)

def log_warn(msg: str, data: Optional[dict] = None):
    log(LogLevel.WARN, msg, data)

def log_ok(msg: str, data: Optional[dict] = None):
    log(LogLevel.OK, msg, data)

def log_state(msg: str, data: Optional[dict] = None):
    log(LogLevel.STATE, msg, data)

def log_stage(msg: str, data: Optional[dict] = None):
    log(LogLevel.STAGE, msg, data)

def log_cancel(msg: str, data: Optional[dict] = None):
    log(LogLevel.CANCEL, msg, data)

def log_fetch(direction: str, url: str):
    """Log a fetch. direction is '>>>' (request) or '<<<' (response)"""
    log(LogLevel.FETCH, f"{direction} {url}")

def log_info(msg: str, data: Optional[dict] = None):
    log(LogLevel.INFO, msg, data)
