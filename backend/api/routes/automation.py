"""
Automation Routes - Start, stop, emergency stop and state override
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from core.types import AutomationState
from core.logger import log_cancel
from ..dependencies import get_app_state, AppState

router = APIRouter(prefix="/automation", tags=["automation"])


class ForceStateRequest(BaseModel):
    state: str


@router.get("/status")
def get_status(state: AppState = Depends(get_app_state)):
    """Get current automation state and settings."""
    return state.get_status()


@router.post("/start")
def start(state: AppState = Depends(get_app_state)):
    """
    Start the automation loop.

    Returns immediately; already running is not an error.
    """
    ctrl = state.controller
    was_running = ctrl.is_running
    ctrl.start_automation()
    return {
        "success": True,
        "already_running": was_running,
        "state": ctrl.state.value,
        "is_running": ctrl.is_running,
    }


@router.post("/stop")
async def stop(state: AppState = Depends(get_app_state)):
    """Stop the loop and wait for it to exit. Ends in Idle."""
    ctrl = state.controller
    await ctrl.stop_automation_async()
    return {"success": True, "state": ctrl.state.value, "is_running": ctrl.is_running}


@router.post("/emergency")
def emergency(state: AppState = Depends(get_app_state)):
    """Emergency stop - does not wait for the loop."""
    log_cancel("Emergency stop via API")
    ctrl = state.controller
    ctrl.emergency_stop()
    return {"success": True, "state": ctrl.state.value}


@router.post("/force")
def force_state(req: ForceStateRequest, state: AppState = Depends(get_app_state)):
    """Override the current state (manual recovery)."""
    try:
        target = AutomationState.parse(req.state)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    ctrl = state.controller
    ctrl.force_state_change(target)
    return {"success": True, "state": ctrl.state.value, "is_running": ctrl.is_running}


@router.get("/log")
def get_log(limit: int = 50, state: AppState = Depends(get_app_state)):
    """Get recent automation log lines."""
    return {"log": state.get_log(limit)}
