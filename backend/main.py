"""
Staged Automation - Main Entry Point

Run with: uvicorn main:app --reload --port 8000
"""

import sys
from contextlib import asynccontextmanager
from pathlib import Path

# Add backend to path for imports
backend_path = Path(__file__).parent
sys.path.insert(0, str(backend_path))

import uvicorn
from fastapi import FastAPI

from api.app import create_app
from api.dependencies import AppState, get_app_state
from core.logger import log_info, log_ok, log_warn


def print_banner(state: AppState) -> None:
    """Summarise timings and configured endpoints on the console"""
    print("=" * 50)
    print("  Staged Automation Controller v1.0")
    print("=" * 50)

    timings = ", ".join(f"{k}={v:.0f}" for k, v in state.settings.timings.to_dict().items())
    log_info(f"Stage timings (ms): {timings}")
    log_info(f"Inter-cycle pause: {state.settings.inter_cycle_pause_ms:.0f} ms")

    urls = state.urls.to_dict()
    if urls:
        for name, url in urls.items():
            log_info(f"URL '{name}' → {url}")
    else:
        log_warn(f"URL list {state.urls.file_path.name} is empty")

    log_ok("API ready at http://localhost:8000 (docs at /docs)")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Show configuration on startup; stop the automation loop on shutdown"""
    state = get_app_state()
    print_banner(state)
    yield
    try:
        log_info("[SHUTDOWN] Stopping automation...")
        state.shutdown()
    except Exception as e:
        log_warn(f"[SHUTDOWN] Error during cleanup: {e}")


app = create_app(lifespan=lifespan)


@app.get("/health")
def health_check():
    """Health check endpoint"""
    state = get_app_state()
    return {
        "status": "ok",
        "version": "1.0.0",
        "automation": {
            "state": state.controller.state.value,
            "is_running": state.controller.is_running,
        },
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
