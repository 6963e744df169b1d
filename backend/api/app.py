"""
FastAPI App Factory - Creates and configures the app
"""

from typing import Optional, Sequence

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.logger import log_critical
from .routes import (
    automation_router,
    fetch_router,
)

DEFAULT_ORIGINS = ("http://localhost:5173", "http://127.0.0.1:5173")


def create_app(origins: Optional[Sequence[str]] = None, lifespan=None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    `lifespan` is passed through to FastAPI so the entry point can own
    startup/shutdown of the automation controller.
    """
    app = FastAPI(
        title="Staged Automation API",
        description="Start, stop and observe the staged automation controller",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS - must be added first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(origins or DEFAULT_ORIGINS),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Lifecycle misuse (e.g. a previous loop still unwinding) is a conflict, not a crash
    @app.exception_handler(RuntimeError)
    async def lifecycle_error_handler(request: Request, exc: RuntimeError):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        log_critical(f"[API] {request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    app.include_router(automation_router, prefix="/api")
    app.include_router(fetch_router, prefix="/api")

    return app
