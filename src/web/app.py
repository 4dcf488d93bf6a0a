"""
FastAPI application factory for the slip scanner.

Routes:
- /api/health -> model/source readiness
- /api/subject -> operator-entered identity
- /api/scan -> run one scan
- /api/verdict/latest[/evidence] -> last verdict and its PNG evidence
- /api/frame/latest -> last annotated scan frame (JPEG)
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from models.errors import (
    InferenceFailure,
    ModelNotReady,
    ScanError,
    ScanInProgress,
    SourceUnavailable,
)
from runtime.context import ScanContext
from .routes import api
from .state import FrameBuffer

_ERROR_STATUS = {
    ModelNotReady: 503,
    SourceUnavailable: 503,
    ScanInProgress: 409,
    InferenceFailure: 500,
}


async def _load_model(ctx: ScanContext) -> None:
    try:
        await asyncio.to_thread(ctx.classifier.load)
    except Exception:
        logging.error("Scans stay disabled until the classifier model loads")


def create_app(ctx: ScanContext, manage_lifecycle: bool = True) -> FastAPI:
    """
    Create the FastAPI app around a ScanContext.

    With manage_lifecycle the app opens the source on startup, loads the
    model in the background and closes the source on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        load_task = None
        if manage_lifecycle:
            try:
                await asyncio.to_thread(ctx.source.open)
            except RuntimeError as e:
                logging.error(f"Camera not available: {e}")
            load_task = asyncio.create_task(_load_model(ctx))
        yield
        if load_task is not None and not load_task.done():
            load_task.cancel()
        if manage_lifecycle:
            ctx.close()

    app = FastAPI(
        title="Slip Scanner",
        version="0.1.0",
        description="Camera scan for unauthorized exam material at entry",
        lifespan=lifespan,
    )

    frames = FrameBuffer()
    ctx.session.add_callback(frames.on_frame)
    app.state.ctx = ctx
    app.state.frames = frames

    @app.exception_handler(ScanError)
    async def scan_error_handler(request: Request, exc: ScanError):
        status = _ERROR_STATUS.get(type(exc), 500)
        logging.warning(f"Scan request failed ({status}): {exc}")
        return JSONResponse({"detail": str(exc), "error": type(exc).__name__}, status_code=status)

    app.include_router(api.router, prefix="/api")
    return app
