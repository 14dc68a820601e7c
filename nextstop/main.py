from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from nextstop.adapters.api.controllers.realtime import router as realtime_router
from nextstop.adapters.api.controllers.stops import router as stops_router
from nextstop.adapters.api.dependencies import build_runtime
from nextstop.config import Settings, configure_logging
from nextstop.domain.exceptions.resolution import StopNotFound
from nextstop.domain.exceptions.schedule import NotFound
from nextstop.domain.exceptions.transport import TransportError

logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    runtime = build_runtime(settings)
    runtime.result_cache.start()
    app.state.runtime = runtime
    app.state.reveal_errors = settings.reveal_errors
    try:
        yield
    finally:
        await runtime.aclose()
        app.state.runtime = None


app = FastAPI(title="nextstop", lifespan=lifespan)
app.include_router(stops_router)
app.include_router(realtime_router)


@app.exception_handler(StopNotFound)
async def stop_not_found_handler(request: Request, exc: StopNotFound) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={
            "detail": str(exc),
            "query": exc.query,
            "suggestions": list(exc.suggestions),
        },
    )


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(TransportError)
async def upstream_error_handler(request: Request, exc: TransportError) -> JSONResponse:
    logger.warning(
        "Upstream unavailable",
        extra={"path": str(request.url.path), "error": str(exc)},
    )
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Keep error responses JSON for API clients."""

    logger.exception("Unhandled exception", extra={"path": str(request.url.path)})

    reveal = bool(getattr(request.app.state, "reveal_errors", False))
    if reveal or isinstance(exc, (LookupError, RuntimeError, ValueError)):
        detail = str(exc) or exc.__class__.__name__
    else:
        detail = "Internal Server Error"

    return JSONResponse(status_code=500, content={"detail": detail})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
