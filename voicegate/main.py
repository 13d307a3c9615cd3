from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from voicegate.api import (
    health_router,
    hooks_router,
    metrics_router,
    utterances_router,
    voice_router,
)
from voicegate.core.config import Settings, get_settings
from voicegate.core.errors import VoiceGateError, error_response
from voicegate.core.logger import get_logger
from voicegate.core.metrics import metrics_middleware
from voicegate.core.session import VoiceSession
from voicegate.core.trace import TRACE_HEADER, bind_trace_id, get_trace_id

logger = get_logger("server")


@asynccontextmanager
async def _lifespan(app: FastAPI):
    settings: Settings = app.state.voice.settings
    logger.info("Server started on http://%s:%d", settings.host, settings.port)
    yield
    logger.info("Server stopping with %d observer(s) connected", len(app.state.voice.broadcaster))


async def _voicegate_error(request: Request, exc: VoiceGateError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.code, exc.message, details=exc.details),
    )


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_response("VG_5000", "Internal server error", trace_id=get_trace_id()),
    )


async def _trace_middleware(request: Request, call_next):
    tid = bind_trace_id(request.headers)
    response = await call_next(request)
    response.headers[TRACE_HEADER] = tid
    return response


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build an application with its own, isolated conversation state."""
    settings = settings or get_settings()
    app = FastAPI(title="voicegate", lifespan=_lifespan)
    app.state.voice = VoiceSession(settings)

    if settings.enable_metrics:
        app.middleware("http")(metrics_middleware)
    app.middleware("http")(_trace_middleware)

    # Credentials cannot be combined with wildcard origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(VoiceGateError, _voicegate_error)
    app.add_exception_handler(Exception, _unexpected_error)

    app.include_router(health_router)
    app.include_router(utterances_router)
    app.include_router(voice_router)
    app.include_router(hooks_router)
    app.include_router(metrics_router)
    return app


app = create_app()
