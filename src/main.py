"""Entry point for the realtime call broker service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from api.dependencies import get_detached_tasks
from api.routes import router as api_router
from config.settings import get_settings
from realtime.errors import AuthenticationFailure, ConfigurationError, RealtimeError

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Observer channels have no end of their own; drop them with the process.
    await get_detached_tasks().cancel_all()


settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = FastAPI(
    title="Realtime Call Broker",
    description="Relays WebRTC and SIP calls to the realtime API and observes them.",
    lifespan=lifespan,
)
app.include_router(api_router)


@app.exception_handler(RealtimeError)
async def realtime_error_handler(request: Request, exc: RealtimeError) -> PlainTextResponse:
    if isinstance(exc, ConfigurationError):
        LOGGER.error("%s %s: configuration error: %s", request.method, request.url.path, exc)
    elif isinstance(exc, AuthenticationFailure):
        LOGGER.warning("%s %s: %s", request.method, request.url.path, exc)
    return PlainTextResponse(exc.detail, status_code=exc.status_code)
