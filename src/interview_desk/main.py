"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from interview_desk.auth import get_current_session
from interview_desk.config import Config
from interview_desk.errors import ConfigurationError, ConnectivityError, QueryError, ValidationError
from interview_desk.routes import auth, booking, candidates, dashboard, progress, results, system
from interview_desk.state import DeskState

log = logging.getLogger(__name__)

RESET_ACTION = {"method": "POST", "path": "/api/system/reset"}


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        log.warning("[ConfigurationError] %s | Path=%s", exc.message, request.url.path)
        return JSONResponse(
            status_code=503,
            content={"kind": exc.kind, "retryable": False, "detail": exc.message, "action": RESET_ACTION},
        )

    @app.exception_handler(ConnectivityError)
    async def connectivity_error_handler(request: Request, exc: ConnectivityError):
        log.warning("[ConnectivityError] %s | Path=%s", exc.message, request.url.path)
        return JSONResponse(
            status_code=503,
            content={"kind": exc.kind, "retryable": True, "detail": exc.message, "action": RESET_ACTION},
        )

    @app.exception_handler(QueryError)
    async def query_error_handler(request: Request, exc: QueryError):
        return JSONResponse(
            status_code=502,
            content={"kind": exc.kind, "retryable": False, "detail": exc.message, "code": exc.code},
        )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=422,
            content={"kind": exc.kind, "field": exc.field, "detail": exc.message},
        )


def create_app(
    cfg: Config | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        desk = DeskState(cfg, transport=transport) if cfg is not None else DeskState.from_env()
        if desk.config_error is None:
            desk.session.restore(None)
        app.state.desk = desk
        yield
        await desk.aclose()

    app = FastAPI(title="Interview Desk API", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    _signed_in = [Depends(get_current_session)]

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(system.router, prefix="/api/system", tags=["system"])
    app.include_router(candidates.router, prefix="/api/candidates", tags=["candidates"], dependencies=_signed_in)
    app.include_router(booking.router, prefix="/api/booking", tags=["booking"], dependencies=_signed_in)
    app.include_router(dashboard.router, prefix="/api/dashboard", tags=["dashboard"], dependencies=_signed_in)
    app.include_router(progress.router, prefix="/api/progress", tags=["progress"], dependencies=_signed_in)
    app.include_router(results.router, prefix="/api/results", tags=["results"], dependencies=_signed_in)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
