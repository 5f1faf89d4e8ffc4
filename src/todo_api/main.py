from __future__ import annotations

import logging
import os
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .cors import AllowListCORSMiddleware
from .logging_setup import setup_logging
from .repositories import Repository, StorageError, build_repository
from .routers import todos as todos_router
from .schemas import HealthOut
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("todo_api.access")

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "todos", "description": "CRUD operations for Todo items."},
]


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, repository: Optional[Repository] = None) -> FastAPI:
    """
    Build the FastAPI application.

    When `repository` is given it is used as-is and left open on shutdown.
    Otherwise the configured repository is built at startup, its table is
    created if absent, and its connection pool is disposed at shutdown.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = app.state.repository is None
        if owned:
            repo = build_repository(settings)
            try:
                repo.init_schema()
            except StorageError:
                # Keep serving; handlers answer 500 until the database is reachable.
                logger.exception("Database initialization failed")
            app.state.repository = repo
        logger.info(
            "Serving todos with backend=%s db_host=%s",
            settings.persistence_backend,
            settings.db_host if settings.persistence_backend == "mysql" else "-",
        )
        try:
            yield
        finally:
            if owned:
                app.state.repository.close()
                app.state.repository = None

    app = FastAPI(
        title="Todo API",
        description="REST API for a single-table task tracker.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.repository = repository

    app.add_middleware(
        AllowListCORSMiddleware,
        exact_origins=settings.cors_allow_origins,
        origin_suffixes=settings.cors_allow_origin_suffixes,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        access_logger.info(
            "%s %s -> %s (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Report request validation errors as 400.

        Response format:
            {
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": [... pydantic/fastapi error details ...]
            }
        """
        return JSONResponse(
            status_code=400,
            content={
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": _jsonable_errors(exc),
            },
        )

    # PUBLIC_INTERFACE
    @app.get("/api/health", response_model=HealthOut, summary="Health Check", tags=["health"])
    def health_check() -> HealthOut:
        """
        Static status payload. Does not touch the database.
        """
        return HealthOut(status="OK", message="Backend running", backend=settings.persistence_backend)

    app.include_router(todos_router.router)

    if settings.static_dir:
        if os.path.isdir(settings.static_dir):
            app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
        else:
            logger.warning("STATIC_DIR %s does not exist; static files disabled", settings.static_dir)

    return app


def _jsonable_errors(exc: RequestValidationError) -> list:
    # Drop the raw exception objects pydantic keeps under "ctx".
    errors = []
    for err in exc.errors():
        err = dict(err)
        if "ctx" in err:
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        errors.append(err)
    return errors


app = create_app()


def run() -> None:
    """Console entry point: configure logging and serve with uvicorn."""
    import uvicorn

    settings: Settings = app.state.settings
    setup_logging(settings.log_level)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
