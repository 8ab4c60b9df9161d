"""
Todo Service — FastAPI Application Factory
===========================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn todoapp.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  Req ID → User Identity → Method Override → Logging      │
    │                                                          │
    │  Routes:                                                 │
    │  GET/POST /todos   PATCH/DELETE /todos/{uid}   /health   │
    │                                                          │
    │  Exception Handlers:                                     │
    │  Validation→400  NotFound→404  Method→405  DB→500        │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, log the database backend
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, List

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match

from todoapp import __version__
from todoapp.config import settings
from todoapp.database import dispose_engine, engine
from todoapp.exceptions import (
    DatabaseError,
    MethodNotAllowedError,
    NotFoundError,
    TodoAppError,
    ValidationError,
)
from todoapp.middleware.logging import RequestLoggingMiddleware
from todoapp.middleware.method_override import MethodOverrideMiddleware
from todoapp.middleware.request_id import RequestIDMiddleware, request_id_var
from todoapp.middleware.user_identity import UserIdentityMiddleware
from todoapp.routes import health, todos

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Level:  settings.log_level
    """
    log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that log every operation at DEBUG/INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("Todo service %s starting up...", __version__)
    logger.info("Database backend: %s", engine.url.get_backend_name())
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("Todo service shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def routed_methods(request: Request) -> List[str]:
    """Every method some route serves on this request's path, sorted."""
    methods = set()
    for route in request.app.routes:
        match, _ = route.matches(request.scope)
        if match != Match.NONE:
            methods.update(getattr(route, "methods", None) or ())
    return sorted(methods)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to JSON error responses.

    Handler hierarchy:
        ValidationError         → 400 Bad Request
        NotFoundError           → 404 Not Found
        MethodNotAllowedError   → 405 Method Not Allowed (+ Allow header)
        HTTPException 405       → same body, Allow from every route on the path
        HTTPException (other)   → FastAPI's default {"detail": ...}
        DatabaseError           → 500 Internal Server Error
        TodoAppError (base)     → 500 Internal Server Error
        Exception (fallback)    → 500 Internal Server Error

    Internal details (SQL, stack traces) are logged, never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": rid,
            },
        )

    def method_not_allowed_response(exc: MethodNotAllowedError) -> JSONResponse:
        rid = request_id_var.get("")
        logger.warning("[%s] %s", rid, exc.message)
        return JSONResponse(
            status_code=405,
            content={
                "error": "method_not_allowed",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
            headers={"Allow": ", ".join(exc.allowed)},
        )

    @app.exception_handler(MethodNotAllowedError)
    async def handle_method_not_allowed(request: Request, exc: MethodNotAllowedError):
        return method_not_allowed_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        # The router rejects unrouted methods before any handler runs
        if exc.status_code != 405:
            return await http_exception_handler(request, exc)
        return method_not_allowed_response(
            MethodNotAllowedError(
                request.method,
                allowed=routed_methods(request),
                resource=request.url.path,
            )
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(TodoAppError)
    async def handle_app_error(request: Request, exc: TodoAppError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Middleware executes in REVERSE order of addition; the last one added
    sees the request first.
    """
    app = FastAPI(
        title="Todo API",
        description=(
            "A todo list over HTTP. GET /todos returns JSON; every write "
            "redirects back to /todos so plain HTML forms work without JavaScript."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Location"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(MethodOverrideMiddleware)
    app.add_middleware(UserIdentityMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(todos.router)
    app.include_router(health.router)

    return app


# uvicorn expects `todoapp.main:app` to be importable
app = create_app()
