"""
BookBrief Backend — FastAPI Application Factory
=================================================

What:  Builds the FastAPI application: middleware, exception handlers,
       routers and the startup/shutdown lifecycle.
Who:   uvicorn (`uvicorn app.main:app`) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware:  Request ID → Logging → GZip → CORS         │
    │                                                          │
    │  Routes:  /auth  /books  /books/{id}/summary  /summaries │
    │           /notes  /health                                │
    │                                                          │
    │  Exception Handlers:                                     │
    │   Validation→400  Auth→401  NotFound→404  Conflict→409   │
    │   Extraction/NoDocument/Summarization→500 (with code)    │
    │   Storage/Database/anything else→500 (generic)           │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config check → storage dir → stalled-book recovery
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import settings
from app.database import async_session_factory, dispose_engine
from app.exceptions import (
    AuthenticationError,
    BookBriefError,
    ConflictError,
    DatabaseError,
    ExtractionError,
    FileStorageError,
    NoDocumentError,
    NotFoundError,
    SummarizationError,
    ValidationError,
)
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import auth, books, health, notes, summaries
from app.services.book_service import book_workflow

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Root logger to stdout, level from LOG_LEVEL.

    Format: 2026-10-19T12:00:00 [INFO] app.services.book_service: Book 7 created ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-operation chatter from third-party libraries
    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx", "pypdf"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("BookBrief Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Reported, not fatal: local development runs with the default secret
        logger.error("Configuration error: %s", str(e))

    if settings.gemini_configured:
        logger.info("Summaries: Gemini model %s", settings.gemini_model)
    else:
        logger.info("Summaries: local summarizer mode (GEMINI_API_KEY not set)")

    storage = Path(settings.storage_root)
    storage.mkdir(parents=True, exist_ok=True)
    logger.info("Storage directory: %s", storage.resolve())

    try:
        async with async_session_factory() as session:
            await book_workflow.recover_stalled_books(session)
    except Exception as e:
        # The database may not be migrated yet; /health reports it
        logger.error("Stalled-book recovery skipped: %s", str(e))

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("BookBrief Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(
    error: str, message: str, details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": error, "message": message}
    if details:
        body["details"] = details
    body["request_id"] = request_id_var.get("")
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to status codes and the shared error body
    {"error", "message", "details"?, "request_id"}.

    Internal details (paths, SQL, stack traces) are logged, never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("Validation error: %s", exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", exc.message, exc.context),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", ())[1:]) or None
        message = str(first.get("msg", "Invalid request")).removeprefix("Value error, ")
        logger.warning("Request validation error on %s: %s", field, message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", message, {"field": field} if field else None),
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return JSONResponse(
            status_code=401,
            content=_error_body("unauthorized", exc.message),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=_error_body("not_found", exc.message),
        )

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return JSONResponse(
            status_code=409,
            content=_error_body("conflict", exc.message, exc.context),
        )

    async def handle_pipeline_error(request: Request, exc: BookBriefError):
        """
        Regeneration failures. Every extraction failure shares the
        'extraction_failed' code; details.kind says which one it was.
        """
        logger.error("Summary pipeline error (%s): %s | Context: %s", exc.error_code, exc.message, exc.context)
        if isinstance(exc, ExtractionError):
            code = ExtractionError.error_code
            details = {"kind": exc.error_code, **exc.context}
        else:
            code = exc.error_code
            details = exc.context
        return JSONResponse(
            status_code=500,
            content=_error_body(code, exc.message, details),
        )

    for pipeline_error in (ExtractionError, NoDocumentError, SummarizationError):
        app.add_exception_handler(pipeline_error, handle_pipeline_error)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("Database error: %s | Context: %s", exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", "An internal error occurred. Please try again later."),
        )

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        logger.error("File storage error: %s | Context: %s", exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", exc.message),
        )

    @app.exception_handler(BookBriefError)
    async def handle_application_error(request: Request, exc: BookBriefError):
        logger.error("Unhandled application error %s: %s", type(exc).__name__, exc.message)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", "An internal error occurred. Please try again later."),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unexpected error: %s", str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="BookBrief API",
        description=(
            "Upload books as PDFs and get summaries and highlights back. "
            "Summaries are written by Google Gemini when configured, otherwise "
            "by a local extractive summarizer."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Added last = runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(books.router)
    app.include_router(summaries.router)
    app.include_router(notes.router)
    app.include_router(health.router)

    return app


app = create_app()
