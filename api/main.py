"""
api/main.py -- FastAPI application entry point for the LUCT reporting API.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware    -- adds CORS headers for allowed browser origins
  2. SlowAPIMiddleware -- enforces per-route rate limits from api.limiter

Lifespan creates the one Database (bounded connection pool) and the stores
that share it on startup, and disposes the pool on shutdown.

Every error leaves through an exception handler below and is rendered as the
same envelope: {success: false, message, errors: [{reason, message, field?}]}.
Route handlers never build error responses by hand.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from academics.store import AcademicStore
from api.limiter import limiter
from api.models import Envelope, ErrorDetail, HealthResponse, error_envelope
from api.routes.auth import router as auth_router
from api.routes.classes import router as classes_router
from api.routes.courses import router as courses_router
from api.routes.reports import router as reports_router
from api.routes.users import router as users_router
from auth.store import UserStore
from core.config import get_settings
from core.database import Database
from core.errors import ReportingError, StoreUnavailable
from reports.store import ReportStore

API_VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("luct.api")

_settings = get_settings()


# ---------------------------------------------------------------------------
# Lifespan -- modern startup / shutdown pattern (replaces @app.on_event)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Startup order matters: the Database first, then UserStore (the users table
    is the foreign-key target of everything else), then the stores that
    reference it.
    """
    logger.info("LUCT reporting API starting up")
    app.state.db = Database()
    app.state.user_store = UserStore(app.state.db)
    app.state.academic_store = AcademicStore(app.state.db)
    app.state.report_store = ReportStore(app.state.db)
    logger.info("Stores initialized (%s users)", app.state.user_store.count_users())

    yield

    app.state.db.close()
    logger.info("LUCT reporting API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="LUCT Reporting API",
    description="Lecture reports, principal-lecturer feedback and student ratings for LUCT faculties.",
    version=API_VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

# Documents the error body in the OpenAPI schema; the handlers below produce it.
_ERROR_RESPONSES = {code: {"model": Envelope} for code in (400, 401, 403, 404, 429, 500)}

app.include_router(auth_router, prefix="/api", tags=["Auth"], responses=_ERROR_RESPONSES)
app.include_router(users_router, prefix="/api", tags=["Users"], responses=_ERROR_RESPONSES)
app.include_router(classes_router, prefix="/api", tags=["Classes"], responses=_ERROR_RESPONSES)
app.include_router(courses_router, prefix="/api", tags=["Courses"], responses=_ERROR_RESPONSES)
app.include_router(reports_router, prefix="/api", tags=["Reports"], responses=_ERROR_RESPONSES)


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


@app.exception_handler(ReportingError)
async def reporting_error_handler(request: Request, exc: ReportingError) -> JSONResponse:
    """Render any domain error with its class-level status and reason.

    ValidationError carries one entry per field in exc.errors; every other
    error becomes a single entry.
    """
    if isinstance(exc, StoreUnavailable):
        logger.error("Store unavailable on %s %s", request.method, request.url.path)
    if exc.errors:
        details = [
            ErrorDetail(reason=exc.reason, message=e.get("message", exc.message), field=e.get("field"))
            for e in exc.errors
        ]
    else:
        details = [ErrorDetail(reason=exc.reason, message=exc.message)]
    return error_envelope(exc.status_code, exc.message, details)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with one entry per invalid field.

    loc is ("body", "email") for body fields and ("path", "user_id") for path
    params; the leading location is dropped from the field name.
    """
    details = [
        ErrorDetail(
            reason="validation_error",
            message=err.get("msg", "Invalid value"),
            field=".".join(str(p) for p in err.get("loc", ())[1:]) or None,
        )
        for err in exc.errors()
    ]
    return error_envelope(400, "Validation failed.", details)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a Retry-After header when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = error_envelope(
        429,
        "Too many requests.",
        [ErrorDetail(reason="rate_limited", message=str(exc.detail))],
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes (404) and wrong methods (405) get the envelope too."""
    message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
    return error_envelope(exc.status_code, message, [ErrorDetail(reason=f"http_{exc.status_code}", message=message)])


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return error_envelope(
        500,
        "An unexpected error occurred.",
        [ErrorDetail(reason="internal_error", message="An unexpected error occurred.")],
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state. No rate limit and no auth.
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version, and whether the database answers."""
    db_ok = request.app.state.db.ping()
    return HealthResponse(
        status="ok" if db_ok else "degraded",
        version=API_VERSION,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )
