"""FastAPI application entry point."""
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.abstract_lifecycle import TransitionError
from app.core.config import settings
from app.core.deps import get_db
from app.services.errors import (
    AccessDenied,
    ConflictError,
    DuplicateAccountError,
    InvalidTokenError,
    NotFoundError,
    SubmissionsClosedError,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Sentry Integration (optional, for production error tracking)
# ============================================================================

if settings.SENTRY_DSN and settings.ENV != "dev":
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,  # 10% of requests for performance monitoring
        send_default_pii=False,  # Don't send PII to Sentry
    )
    logging.info("Sentry initialized for error tracking")

# ============================================================================
# Rate Limiting
# ============================================================================

from slowapi.errors import RateLimitExceeded
from app.core.rate_limit import limiter


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="EventsHub API",
    description="Event abstract submission, review and reviewer management API",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

app.state.limiter = limiter

# CORS middleware - must be added before routers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,  # Required for cookies
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Requested-With"],
)


# ============================================================================
# Error envelope: {"error": str, "details"?: {...}}
# ============================================================================

def _error(status_code: int, message: str, details: dict | None = None) -> JSONResponse:
    content: dict = {"error": message}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def _flatten_validation_errors(errors) -> dict:
    """Group validation errors into form-level and per-field messages."""
    form_errors: list[str] = []
    field_errors: dict[str, list[str]] = {}
    for err in errors:
        loc = [part for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        message = err.get("msg", "Invalid value")
        if loc and isinstance(loc[0], str):
            field_errors.setdefault(loc[0], []).append(message)
        else:
            form_errors.append(message)
    return {"formErrors": form_errors, "fieldErrors": field_errors}


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return _error(400, "Invalid input", _flatten_validation_errors(exc.errors()))


@app.exception_handler(AccessDenied)
async def access_denied_handler(request: Request, exc: AccessDenied):
    return _error(exc.status_code, exc.message)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(404, str(exc))


@app.exception_handler(DuplicateAccountError)
async def duplicate_account_handler(request: Request, exc: DuplicateAccountError):
    return _error(409, str(exc))


@app.exception_handler(SubmissionsClosedError)
async def submissions_closed_handler(request: Request, exc: SubmissionsClosedError):
    return _error(403, str(exc))


@app.exception_handler(ConflictError)
@app.exception_handler(InvalidTokenError)
@app.exception_handler(TransitionError)
async def bad_request_handler(request: Request, exc: ValueError):
    return _error(400, str(exc))


@app.exception_handler(StaleDataError)
async def stale_data_handler(request: Request, exc: StaleDataError):
    logger.warning("Concurrent modification on %s %s", request.method, request.url.path)
    return _error(409, "This record was changed by someone else. Reload and try again.")


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return _error(429, "Too many requests. Please try again later.")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(500, "Internal server error")


# ============================================================================
# Routers
# ============================================================================

from app.routers import abstracts, auth, public, reviewers

# Auth router (always mounted)
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])

# Event-scoped, session-authenticated
app.include_router(abstracts.router, prefix="/api")
app.include_router(reviewers.router, prefix="/api")

# Public (unauthenticated): submission, registration, management links
app.include_router(public.router, prefix="/api")


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health(db: Session = Depends(get_db)):
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    db.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
