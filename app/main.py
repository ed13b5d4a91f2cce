import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.background import BackgroundTask

from . import models  # noqa: F401  (registers tables on Base)
from .config import ALLOWED_ORIGINS, BUSINESS_NAME
from .database import Base, engine
from .domain.bookings.router import availability_router as booking_availability_router
from .domain.bookings.router import router as bookings_router
from .domain.leads.router import router as leads_router
from .domain.sms.router import router as sms_router
from .domain.whatsapp.router import router as whatsapp_router
from .errors import ApiError, RateLimitError, ValidationError
from .rate_limiter import get_rate_limiter_status
from .request_context import get_client_ip
from .security_headers import SecurityHeadersMiddleware
from .services.error_reporter import report_api_error
from .validation import format_errors

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")
            raise

    status = get_rate_limiter_status()
    logger.info(f"Rate limiter backend: {status['backend']}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title=f"{BUSINESS_NAME} API", version="1.0.0", lifespan=lifespan)


def _error_telemetry(request: Request, exc: BaseException) -> BackgroundTask:
    return BackgroundTask(
        report_api_error,
        request.url.path,
        exc,
        ip=get_client_ip(request),
        user_agent=request.headers.get("user-agent") or "unknown",
        client_id=request.headers.get("x-client-id"),
        detail=getattr(exc, "detail", None),
    )


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    """Error envelope for every known failure, with telemetry sent after the response"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} - {exc.code}: {getattr(exc, 'detail', None) or exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} - {exc.code}: {exc.message}")

    headers = None
    if isinstance(exc, RateLimitError):
        headers = {"Retry-After": str(exc.retry_after)}

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=headers,
        background=_error_telemetry(request, exc) if exc.reportable else None,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Path and query parameter errors use the same envelope as body validation"""
    errors = format_errors(exc)
    summary = ", ".join(f"{err['field']}: {err['message']}" for err in errors)
    return await api_error_handler(
        request, ValidationError(f"Validation failed: {summary}", errors=errors)
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} - Unhandled error: {exc}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error", "code": "INTERNAL_ERROR"},
        background=_error_telemetry(request, exc),
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise
    duration_ms = (time.time() - start_time) * 1000
    logger.info(f"{request.method} {request.url.path} - {response.status_code} ({duration_ms:.0f}ms)")
    return response


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(
        SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"]
    )
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")


logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["Content-Type", "X-Client-Id"],
)

# Routes
app.include_router(leads_router)
app.include_router(bookings_router)
app.include_router(booking_availability_router)
app.include_router(sms_router)
app.include_router(whatsapp_router)


@app.get("/")
def root():
    return {"message": f"{BUSINESS_NAME} API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}


@app.get("/health/redis")
async def redis_health_check():
    """Rate limiter backend status for monitoring"""
    status = get_rate_limiter_status()
    return {"status": "healthy" if status["connected"] else "degraded", "rate_limiter": status}
