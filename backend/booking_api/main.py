"""
Travel Booking API -- FastAPI Application
Transactional reservation intake: header, services and transfer stopovers.
"""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import logging
import logging.config
import time
import uuid
import asyncio

from booking_api.core.config import settings
from booking_api.core.errors import E_INTERNAL, E_INVALID_REQUEST, E_METHOD_NOT_ALLOWED, E_ROUTER
from booking_api.core.i18n import Messages, language_from_header
from booking_api.db.database import init_db
from booking_api.api import health, routes_i18n, routes_reservation
from booking_api.services.booking import build_envelope

# Configure logging
logging_config = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "detailed": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
        },
        "json": {
            "()": "booking_api.core.monitoring.JSONFormatter",
        },
    },
    "handlers": {
        "default": {
            "formatter": "json" if settings.log_format == "json" else "detailed",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        "booking_api": {"handlers": ["default"], "level": settings.log_level},
        "uvicorn": {"handlers": ["default"], "level": "INFO"},
        "sqlalchemy": {"handlers": ["default"], "level": "WARNING"},
    },
}

logging.config.dictConfig(logging_config)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment} | Workers: {settings.api_workers}")

    # Retry DB init up to 3 times for resilience
    for attempt in range(1, 4):
        try:
            init_db()
            logger.info("Database initialized successfully")
            break
        except Exception as e:
            if attempt < 3:
                logger.warning(f"Database init attempt {attempt}/3 failed: {e}, retrying in 2s...")
                await asyncio.sleep(2)
            else:
                logger.error(f"Database init failed after 3 attempts: {e}")
                raise

    logger.info("Application startup complete -- ready to serve")
    yield
    logger.info("Application shutting down")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Travel booking intake -- reservations, services and transfer stopovers in one transaction.",
    docs_url="/docs" if settings.debug else None,
    redoc_url=None,
    openapi_url="/openapi.json" if settings.debug else None,
    lifespan=lifespan,
)

# GZip compression (min 500 bytes)
app.add_middleware(GZipMiddleware, minimum_size=500)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


def _messages(request: Request) -> Messages:
    return Messages(language_from_header(request.headers.get("accept-language")))


def _envelope_response(request: Request, status_code: int, code: str, detail: str = None) -> JSONResponse:
    body = build_envelope(_messages(request), None, code, detail=detail)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def _is_booking_path(path: str) -> bool:
    return path == settings.api_prefix or path.startswith(settings.api_prefix + "/")


# Combined request logging + security headers middleware (single pass)
@app.middleware("http")
async def request_middleware(request: Request, call_next):
    """POST-only booking prefix, request timing and security headers in one pass."""
    start = time.perf_counter()
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    path = request.url.path

    if _is_booking_path(path) and request.method not in ("POST", "OPTIONS"):
        response = _envelope_response(request, 405, E_METHOD_NOT_ALLOWED)
        response.headers["Allow"] = "POST"
    else:
        response = await call_next(request)

    elapsed = time.perf_counter() - start
    response.headers["X-Process-Time"] = f"{elapsed:.3f}"
    response.headers["X-Request-ID"] = request_id

    # Security headers
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

    logger.info(
        f"{request.method} {path} -> {response.status_code} in {elapsed:.3f}s",
        extra={"request_id": request_id},
    )
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies answer with E004."""
    fields = ", ".join(".".join(str(p) for p in err.get("loc", ())) for err in exc.errors())
    logger.info(f"Invalid request on {request.url.path}: {fields}")
    return _envelope_response(request, 400, E_INVALID_REQUEST, detail=fields or None)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Router errors under the booking prefix keep the envelope shape."""
    if _is_booking_path(request.url.path):
        return _envelope_response(request, exc.status_code, E_ROUTER)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions gracefully."""
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return _envelope_response(request, 500, E_INTERNAL)


# Include routers
app.include_router(routes_reservation.router, prefix=settings.api_prefix)
app.include_router(health.router)
app.include_router(routes_i18n.router)


# Root endpoint
@app.get("/")
async def root():
    """Root -- API information."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "health": "/health",
        "reservations": f"{settings.api_prefix}/reservation",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "booking_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        workers=settings.api_workers,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
