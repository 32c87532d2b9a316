# Essential imports
import time
from fastapi import FastAPI, Request, status, HTTPException
from fastapi.exceptions import RequestValidationError
from routers import orders
from contextlib import asynccontextmanager

# Import all models for SQLAlchemy relationship resolution
import models  # This triggers the imports in models/__init__.py

# Rate limiter imports
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from middleware.rate_limiter import limiter

# Logging imports
from core.logging_config import setup_logging, get_logger
from middleware import RequestIDMiddleware
from core.config import settings
from core.database import SessionLocal
from core.exceptions import OrderServiceError
from fastapi.responses import JSONResponse

# Order lifecycle collaborators
from services.payment_gateway import StripePaymentGateway
from services.archival_scheduler import ArchivalScheduler
from services.retirement import RETIREMENT_POLICY

# CORS imports
from fastapi.middleware.cors import CORSMiddleware

# Initialize logging
setup_logging(
    log_level=settings.LOG_LEVEL,
    log_dir=settings.LOG_DIR
)

logger = get_logger(__name__)


archival_scheduler = ArchivalScheduler(
    session_factory=SessionLocal,
    policy=RETIREMENT_POLICY,
    interval_seconds=settings.ARCHIVAL_SWEEP_INTERVAL_SECONDS,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.ARCHIVAL_SCHEDULER_ENABLED:
        archival_scheduler.start()
    logger.info("Application startup complete", extra={"event": "startup"})
    yield
    await archival_scheduler.stop()
    logger.info("Application shutting down", extra={"event": "shutdown"})


app = FastAPI(
    title="Food Ordering API",
    description="Order lifecycle and payment reconciliation for the food-ordering platform",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# One gateway per process, injected into routes via utils.deps.get_payment_gateway
app.state.payment_gateway = StripePaymentGateway.from_settings(settings)


# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# HTTP Request Logging Middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log every HTTP request with method, path, status code and duration.
    """
    start_time = time.time()

    response = await call_next(request)

    duration = (time.time() - start_time) * 1000  # milliseconds
    client_ip = request.client.host if request.client else "unknown"

    logger.info(
        f'{client_ip} - "{request.method} {request.url.path} HTTP/1.1" {response.status_code}',
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(duration, 2),
            "client_ip": client_ip
        }
    )

    return response


# Registered last so it wraps the logging middleware and its records carry the ID
app.add_middleware(RequestIDMiddleware)


# Health check
@app.get("/health")
async def health_check():
    logger.debug("Health check requested")
    return {"status": "Healthy", "archival_scheduler": archival_scheduler.running}


@app.exception_handler(OrderServiceError)
async def order_service_exception_handler(request: Request, exc: OrderServiceError):
    """
    Map domain errors to responses.

    Client errors (4xx) return their message. Server errors are logged
    with context and answered generically.
    """
    if exc.status_code >= 500:
        logger.error(
            f"{type(exc).__name__}: {exc.detail}",
            extra={
                **exc.context,
                "path": request.url.path,
                "method": request.method,
                "error_type": type(exc).__name__,
            },
            exc_info=exc
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail}
        )

    logger.warning(
        exc.detail,
        extra={**exc.context, "path": request.url.path, "error_type": type(exc).__name__}
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch all unhandled exceptions, log them with full context and return
    a generic error without exposing internals.
    """
    # FastAPI handles these itself
    if isinstance(exc, (HTTPException, RequestValidationError)):
        raise exc

    logger.error(
        f"Unhandled exception: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
        },
        exc_info=exc
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )


# Including routers
app.include_router(orders.router)


# Add rate limiter to the app
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
