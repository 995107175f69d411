from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.orm import Session
import logging
import time

from scheduling_service.api.rate_limit import client_key, limiter
from scheduling_service.api.routes import error_response, router as scheduling_router
from scheduling_service.config.settings import get_settings
from scheduling_service.models.errors import ErrorCode, SchedulingError
from scheduling_service.storage.database import get_db, init_db, ping
from scheduling_service.utils.logging_config import ACCESS_LOGGER, setup_logging


# Setup logging
setup_logging()
logger = logging.getLogger(__name__)
access_logger = logging.getLogger(ACCESS_LOGGER)
settings = get_settings()

ERROR_STATUS = {
    ErrorCode.VALIDATION: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INTERNAL: 500,
}

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    description="Resource conflict detection and availability queries for event scheduling",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)
app.state.limiter = limiter

app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Access log line per request: status, method, path, latency."""
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        duration_ms = (time.perf_counter() - started) * 1000
        access_logger.info(f"500 - {request.method} {request.url.path} ({duration_ms:.1f}ms)")
        raise
    duration_ms = (time.perf_counter() - started) * 1000
    access_logger.info(f"{response.status_code} - {request.method} {request.url.path} ({duration_ms:.1f}ms)")
    return response


@app.exception_handler(SchedulingError)
def scheduling_error_handler(request: Request, exc: SchedulingError):
    if exc.code == ErrorCode.INTERNAL:
        logger.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=exc.cause)
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc}")
    return error_response(ERROR_STATUS[exc.code], exc.code.value, exc.message)


@app.exception_handler(RequestValidationError)
def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Invalid request for {request.url.path}: {exc.errors()}")
    return error_response(400, "invalid_request", "Invalid request")


@app.exception_handler(Exception)
def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return error_response(500, ErrorCode.INTERNAL.value, "internal server error")


@app.exception_handler(RateLimitExceeded)
def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded for client: {client_key(request)}")
    return error_response(429, "rate_limited", "Rate limit exceeded. Please try again later.")


@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {settings.app_name}...")
    if settings.create_tables:
        init_db()
        logger.info("Database tables created")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Shutting down {settings.app_name}...")


app.include_router(scheduling_router, prefix="/api/v1/scheduling", tags=["scheduling"])


@app.get("/health", tags=["health"])
@app.get("/api/v1/health", tags=["health"])
@limiter.exempt
def health_check(db: Session = Depends(get_db)):
    """Health check endpoint for monitoring and load balancers."""
    return {"status": "ok", "database": "connected" if ping(db) else "disconnected"}


def run() -> None:
    import uvicorn

    uvicorn.run("scheduling_service.main:app", host="0.0.0.0", port=settings.port)
