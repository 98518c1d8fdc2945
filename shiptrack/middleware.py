"""Request logging, request ids and rate limiting."""
import time
import uuid

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from shiptrack.core.config import settings
from shiptrack.logging_config import get_logger

logger = get_logger("http")

REQUEST_ID_HEADER = "X-Request-ID"

# Imports parse and write a whole catalog per call
IMPORT_RATE_LIMIT = "10/minute"

# Probes poll often; keep them out of the INFO log
QUIET_PATHS = frozenset({"/health"})


def client_key(request: Request) -> str:
    """First hop of X-Forwarded-For when behind a proxy, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(
    key_func=client_key,
    enabled=settings.rate_limit_enabled,
    default_limits=[f"{settings.rate_limit_per_minute}/minute"]
)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id and logs method, path, status and duration."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        request.state.request_id = request_id
        log = logger.debug if request.url.path in QUIET_PATHS else logger.info
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            elapsed = (time.perf_counter() - started) * 1000
            logger.error(
                f"[{request_id}] {request.method} {request.url.path} failed after {elapsed:.2f}ms: {e}",
                exc_info=True
            )
            raise

        elapsed = (time.perf_counter() - started) * 1000
        log(
            f"[{request_id}] {request.method} {request.url.path} "
            f"{response.status_code} {elapsed:.2f}ms client={client_key(request)}"
        )
        response.headers["X-Process-Time"] = f"{elapsed:.2f}ms"
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"[RATE_LIMIT] {client_key(request)} exceeded {exc.detail} on {request.url.path}")
    return JSONResponse(
        status_code=429,
        content={
            "error": "Rate limit exceeded",
            "details": {"limit": str(exc.detail)},
            "path": request.url.path
        },
        headers={"Retry-After": "60"}
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """Auth and routing errors in the same envelope as application errors."""
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.detail if isinstance(exc.detail, str) else "HTTP error",
            "details": {"status_code": exc.status_code},
            "path": request.url.path
        },
        headers=getattr(exc, "headers", None)
    )
