"""
Request logging middleware with correlation ID support.

Generates a unique correlation ID for each request, binds it to the structlog
context, and logs request start/completion with timing information.

Privacy: never logs IPs, request bodies, or secret ids. A secret id in the
path is a bearer credential, so redemption paths are logged as a template.
"""

import secrets
import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

SECRET_PATH_PREFIX = "/v1/secret/"


def generate_correlation_id() -> str:
    """Generate an 8-character correlation ID."""
    return secrets.token_hex(4)


def loggable_path(path: str) -> str:
    if path.startswith(SECRET_PATH_PREFIX):
        return SECRET_PATH_PREFIX + "{id}"
    return path


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that logs requests and adds correlation IDs.

    Logs:
    - request_started: method, path, correlation_id
    - request_completed: method, path, status_code, duration_ms, correlation_id
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = generate_correlation_id()
        start_time = time.perf_counter()
        path = loggable_path(request.url.path)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=correlation_id)

        logger = structlog.get_logger()

        logger.info("request_started", method=request.method, path=path)

        try:
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "request_completed",
                method=request.method,
                path=path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )

            response.headers["X-Correlation-ID"] = correlation_id

            return response

        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "request_failed",
                method=request.method,
                path=path,
                error=str(e),
                duration_ms=round(duration_ms, 2),
                exc_info=True,
            )
            raise
