"""HTTP middleware: request correlation and access logging."""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging_config import get_logger
from .request_id import accept_request_id, set_request_id

logger = get_logger(__name__)

# Health checks and scrapes are hit constantly and would drown the access log
QUIET_PATHS = frozenset({"/health", "/metrics"})


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Binds a request ID to the context, logs the outcome, echoes the ID back."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = accept_request_id(request.headers.get("X-Request-ID"))
        set_request_id(request_id)

        # Portal tokens travel in headers or the body, never in the path
        route = f"{request.method} {request.url.path}"
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"{route} raised {type(exc).__name__}",
                extra={"error_type": type(exc).__name__, "duration_ms": _elapsed_ms(started)},
                exc_info=True,
            )
            raise

        if request.url.path not in QUIET_PATHS:
            level = "warning" if response.status_code >= 500 else "info"
            getattr(logger, level)(
                f"{route} -> {response.status_code}",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": _elapsed_ms(started),
                },
            )

        response.headers["X-Request-ID"] = request_id
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
