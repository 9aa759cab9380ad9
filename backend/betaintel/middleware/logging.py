"""Access logging bound to structlog contextvars."""

import time
from typing import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()

QUIET_PATHS = frozenset({"/health"})


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request with its id, timing and the listing query keys it carried."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        quiet = request.url.path in QUIET_PATHS

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=getattr(request.state, "request_id", None),
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )
        if not quiet:
            logger.info("request_started", query_keys=sorted(request.query_params.keys()))

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.exception("request_failed", error=str(exc), duration_ms=_elapsed_ms(started))
            raise

        duration = _elapsed_ms(started)
        response.headers["X-Process-Time"] = str(duration)
        if not quiet:
            log = logger.warning if response.status_code >= 500 else logger.info
            log("request_completed", status_code=response.status_code, duration_ms=duration)
        return response
