"""Request tracing middleware.

Every request gets an id (taken from ``X-Request-ID`` when the caller sends
one) that is bound to the logging context and echoed back in the response,
along with how long the request took.

Usage:
    from libs.common.middleware import add_observability_middleware

    add_observability_middleware(app)
"""

import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from libs.common.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS = frozenset({"/health", "/docs", "/openapi.json"})


def _caller(request: Request) -> str:
    user = getattr(request.state, "user", None)
    return user.user_id if user is not None else "anonymous"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the logging context and log each request once."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_context(
            request_id=request.headers.get(REQUEST_ID_HEADER),
            path=request.url.path,
            method=request.method,
        )
        quiet = request.url.path in QUIET_PATHS
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "%s %s crashed after %.1fms",
                request.method,
                request.url.path,
                (time.perf_counter() - started) * 1000,
            )
            raise
        else:
            elapsed_ms = (time.perf_counter() - started) * 1000
            if not quiet:
                log = logger.warning if response.status_code >= 400 else logger.info
                log(
                    "%s %s -> %d (%.1fms)",
                    request.method,
                    request.url.path,
                    response.status_code,
                    elapsed_ms,
                    extra={
                        "extra_fields": {
                            "status_code": response.status_code,
                            "duration_ms": round(elapsed_ms, 2),
                            "user": _caller(request),
                        }
                    },
                )
            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers["X-Response-Time"] = f"{elapsed_ms:.1f}ms"
            return response
        finally:
            clear_request_context()


def add_observability_middleware(app: FastAPI) -> None:
    """Configure logging and install request tracing on ``app``."""
    configure_logging()
    app.add_middleware(RequestContextMiddleware)
    logger.info("Request tracing enabled for %s", app.title)
