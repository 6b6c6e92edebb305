"""Request ID middleware: tags every request and its log lines with an id."""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from studyhub.core.logging import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Probes hit these constantly; keep them out of the info log
QUIET_PATHS = ("/health", "/ready")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Accept or mint a request id, expose it on request.state and echo it back."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Reuse the caller's id or mint one
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        context = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "owner_id": request.headers.get("X-User-Id"),
        }
        quiet = request.url.path.endswith(QUIET_PATHS)
        started = time.perf_counter()

        # Process request
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                extra={**context, "latency_ms": _elapsed_ms(started), "error": str(e)},
                exc_info=True,
            )
            raise

        # Echo the id so clients can quote it
        response.headers[REQUEST_ID_HEADER] = request_id
        log = logger.debug if quiet and response.status_code < 400 else logger.info
        log(
            "Request completed",
            extra={**context, "status_code": response.status_code, "latency_ms": _elapsed_ms(started)},
        )
        return response


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
