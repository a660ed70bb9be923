import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from projectmaster.common.logging import get_logger

logger = get_logger("api.audit")

QUIET_PATHS = frozenset({"/health"})


class AuditMiddleware(BaseHTTPMiddleware):
    """One log line per request; server errors are logged at WARNING."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex[:12]
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        if request.url.path not in QUIET_PATHS:
            log = logger.warning if response.status_code >= 500 else logger.info
            log(
                "[%s] %s %s -> %d (%.1fms)",
                request_id,
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
            )

        response.headers["X-Request-Id"] = request_id
        response.headers["X-Request-Duration-Ms"] = f"{elapsed_ms:.1f}"
        return response
