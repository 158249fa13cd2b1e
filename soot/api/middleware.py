import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from soot.common.logging import get_logger

logger = get_logger("middleware")

# Feed URLs carry the access token in the query string
_REDACTED_PATHS = ("/api/v1/calendar/feed",)


class AuditMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start_time = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start_time) * 1000

        path = request.url.path
        if request.url.query and path not in _REDACTED_PATHS:
            path = f"{path}?{request.url.query}"

        logger.info(
            "%s %s %d %.1fms",
            request.method,
            path,
            response.status_code,
            duration_ms,
        )

        response.headers["X-Request-Duration-Ms"] = f"{duration_ms:.1f}"
        return response
