# signalist/middleware/request_logger.py
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from signalist.logger import get_logger

log = get_logger(__name__)


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """One access-log line per request: method, path, status, latency."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            ms = (time.perf_counter() - start) * 1000
            status = getattr(response, "status_code", 500)
            level = log.warning if status >= 500 else log.info
            level("%s %s -> %s %.1fms", request.method, request.url.path, status, ms)
