import logging
import time
from typing import Dict, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

log = logging.getLogger("stocky.http")

# headers worth a line in the access log; credentials are redacted
LOGGED_HEADERS = ("user-agent", "x-request-id", "authorization", "apikey")
REDACTED_HEADERS = {"authorization", "apikey"}


def _header_summary(request: Request) -> Dict[str, str]:
    out = {}
    for name in LOGGED_HEADERS:
        value = request.headers.get(name)
        if value is not None:
            out[name] = "***" if name in REDACTED_HEADERS else value
    return out


def _user_id(request: Request) -> Optional[str]:
    # path params are filled in by the router during call_next
    raw = request.path_params.get("user_id")
    return None if raw is None else str(raw)


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        log.info(
            "%s %s -> %s in %dms user=%s headers=%s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            _user_id(request) or "-",
            _header_summary(request),
        )
        return response
