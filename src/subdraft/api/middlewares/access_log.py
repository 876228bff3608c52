# src/subdraft/api/middlewares/access_log.py
from __future__ import annotations

import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from subdraft.api.metrics import observe_http_request
from subdraft.utils.logger import get_logger, get_trace_id

logger = get_logger("subdraft.access")


def route_label(request: Request) -> str:
    """
    Path template of the matched route ("/v1/transcripts/{transcript_id}"),
    so metrics carry one series per endpoint rather than per transcript.
    """
    route = request.scope.get("route")
    template = getattr(route, "path_format", None) or getattr(route, "path", None)
    return template or "<unmatched>"


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Access log line and request metrics; the trace id comes from RequestContextMiddleware."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        t0 = time.perf_counter()
        status = 500
        try:
            resp = await call_next(request)
            status = resp.status_code
            return resp
        finally:
            dur_ms = (time.perf_counter() - t0) * 1000.0
            route = route_label(request)
            observe_http_request(request.method, route, status, dur_ms)
            log = logger.warning if status >= 500 else logger.info
            log(
                "ACCESS %s %s route=%s status=%d dur_ms=%.1f trace=%s",
                request.method,
                request.url.path,
                route,
                status,
                dur_ms,
                get_trace_id(),
            )
