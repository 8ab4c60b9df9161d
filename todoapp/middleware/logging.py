"""
Todo Service — Request Logging Middleware
==========================================

What:  One access-log line per HTTP request.
How:   Times the request and logs method, path, status, duration, request ID
       and user ID once the response is ready.
When:  Runs after RequestIDMiddleware, UserIdentityMiddleware and
       MethodOverrideMiddleware, so it sees both IDs and the effective method.

Not logged: request bodies and cookie values.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from todoapp.middleware.request_id import request_id_var
from todoapp.middleware.user_identity import userid_var

logger = logging.getLogger("todoapp.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each request at a level chosen by the response status:
        5xx → ERROR, 4xx → WARNING, everything else → INFO

    GET /health is not logged.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path

        if path == "/health":
            return await call_next(request)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        rid = request_id_var.get("")
        userid = userid_var.get("")

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] user=%s from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            userid,
            client_ip,
            extra={
                "request_id": rid,
                "userid": userid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
