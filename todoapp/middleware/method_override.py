"""
Todo Service — HTML Form Method Override
=========================================

What:  Lets an HTML form reach the PATCH and DELETE routes.
How:   A POST with a `_method` query parameter is re-dispatched with that
       method before routing:

           <form method="post" action="/todos/3f1c...?_method=DELETE">

       becomes DELETE /todos/3f1c... for the router and the dispatcher.

Only POST is rewritten. The override value is upper-cased and otherwise
passed through; the router answers 405 for methods it has no route for.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

OVERRIDE_PARAM = "_method"


class MethodOverrideMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        override = request.query_params.get(OVERRIDE_PARAM)
        if request.method == "POST" and override:
            method = override.strip().upper()
            logger.debug("Method override: POST → %s %s", method, request.url.path)
            # call_next hands this same scope to the router
            request.scope["method"] = method
        return await call_next(request)
