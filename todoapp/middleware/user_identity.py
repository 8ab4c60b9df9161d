"""
Todo Service — User Identity Middleware
========================================

What:  Gives every request a `userid` (the request's Locals).
How:   Reads the userid cookie; when it is missing, generates a UUID4 and
       sets it on the response as an HttpOnly cookie on path "/".
Who:   Route handlers read it through the `get_locals` dependency; the
       access log reads it from `userid_var`.

Todos are not scoped by userid. The identity is carried for logging and
for handlers that want it.
"""

import logging
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from todoapp.config import settings
from todoapp.schemas.todo import Locals

logger = logging.getLogger(__name__)

userid_var: ContextVar[str] = ContextVar("userid", default="")


class UserIdentityMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        cookie_name = settings.userid_cookie
        userid = request.cookies.get(cookie_name)
        is_new = not userid
        if is_new:
            userid = str(uuid.uuid4())
            logger.debug("Issuing new userid %s", userid)

        userid_var.set(userid)
        request.state.locals = Locals(userid=userid)

        response = await call_next(request)

        if is_new:
            response.set_cookie(cookie_name, userid, path="/", httponly=True)
        return response


def get_locals(request: Request) -> Locals:
    """
    FastAPI dependency returning the current request's Locals.

    Falls back to the context variable when the middleware stored nothing on
    request.state (e.g. an app assembled without the middleware).
    """
    locals_ = getattr(request.state, "locals", None)
    if locals_ is None:
        locals_ = Locals(userid=userid_var.get())
    return locals_
