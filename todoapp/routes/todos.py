"""
Todo Service — Todo Route Handlers
===================================

What:  The HTTP surface of the todo resource.
How:   Each handler reads the payload, hands method + path + payload to the
       dispatcher, and renders the ApiResponse it gets back.

Routes:
    GET    /todos         → 200 JSON list
    POST   /todos         → create, then 303 → /todos
    PATCH  /todos/{uid}   → update, then 303 → /todos
    DELETE /todos/{uid}   → delete, then 303 → /todos

Payloads may be JSON objects or HTML form fields. Forms reach PATCH/DELETE
through POST /todos/{uid}?_method=PATCH|DELETE (see middleware/method_override.py).
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, RedirectResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from todoapp.database import get_db_session
from todoapp.exceptions import ValidationError
from todoapp.middleware.user_identity import get_locals
from todoapp.schemas.todo import ApiResponse, ErrorResponse, Locals, TodoResponse
from todoapp.services.todo_api import api

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/todos", tags=["Todos"])

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

_REDIRECT_DOC = {303: {"description": "Done; redirect to the todo list"}}
_ERROR_DOCS = {
    400: {"description": "Invalid payload", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


async def read_payload(request: Request) -> Dict[str, Any]:
    """
    Decode the request body into an untyped payload.

    JSON bodies must be objects. Form bodies become a plain dict of their
    fields (last value wins for repeated names). An empty or unrecognised
    body yields an empty payload.
    """
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()

    if content_type == "application/json":
        try:
            data = await request.json()
        except ValueError as e:
            raise ValidationError(message="Request body is not valid JSON") from e
        if not isinstance(data, dict):
            raise ValidationError(
                message="Todo payload must be a JSON object",
                context={"received": type(data).__name__},
            )
        return data

    if content_type in FORM_CONTENT_TYPES:
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}

    return {}


def render(result: ApiResponse) -> Response:
    """Turn a dispatcher result into a Starlette response."""
    if result.is_redirect:
        return RedirectResponse(url=result.headers["location"], status_code=result.status)
    extra_headers = {k: v for k, v in result.headers.items() if k.lower() != "location"}
    return JSONResponse(
        status_code=result.status,
        content=jsonable_encoder(result.body),
        headers=extra_headers or None,
    )


@router.get(
    "",
    response_model=List[TodoResponse],
    responses={500: _ERROR_DOCS[500]},
    summary="List todos",
)
async def list_todos(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    locals_: Locals = Depends(get_locals),
) -> Response:
    logger.debug("Listing todos for user %s", locals_.userid)
    result = await api(db, request.method, request.url.path)
    return render(result)


@router.post(
    "",
    status_code=303,
    responses={**_REDIRECT_DOC, **_ERROR_DOCS},
    summary="Create a todo",
    description="Creates a todo from `text` (JSON or form field) and redirects to the list.",
)
async def create_todo(
    request: Request,
    payload: Dict[str, Any] = Depends(read_payload),
    db: AsyncSession = Depends(get_db_session),
    locals_: Locals = Depends(get_locals),
) -> Response:
    logger.info("Create todo requested by user %s", locals_.userid)
    result = await api(db, request.method, request.url.path, payload)
    return render(result)


@router.patch(
    "/{uid}",
    status_code=303,
    responses={
        **_REDIRECT_DOC,
        **_ERROR_DOCS,
        404: {"description": "Todo not found", "model": ErrorResponse},
    },
    summary="Update a todo",
    description="Sets `text` and/or `done` on the todo and redirects to the list.",
)
async def update_todo(
    uid: str,
    request: Request,
    payload: Dict[str, Any] = Depends(read_payload),
    db: AsyncSession = Depends(get_db_session),
    locals_: Locals = Depends(get_locals),
) -> Response:
    logger.info("Update of todo %s requested by user %s", uid, locals_.userid)
    result = await api(db, request.method, request.url.path, payload)
    return render(result)


@router.delete(
    "/{uid}",
    status_code=303,
    responses={
        **_REDIRECT_DOC,
        404: {"description": "Todo not found", "model": ErrorResponse},
        500: _ERROR_DOCS[500],
    },
    summary="Delete a todo",
)
async def delete_todo(
    uid: str,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    locals_: Locals = Depends(get_locals),
) -> Response:
    logger.info("Delete of todo %s requested by user %s", uid, locals_.userid)
    result = await api(db, request.method, request.url.path)
    return render(result)
