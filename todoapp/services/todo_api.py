"""
Todo Service — Request Dispatcher
==================================

What:  Turns (HTTP method, resource path, untyped payload) into one todo
       operation and an ApiResponse.
Who:   Called by every handler in routes/todos.py.

Dispatch Table:
    GET     → list all todos                       → 200 + body
    POST    → create from payload["text"]          → 201
    PATCH   → update trailing-segment uid          → 200
    DELETE  → delete trailing-segment uid          → 200
    other   → MethodNotAllowedError (no DB access) → 405

    Every method except GET then replaces its result with a 303 redirect to
    settings.todos_location. A browser that submitted an HTML form lands back
    on the list instead of on the form's action URL.
"""

import logging
from typing import Any, Mapping, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from todoapp.config import settings
from todoapp.exceptions import MethodNotAllowedError, ValidationError
from todoapp.schemas.todo import ApiResponse, TodoCreate, TodoUpdate
from todoapp.services.todo_service import todo_service

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ("GET", "POST", "PATCH", "DELETE")


def resource_uid(resource: str) -> str:
    """Trailing path segment of `resource` ("/todos/abc" → "abc")."""
    return resource.split("/")[-1]


def _parse_payload(schema: type[BaseModel], data: Optional[Mapping[str, Any]]) -> Any:
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ValidationError(
            message="Todo payload must be an object",
            context={"received": type(data).__name__},
        )
    try:
        return schema.model_validate(dict(data))
    except PydanticValidationError as e:
        raise ValidationError(
            message="Invalid todo payload",
            context={"errors": e.errors(include_url=False, include_context=False, include_input=False)},
        ) from e


async def api(
    db: AsyncSession,
    method: str,
    resource: str,
    data: Optional[Mapping[str, Any]] = None,
) -> ApiResponse:
    """
    Perform the todo operation for `method` and shape its response.

    Args:
        db:       Session for this request
        method:   HTTP method name, any case
        resource: Request path; its last segment is the uid for PATCH/DELETE
        data:     Untyped payload (decoded JSON object or form fields)

    Returns:
        ApiResponse: `{status: 200, body: [...]}` for GET, otherwise a 303
        redirect to the todo list.

    Raises:
        MethodNotAllowedError: method outside GET/POST/PATCH/DELETE
        ValidationError:       payload does not fit the operation
        NotFoundError:         PATCH/DELETE on an unknown uid
        DatabaseError:         the ORM call failed
    """
    verb = method.upper()
    body: Any = None

    if verb == "DELETE":
        await todo_service.delete_todo(db, resource_uid(resource))
        status = 200
    elif verb == "GET":
        body = await todo_service.list_todos(db)
        status = 200
    elif verb == "PATCH":
        changes = _parse_payload(TodoUpdate, data)
        body = await todo_service.update_todo(db, resource_uid(resource), changes)
        status = 200
    elif verb == "POST":
        todo_in = _parse_payload(TodoCreate, data)
        body = await todo_service.create_todo(db, todo_in)
        status = 201
    else:
        logger.warning("Rejected %s %s", verb, resource)
        raise MethodNotAllowedError(verb, allowed=ALLOWED_METHODS)

    if verb != "GET":
        logger.debug("%s %s finished with %d; redirecting", verb, resource, status)
        return ApiResponse(status=303, headers={"location": settings.todos_location})

    return ApiResponse(status=status, body=body)
