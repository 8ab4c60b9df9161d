"""
Todo Service — Custom Exception Hierarchy
==========================================

What:  Application-specific exceptions for the error scenarios of the todo resource.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the matching HTTP status.
Who:   Raised by the dispatcher and the service layer; caught by global handlers.

Exception Hierarchy:
    TodoAppError (base)
    ├── ValidationError          → 400 Bad Request (payload rejected)
    ├── NotFoundError            → 404 Not Found (unknown uid)
    ├── MethodNotAllowedError    → 405 Method Not Allowed
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Iterable, Optional


class TodoAppError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(TodoAppError):
    """
    Raised when a request payload cannot be turned into a todo operation.

    When:    POST without `text`, PATCH with a non-boolean `done`, a JSON body
             that is not an object.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Invalid todo payload",
            "details": {"errors": [{"loc": ["text"], "msg": "Field required", ...}]}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(TodoAppError):
    """
    Raised when a PATCH or DELETE targets a uid that does not exist.

    HTTP:    404 Not Found

    The ORM returns None for a missing row; the service converts that into
    this exception so the route never sees a half-finished operation.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class MethodNotAllowedError(TodoAppError):
    """
    Raised by the dispatcher for any method outside GET, POST, PATCH, DELETE,
    and built by the app for methods the router has no route for.

    HTTP:    405 Method Not Allowed, with an `Allow` header listing `allowed`.
    """

    def __init__(
        self,
        method: str,
        allowed: Iterable[str] = (),
        resource: str = "todos",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.method = method
        self.allowed = tuple(allowed)
        ctx = context or {}
        ctx["method"] = method
        ctx["allowed"] = list(self.allowed)
        super().__init__(
            message=f"Method '{method}' is not supported on {resource}",
            context=ctx,
        )


class DatabaseError(TodoAppError):
    """
    Raised when a database operation fails unexpectedly.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; the original
    error type is kept in `context` and logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
