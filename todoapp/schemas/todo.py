"""
Todo Service — Pydantic Request/Response Schemas
=================================================

What:  Pydantic models for todo payloads, todo records, the dispatcher result
       and error/health bodies.
How:   The dispatcher validates untyped payloads against TodoCreate/TodoUpdate;
       routes serialize TodoResponse lists and ErrorResponse bodies.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


# ══════════════════════════════════════════════════════════════════════════
# Request-local context
# ══════════════════════════════════════════════════════════════════════════


class Locals(BaseModel):
    """Per-request context filled in by UserIdentityMiddleware."""
    userid: str = Field(description="Identity from the userid cookie")


# ══════════════════════════════════════════════════════════════════════════
# Payload Models — validated from the untyped dispatcher payload
# ══════════════════════════════════════════════════════════════════════════


class TodoCreate(BaseModel):
    """
    What:  Payload accepted by POST.
    Only `text` is taken from the client; uid, created_at and done are
    assigned by the server.
    """
    text: str = Field(description="Free-text content of the todo")


class TodoUpdate(BaseModel):
    """
    What:  Payload accepted by PATCH.

    Both fields are optional. A field that is absent (or null) leaves the
    stored value unchanged, so `{"done": true}` touches nothing but `done`.

    Form submissions:
        HTML forms send `done` as a string. An empty value (an unchecked box
        or a hidden input with value="") means False; "true", "on" and "1"
        mean True.
    """
    text: Optional[str] = Field(default=None, description="New content")
    done: Optional[bool] = Field(default=None, description="New completion flag")

    @field_validator("done", mode="before")
    @classmethod
    def empty_string_is_false(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return False
        return v

    def changes(self) -> Dict[str, Any]:
        """Fields that were actually supplied with a value."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class TodoResponse(BaseModel):
    """
    What:  Full representation of a todo, as returned by GET /todos.
    """
    uid: str = Field(description="Unique todo identifier")
    created_at: datetime = Field(description="When the todo was created (UTC ISO 8601)")
    text: str = Field(description="Free-text content")
    done: bool = Field(description="Completion flag")

    model_config = {"from_attributes": True}

    @field_validator("created_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        """SQLite hands timestamps back naive; they were stored as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class ApiResponse(BaseModel):
    """
    What:  Result of one dispatcher call, before it becomes an HTTP response.

    Shapes:
        GET:        {"status": 200, "body": [TodoResponse, ...]}
        all others: {"status": 303, "headers": {"location": "/todos"}}
    """
    status: int = Field(description="HTTP status code")
    body: Any = Field(default=None, description="Response body (GET only)")
    headers: Dict[str, str] = Field(default_factory=dict, description="Response headers")

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status < 400 and "location" in self.headers


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error body for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "todo with ID '3f1c...' was not found",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and load balancer probes."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
