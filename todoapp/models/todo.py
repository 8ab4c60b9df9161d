"""
Todo Service — Todo SQLAlchemy Model
=====================================

What:  ORM model representing the `todo` table.
How:   Inherits from SQLAlchemy's DeclarativeBase; Alembic reads this for migrations.
Who:   Used by TodoService for CRUD operations and by Alembic for schema management.

Columns:
    - uid:        UUID4 string, assigned on insert, never updated
    - created_at: UTC timestamp, assigned on insert
    - text:       free-text content, mutable
    - done:       completion flag, false on insert, mutable
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Index, String, Text, false
from sqlalchemy.orm import Mapped, mapped_column

from todoapp.database import Base


def _new_uid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Todo(Base):
    """
    A single todo item.

    Lifecycle:
        1. Created by POST (uid and created_at assigned here, done = False)
        2. Mutated by PATCH (text and/or done only)
        3. Removed by DELETE
    """

    __tablename__ = "todo"

    # String rather than a native UUID type so the column behaves the same on
    # PostgreSQL and SQLite
    uid: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_new_uid,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    text: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    done: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )

    # Listing is ordered by creation time
    __table_args__ = (
        Index("idx_todo_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Todo(uid={self.uid}, done={self.done})>"
