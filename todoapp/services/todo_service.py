"""
Todo Service — Todo Persistence Operations
===========================================

What:  The four ORM calls behind the todo resource: list, create, update, delete.
How:   Each method takes the request's AsyncSession, performs one operation,
       flushes, and returns TodoResponse models. Committing is left to the
       session dependency (database.get_db_session).
Who:   Called by the request dispatcher (services/todo_api.py).

Error Handling:
    - Unknown uid on update/delete → NotFoundError (404)
    - Any SQLAlchemyError → DatabaseError (500); the original error type is
      kept in context and logged, never returned to the client
"""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from todoapp.exceptions import DatabaseError, NotFoundError
from todoapp.models.todo import Todo
from todoapp.schemas.todo import TodoCreate, TodoResponse, TodoUpdate

logger = logging.getLogger(__name__)


class TodoService:
    """
    Stateless CRUD operations on the `todo` table.

    Responsibilities:
        - list_todos():  every stored todo, oldest first
        - create_todo(): insert with server-assigned uid/created_at, done=False
        - update_todo(): apply text/done changes to an existing todo
        - delete_todo(): remove an existing todo
    """

    async def list_todos(self, db: AsyncSession) -> List[TodoResponse]:
        try:
            result = await db.execute(select(Todo).order_by(Todo.created_at))
            todos = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing todos: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve todos. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        return [TodoResponse.model_validate(todo) for todo in todos]

    async def create_todo(self, db: AsyncSession, todo_in: TodoCreate) -> TodoResponse:
        """
        Insert a new todo.

        The client supplies only `text`. `uid` and `created_at` (UTC) come
        from the model defaults when the row is flushed.
        """
        todo = Todo(text=todo_in.text, done=False)
        try:
            db.add(todo)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating todo: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the todo. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info("Todo created: %s", todo.uid)
        return TodoResponse.model_validate(todo)

    async def update_todo(
        self, db: AsyncSession, uid: str, todo_in: TodoUpdate
    ) -> TodoResponse:
        """
        Apply the supplied fields of `todo_in` to the todo with this uid.

        Only `text` and `done` can change; fields the payload leaves out are
        left as they are.

        Raises:
            NotFoundError: no todo has this uid
            DatabaseError: lookup or flush failed
        """
        todo = await self._get(db, uid)

        changes = todo_in.changes()
        for field, value in changes.items():
            setattr(todo, field, value)

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating todo %s: %s", uid, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the todo. Please try again.",
                context={"uid": uid, "error_type": type(e).__name__},
            ) from e

        logger.info("Todo %s updated: %s", uid, sorted(changes))
        return TodoResponse.model_validate(todo)

    async def delete_todo(self, db: AsyncSession, uid: str) -> None:
        todo = await self._get(db, uid)
        try:
            await db.delete(todo)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting todo %s: %s", uid, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the todo. Please try again.",
                context={"uid": uid, "error_type": type(e).__name__},
            ) from e

        logger.info("Todo deleted: %s", uid)

    async def _get(self, db: AsyncSession, uid: str) -> Todo:
        try:
            todo = await db.get(Todo, uid)
        except SQLAlchemyError as e:
            logger.error("Database error fetching todo %s: %s", uid, str(e))
            raise DatabaseError(
                message="Could not retrieve the todo. Please try again.",
                context={"uid": uid, "error_type": type(e).__name__},
            ) from e

        if todo is None:
            raise NotFoundError(resource="todo", resource_id=uid)
        return todo


# ── Singleton Instance ────────────────────────────────────────────────────
todo_service = TodoService()
