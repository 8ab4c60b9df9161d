"""Create todo table

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Creates the `todo` table backing the /todos resource.
Rollback: downgrade() drops the table (all todos are lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "todo",
        # UUID4 string assigned by the application on insert
        sa.Column("uid", sa.String(36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("done", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("uid"),
    )

    # GET /todos lists in creation order
    op.create_index("idx_todo_created_at", "todo", ["created_at"])


def downgrade() -> None:
    op.drop_index("idx_todo_created_at", table_name="todo")
    op.drop_table("todo")
