"""Initial schema - resource tree, data_privileges, task_log.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "resource",
        sa.Column("uri", sa.String(255), primary_key=True),
        sa.Column("is_class", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("label", sa.String(255), nullable=True),
        sa.Column(
            "parent_uri",
            sa.String(255),
            sa.ForeignKey("resource.uri", ondelete="CASCADE"),
            nullable=True,
        ),
    )
    op.create_index("ix_resource_parent_uri", "resource", ["parent_uri", "is_class"])

    op.create_table(
        "data_privileges",
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("resource_id", sa.String(255), nullable=False),
        sa.Column("privilege", sa.String(255), nullable=False),
        sa.PrimaryKeyConstraint("user_id", "resource_id", "privilege"),
    )
    op.create_index("ix_data_privileges_resource_id", "data_privileges", ["resource_id"])

    op.create_table(
        "task_log",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("action", sa.String(255), nullable=False),
        sa.Column("params", JSONB(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("report", JSONB(), nullable=True),
        sa.Column("run_after", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_task_log_status_run_after", "task_log", ["status", "run_after"])


def downgrade() -> None:
    op.drop_table("task_log")
    op.drop_table("data_privileges")
    op.drop_table("resource")
