"""Initial schema: projects and batch videos

Revision ID: 0001
Revises:
Create Date: 2026-10-18

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Projects table
    op.create_table(
        "projects",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("creator_id", sa.UUID(), nullable=True),
        sa.Column("assigned_editor_id", sa.UUID(), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("status", sa.String(50), nullable=False, server_default="draft"),
        sa.Column("base_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("is_batch", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("batch_quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("batch_delivery_mode", sa.String(20), nullable=False, server_default="sequential"),
        sa.Column("deadline_days", sa.Integer(), nullable=True),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("base_price > 0", name="ck_projects_base_price"),
        sa.CheckConstraint("batch_quantity >= 1", name="ck_projects_batch_quantity"),
    )
    op.create_index("ix_projects_creator_id", "projects", ["creator_id"])
    op.create_index("ix_projects_assigned_editor_id", "projects", ["assigned_editor_id"])
    op.create_index("ix_projects_status", "projects", ["status"])
    op.create_index("ix_projects_is_archived", "projects", ["is_archived"])

    # Batch videos table
    op.create_table(
        "batch_videos",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("project_id", sa.UUID(), nullable=False),
        sa.Column("sequence_order", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("specific_instructions", sa.Text(), nullable=True),
        sa.Column("status", sa.String(50), nullable=False, server_default="pending"),
        sa.Column("revision_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("editor_can_choose_timing", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("selected_timestamp_start", sa.Integer(), nullable=True),
        sa.Column("selected_timestamp_end", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("project_id", "sequence_order", name="uq_batch_videos_project_sequence"),
        sa.CheckConstraint("revision_count >= 0", name="ck_batch_videos_revision_count"),
    )
    op.create_index("ix_batch_videos_project_id", "batch_videos", ["project_id"])
    op.create_index("ix_batch_videos_status", "batch_videos", ["status"])


def downgrade() -> None:
    op.drop_table("batch_videos")
    op.drop_table("projects")
