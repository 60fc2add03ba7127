"""create categories, checklists and steps

Revision ID: 0001_create_checklists
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op


revision = "0001_create_checklists"
down_revision = None
branch_labels = None
depends_on = None


STEP_STATUS_VALUES = ("draft", "started", "paused", "rejected", "completed")


def upgrade() -> None:
    step_status_enum = sa.Enum(*STEP_STATUS_VALUES, name="step_status")

    op.create_table(
        "categories",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("color", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "checklists",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.String(length=4000)),
        sa.Column("category_id", sa.Uuid(), sa.ForeignKey("categories.id", ondelete="SET NULL")),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_checklists_category_id", "checklists", ["category_id"])
    op.create_index("ix_checklists_updated_at", "checklists", ["updated_at"])

    op.create_table(
        "steps",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "checklist_id",
            sa.Uuid(),
            sa.ForeignKey("checklists.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("description", sa.String(length=8000)),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("start_datetime", sa.DateTime(timezone=True)),
        sa.Column("end_datetime", sa.DateTime(timezone=True)),
        sa.Column("status", step_status_enum, nullable=False),
        sa.Column("comments", sa.String(length=8000)),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_steps_checklist_order", "steps", ["checklist_id", "order_index"])


def downgrade() -> None:
    op.drop_index("ix_steps_checklist_order", table_name="steps")
    op.drop_table("steps")
    op.drop_index("ix_checklists_updated_at", table_name="checklists")
    op.drop_index("ix_checklists_category_id", table_name="checklists")
    op.drop_table("checklists")
    op.drop_table("categories")
    sa.Enum(name="step_status").drop(op.get_bind(), checkfirst=True)
