"""init
Revision ID: 0001_init
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def _base_columns():
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade():
    op.create_table(
        "tasks",
        *_base_columns(),
        sa.Column("board_code", sa.String(length=50), nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="open"),
        sa.Column("priority", sa.String(length=30), nullable=False, server_default="normal"),
        sa.Column("assignee_name", sa.String(length=200), nullable=True),
        sa.Column("story_points", sa.Integer(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
    )
    op.create_index("ix_tasks_board_code", "tasks", ["board_code"])
    op.create_index("ix_tasks_status", "tasks", ["status"])
    op.create_index("ix_tasks_created_at", "tasks", ["created_at"])
    op.create_index("ix_tasks_deleted_at", "tasks", ["deleted_at"])

    op.create_table(
        "insurance_policies",
        *_base_columns(),
        sa.Column("organization_id", sa.String(length=64), nullable=False),
        sa.Column("patient_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("policy_number", sa.String(length=80), nullable=False),
        sa.Column("payer_name", sa.String(length=200), nullable=False),
        sa.Column("group_number", sa.String(length=80), nullable=True),
        sa.Column("plan_type", sa.String(length=40), nullable=False),
        sa.Column("policy_status", sa.String(length=30), nullable=False),
        sa.Column("coverage_start_date", sa.Date(), nullable=False),
        sa.Column("coverage_end_date", sa.Date(), nullable=True),
    )
    op.create_index("ix_insurance_policies_organization_id", "insurance_policies", ["organization_id"])
    op.create_index("ix_insurance_policies_patient_id", "insurance_policies", ["patient_id"])
    op.create_index("ix_insurance_policies_policy_status", "insurance_policies", ["policy_status"])
    op.create_index("ix_insurance_policies_created_at", "insurance_policies", ["created_at"])
    op.create_index("ix_insurance_policies_deleted_at", "insurance_policies", ["deleted_at"])

    op.create_table(
        "chat_messages",
        *_base_columns(),
        sa.Column("room_code", sa.String(length=80), nullable=False),
        sa.Column("sender_name", sa.String(length=200), nullable=False),
        sa.Column("message_type", sa.String(length=20), nullable=False, server_default="text"),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("is_pinned", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )
    op.create_index("ix_chat_messages_room_code", "chat_messages", ["room_code"])
    op.create_index("ix_chat_messages_created_at", "chat_messages", ["created_at"])
    op.create_index("ix_chat_messages_deleted_at", "chat_messages", ["deleted_at"])


def downgrade():
    op.drop_table("chat_messages")
    op.drop_table("insurance_policies")
    op.drop_table("tasks")
