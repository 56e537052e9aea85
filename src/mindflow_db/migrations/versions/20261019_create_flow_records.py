"""Create flow_records table.

Initial migration: one row per flow instance with the resumable
``{flow_id, current_index, answers}`` layout plus lifecycle columns.

Revision ID: 20261019_flow_records
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

# revision identifiers, used by Alembic.
revision = "20261019_flow_records"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "flow_records",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        # Identity
        sa.Column("user_id", sa.Text, nullable=False),
        sa.Column("flow_id", sa.Text, nullable=False),
        sa.Column("definition_id", sa.Text, nullable=False),
        # Lifecycle
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'active'"),
        ),
        sa.Column(
            "current_index",
            sa.SmallInteger,
            nullable=False,
            server_default=sa.text("0"),
        ),
        # Answers
        sa.Column(
            "answers",
            JSONB,
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        # Outcome
        sa.Column("result", JSONB, nullable=True),
        sa.Column("submission_error", sa.Text, nullable=True),
        # Timestamps
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("completed_at", TIMESTAMP(timezone=True), nullable=True),
        sa.Column("submitted_at", TIMESTAMP(timezone=True), nullable=True),
        # Constraints
        sa.UniqueConstraint("user_id", "flow_id", name="uq_user_flow"),
        sa.CheckConstraint("current_index >= 0", name="ck_index_non_negative"),
        sa.CheckConstraint(
            "status != 'submitted' OR submitted_at IS NOT NULL",
            name="ck_submitted_has_timestamp",
        ),
        sa.CheckConstraint(
            "status NOT IN ('completed', 'submitted') OR completed_at IS NOT NULL",
            name="ck_completed_has_timestamp",
        ),
    )

    op.create_index("ix_flow_records_user_id", "flow_records", ["user_id"])
    op.create_index("ix_flow_records_status", "flow_records", ["status"])
    op.create_index("ix_definition_id", "flow_records", ["definition_id"])
    op.create_index(
        "ix_pending_submission",
        "flow_records",
        ["user_id"],
        postgresql_where=sa.text("status = 'completed'"),
    )


def downgrade() -> None:
    op.drop_index("ix_pending_submission", table_name="flow_records")
    op.drop_index("ix_definition_id", table_name="flow_records")
    op.drop_index("ix_flow_records_status", table_name="flow_records")
    op.drop_index("ix_flow_records_user_id", table_name="flow_records")
    op.drop_table("flow_records")
