"""FlowRecord ORM model — one row per flow instance.

A row holds everything needed to resume a flow: the definition it runs,
the cursor position in the effective path and the committed answers.
Answers live in a JSONB column keyed by ``str(step_id)`` so a single row
fetch is enough to rebuild the controller.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Index,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from mindflow_db.models.base import Base
from mindflow_db.models.enums import RecordStatus


class FlowRecord(Base):
    """One row per flow instance.

    A user may run many flows over time; each is uniquely identified by the
    (user_id, flow_id) pair.
    """

    __tablename__ = "flow_records"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # --- Identity ---
    user_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    # Caller-supplied instance identifier, unique within a user
    flow_id: Mapped[str] = mapped_column(Text, nullable=False)
    # Which flow definition drives this instance (e.g. "assessment")
    definition_id: Mapped[str] = mapped_column(Text, nullable=False)

    # --- Lifecycle ---
    status: Mapped[RecordStatus] = mapped_column(
        String(20),
        nullable=False,
        default=RecordStatus.ACTIVE,
        index=True,
    )
    # 0-based position in the effective path
    current_index: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)

    # --- Answers ---
    # {str(step_id): answer}; cleared once the answer sink accepts them
    answers: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )

    # --- Outcome ---
    # Scored report written on submission (assessment flows)
    result: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    # Last submission failure, kept until a retry succeeds
    submission_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    # --- Timestamps ---
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    submitted_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    __table_args__ = (
        UniqueConstraint("user_id", "flow_id", name="uq_user_flow"),
        CheckConstraint("current_index >= 0", name="ck_index_non_negative"),
        CheckConstraint(
            "status != 'submitted' OR submitted_at IS NOT NULL",
            name="ck_submitted_has_timestamp",
        ),
        CheckConstraint(
            "status NOT IN ('completed', 'submitted') OR completed_at IS NOT NULL",
            name="ck_completed_has_timestamp",
        ),
        Index("ix_definition_id", "definition_id"),
        # Flows awaiting a submission retry
        Index(
            "ix_pending_submission",
            "user_id",
            postgresql_where=text("status = 'completed'"),
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<FlowRecord(id={self.id!s}, user={self.user_id!r}, "
            f"flow={self.flow_id!r}, definition={self.definition_id!r}, "
            f"status={self.status!r}, index={self.current_index})>"
        )
