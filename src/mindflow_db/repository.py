"""Async CRUD repository for FlowRecord.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries.  Methods flush but never commit.

The repository performs no flow logic; the flow service decides when a
record moves between states.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mindflow_db.models.enums import RecordStatus
from mindflow_db.models.record import FlowRecord


class FlowRepository:
    """Async read/write operations on the ``flow_records`` table."""

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_flow(
        self,
        db: AsyncSession,
        *,
        user_id: str,
        flow_id: str,
        definition_id: str,
        current_index: int = 0,
    ) -> FlowRecord:
        """Insert a new flow row and return it.

        The caller must ``await db.commit()`` to persist.
        """
        record = FlowRecord(
            user_id=user_id,
            flow_id=flow_id,
            definition_id=definition_id,
            current_index=current_index,
            answers={},
        )
        db.add(record)
        await db.flush()
        return record

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_user_and_flow(
        self, db: AsyncSession, user_id: str, flow_id: str
    ) -> FlowRecord | None:
        """Fetch a record by the unique (user_id, flow_id) pair."""
        stmt = select(FlowRecord).where(
            FlowRecord.user_id == user_id,
            FlowRecord.flow_id == flow_id,
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_user(
        self,
        db: AsyncSession,
        user_id: str,
        *,
        definition_id: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[FlowRecord]:
        """List a user's flows, most recent first."""
        stmt = select(FlowRecord).where(FlowRecord.user_id == user_id)
        if definition_id is not None:
            stmt = stmt.where(FlowRecord.definition_id == definition_id)
        stmt = stmt.order_by(FlowRecord.created_at.desc()).limit(limit).offset(offset)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def save_progress(
        self,
        db: AsyncSession,
        record: FlowRecord,
        *,
        current_index: int,
        answers: dict[str, Any],
    ) -> FlowRecord:
        """Overwrite cursor and answers with the controller's snapshot."""
        record.current_index = current_index
        # New dict so SQLAlchemy detects the JSONB change
        record.answers = dict(answers)
        record.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return record

    async def mark_completed(
        self,
        db: AsyncSession,
        record: FlowRecord,
        *,
        current_index: int,
        answers: dict[str, Any],
    ) -> FlowRecord:
        """Every effective step is answered; submission is pending."""
        now = datetime.now(timezone.utc)
        record.status = RecordStatus.COMPLETED
        record.current_index = current_index
        record.answers = dict(answers)
        record.completed_at = now
        record.updated_at = now
        await db.flush()
        return record

    async def record_submission_failure(
        self, db: AsyncSession, record: FlowRecord, error: str
    ) -> FlowRecord:
        """Keep answers and status; remember why submission failed."""
        record.submission_error = error
        record.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return record

    async def mark_submitted(
        self,
        db: AsyncSession,
        record: FlowRecord,
        result: dict[str, Any] | None = None,
        *,
        keep_answers: bool = False,
    ) -> FlowRecord:
        """The answers were delivered; clear them from the row.

        With ``keep_answers`` the row itself is the destination and the
        answers stay in place.

        The CHECK constraint ``ck_submitted_has_timestamp`` enforces that
        ``submitted_at`` is set whenever status is submitted.
        """
        now = datetime.now(timezone.utc)
        record.status = RecordStatus.SUBMITTED
        record.result = result
        if not keep_answers:
            record.answers = {}
        record.submission_error = None
        record.submitted_at = now
        record.updated_at = now
        await db.flush()
        return record

    async def abandon(self, db: AsyncSession, record: FlowRecord) -> FlowRecord:
        """Discard answers and close the flow."""
        record.status = RecordStatus.ABANDONED
        record.answers = {}
        record.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return record
