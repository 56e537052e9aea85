"""FlowService — database-backed host for flow controllers.

Stateless pattern: each call loads the flow record, restores a
:class:`FlowController` from its snapshot, applies exactly one action,
persists the new snapshot and returns a :class:`FlowView`.  No in-memory
state is kept between calls.

The service accepts an ``AsyncSession`` from the caller so that the caller
(typically a FastAPI endpoint) controls transaction boundaries.

Staged-but-uncommitted answers are not persisted: clients send the
candidate with the action that commits it (``next(value=...)``) or use
``stage`` for kinds that auto-advance on selection.

Completion:
    When the last effective step is committed the record moves to
    ``completed`` and the answers are handed to the :class:`AnswerSink`.
    Success writes the scoring result and clears the answers; failure keeps
    them and records the error so the client can call ``retry_submit`` with
    the same snapshot.  Without a sink the record itself keeps the answers
    and is marked submitted straight away.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from mindflow_db.models.enums import RecordStatus
from mindflow_db.models.record import FlowRecord
from mindflow_db.repository import FlowRepository

from mindflow.answers import to_jsonable
from mindflow.catalog import FlowCatalog
from mindflow.engine import FlowController
from mindflow.interfaces import AnswerSink
from mindflow.models.flow import (
    FlowInfo,
    FlowSnapshot,
    FlowStatus,
    FlowView,
    SubmitResult,
    TransitionResult,
)
from mindflow.scoring import score_assessment

logger = logging.getLogger(__name__)

# Marks "no value supplied" for next(); None is a legitimate candidate
_UNSET = object()


def _status_value(status: Any) -> str:
    return status.value if isinstance(status, enum.Enum) else str(status)


class FlowService:
    """Runs flows defined in a :class:`FlowCatalog` against the database.

    Args:
        catalog: a loaded flow catalog
        sink: optional destination for completed answers; without one,
            completed flows are marked submitted and keep their answers
    """

    def __init__(self, catalog: FlowCatalog, sink: AnswerSink | None = None) -> None:
        self._catalog = catalog
        self._sink = sink
        self._repo = FlowRepository()

    # ==================================================================
    # Flow lifecycle
    # ==================================================================

    async def create_flow(
        self,
        db: AsyncSession,
        *,
        user_id: str,
        flow_id: str,
        definition_id: str,
    ) -> FlowInfo:
        """Create a new flow instance positioned at its first effective step.

        The caller must ``await db.commit()`` to persist.

        Raises:
            KeyError: unknown definition
            ValueError: a flow with this id already exists for the user
        """
        self._catalog.get_definition(definition_id)
        existing = await self._repo.get_by_user_and_flow(db, user_id, flow_id)
        if existing is not None:
            raise ValueError(f"Flow already exists: user_id={user_id}, flow_id={flow_id}")

        controller = self._catalog.create_flow(definition_id, flow_id=flow_id)
        row = await self._repo.create_flow(
            db,
            user_id=user_id,
            flow_id=flow_id,
            definition_id=definition_id,
            current_index=controller.current_index,
        )
        logger.info("Created flow %s (%s) for user %s", flow_id, definition_id, user_id)
        return self._to_flow_info(row)

    async def get_flow(
        self, db: AsyncSession, *, user_id: str, flow_id: str
    ) -> FlowInfo | None:
        """Fetch flow info by (user_id, flow_id).  Returns None if not found."""
        row = await self._repo.get_by_user_and_flow(db, user_id, flow_id)
        if row is None:
            return None
        return self._to_flow_info(row)

    async def list_flows(
        self,
        db: AsyncSession,
        *,
        user_id: str,
        definition_id: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[FlowInfo]:
        """List flows for a user, most recent first."""
        rows = await self._repo.list_by_user(
            db, user_id, definition_id=definition_id, limit=limit, offset=offset,
        )
        return [self._to_flow_info(r) for r in rows]

    async def abandon(self, db: AsyncSession, *, user_id: str, flow_id: str) -> FlowView:
        """Abandon the flow and discard its answers."""
        row = await self._load_flow(db, user_id, flow_id)
        controller = self._restore(row)
        transition = controller.exit()
        if transition.outcome == "exited":
            await self._repo.abandon(db, row)
        return self._to_view(row, controller, transition)

    # ==================================================================
    # Step API
    # ==================================================================

    async def get_current_step(
        self, db: AsyncSession, *, user_id: str, flow_id: str
    ) -> FlowView:
        """Return what the host should show now.  Read-only."""
        row = await self._load_flow(db, user_id, flow_id)
        controller = self._restore(row)
        return self._to_view(row, controller)

    async def stage(
        self, db: AsyncSession, *, user_id: str, flow_id: str, value: Any
    ) -> FlowView:
        """Stage a selection; auto-advancing kinds commit and move on."""
        row, controller = await self._load_active(db, user_id, flow_id)
        transition = controller.select(value)
        return await self._apply(db, row, controller, transition)

    async def next(
        self,
        db: AsyncSession,
        *,
        user_id: str,
        flow_id: str,
        value: Any = _UNSET,
    ) -> FlowView:
        """Commit ``value`` (or the pre-staged answer) and advance."""
        row, controller = await self._load_active(db, user_id, flow_id)
        if value is not _UNSET:
            controller.stage_answer(value)
        transition = controller.next()
        return await self._apply(db, row, controller, transition)

    async def previous(self, db: AsyncSession, *, user_id: str, flow_id: str) -> FlowView:
        """Go back one effective step; from the first step this abandons."""
        row, controller = await self._load_active(db, user_id, flow_id)
        transition = controller.previous()
        return await self._apply(db, row, controller, transition)

    async def skip(self, db: AsyncSession, *, user_id: str, flow_id: str) -> FlowView:
        """Skip a skippable media-capture step."""
        row, controller = await self._load_active(db, user_id, flow_id)
        transition = controller.skip()
        return await self._apply(db, row, controller, transition)

    async def complete_capture(
        self, db: AsyncSession, *, user_id: str, flow_id: str
    ) -> FlowView:
        """Record a finished voice/expression analysis and advance."""
        row, controller = await self._load_active(db, user_id, flow_id)
        transition = controller.complete_capture()
        return await self._apply(db, row, controller, transition)

    async def retry_submit(self, db: AsyncSession, *, user_id: str, flow_id: str) -> FlowView:
        """Re-submit a completed flow whose previous submission failed.

        Raises:
            ValueError: if the flow is not awaiting submission
        """
        row = await self._load_flow(db, user_id, flow_id)
        status = _status_value(row.status)
        if status != RecordStatus.COMPLETED.value:
            raise ValueError(
                f"Cannot submit flow {flow_id}: status is '{status}', "
                "only valid during 'completed'"
            )
        controller = self._restore(row)
        submission = await self._submit(db, row, controller)
        return self._to_view(row, controller, submission=submission)

    # ==================================================================
    # Internal helpers
    # ==================================================================

    async def _load_flow(self, db: AsyncSession, user_id: str, flow_id: str) -> FlowRecord:
        """Load a flow row or raise ValueError if not found."""
        row = await self._repo.get_by_user_and_flow(db, user_id, flow_id)
        if row is None:
            raise ValueError(f"Flow not found: user_id={user_id}, flow_id={flow_id}")
        return row

    async def _load_active(
        self, db: AsyncSession, user_id: str, flow_id: str
    ) -> tuple[FlowRecord, FlowController]:
        row = await self._load_flow(db, user_id, flow_id)
        status = _status_value(row.status)
        if status != RecordStatus.ACTIVE.value:
            raise ValueError(
                f"Cannot navigate flow {flow_id}: status is '{status}', "
                "only valid during 'active'"
            )
        return row, self._restore(row)

    def _restore(self, row: FlowRecord) -> FlowController:
        snapshot = FlowSnapshot(
            flow_id=row.flow_id,
            current_index=row.current_index,
            answers=dict(row.answers or {}),
            status=FlowStatus(_status_value(row.status)),
        )
        return self._catalog.restore_flow(row.definition_id, snapshot)

    async def _apply(
        self,
        db: AsyncSession,
        row: FlowRecord,
        controller: FlowController,
        transition: TransitionResult,
    ) -> FlowView:
        """Persist the outcome of one navigation action."""
        submission: SubmitResult | None = None
        record = controller.to_record()

        if transition.outcome == "moved":
            await self._repo.save_progress(
                db, row, current_index=record.current_index, answers=record.answers,
            )
        elif transition.outcome == "completed":
            await self._repo.mark_completed(
                db, row, current_index=record.current_index, answers=record.answers,
            )
            submission = await self._submit(db, row, controller)
        elif transition.outcome == "exited":
            await self._repo.abandon(db, row)

        return self._to_view(row, controller, transition, submission=submission)

    async def _submit(
        self, db: AsyncSession, row: FlowRecord, controller: FlowController
    ) -> SubmitResult:
        """Score and deliver the answers; persist the outcome on the row."""
        definition = self._catalog.get_definition(row.definition_id)
        result: dict | None = None
        if definition.scoring == "assessment":
            result = score_assessment(controller.snapshot()).model_dump(mode="json")

        async def deliver(answers: Mapping[Any, Any]) -> SubmitResult:
            if self._sink is None:
                return SubmitResult(ok=True)
            payload = {str(k): to_jsonable(v) for k, v in answers.items()}
            return await self._sink.submit(row.flow_id, row.definition_id, payload)

        controller.on_complete(deliver)
        submission = await controller.submit()
        if submission.ok:
            await self._repo.mark_submitted(
                db, row, result, keep_answers=self._sink is None,
            )
        else:
            await self._repo.record_submission_failure(
                db, row, submission.error or "Submission failed",
            )
        return submission

    def _to_view(
        self,
        row: FlowRecord,
        controller: FlowController,
        transition: TransitionResult | None = None,
        *,
        submission: SubmitResult | None = None,
    ) -> FlowView:
        status = controller.status
        if submission is None and status is FlowStatus.COMPLETED and row.submission_error:
            submission = SubmitResult(ok=False, error=row.submission_error, retryable=True)

        return FlowView(
            type="step" if status is FlowStatus.ACTIVE else status.value,
            flow_id=row.flow_id,
            definition_id=row.definition_id,
            current_index=controller.current_index,
            progress=controller.progress(),
            step=controller.current_payload(),
            staged=to_jsonable(controller.staged),
            validation=transition.validation if transition is not None else None,
            notices=controller.notices(),
            submission=submission,
            result=row.result,
        )

    @staticmethod
    def _to_flow_info(row: FlowRecord) -> FlowInfo:
        """Convert an ORM row to a public FlowInfo."""
        return FlowInfo(
            user_id=row.user_id,
            flow_id=row.flow_id,
            definition_id=row.definition_id,
            status=_status_value(row.status),
            current_index=row.current_index,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
