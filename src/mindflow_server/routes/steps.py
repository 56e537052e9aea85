"""Step endpoints — drive a flow one action at a time.

Every endpoint returns a ``FlowView``: the step to render (or the
completed / submitted / abandoned state), progress, active notices and,
after a rejected action, the validation message.
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from mindflow.models.flow import FlowView
from mindflow.service import FlowService

from mindflow_server.dependencies import get_db, get_service, get_user_id

router = APIRouter(tags=["steps"])


class StageRequest(BaseModel):
    """Body for POST /flows/{flow_id}/stage."""
    value: Any = None


class NextRequest(BaseModel):
    """Body for POST /flows/{flow_id}/next.

    Omit ``value`` to commit the answer already on record (or the step's
    default) when revisiting a step.
    """
    value: Any = None


@router.get("/flows/{flow_id}/step")
async def get_current_step(
    flow_id: str,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
    service: FlowService = Depends(get_service),
) -> FlowView:
    return await service.get_current_step(db, user_id=user_id, flow_id=flow_id)


@router.post("/flows/{flow_id}/stage")
async def stage(
    flow_id: str,
    body: StageRequest,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
    service: FlowService = Depends(get_service),
) -> FlowView:
    """Stage a selection.  Single choice, yes/no and mood steps advance on a valid value."""
    return await service.stage(db, user_id=user_id, flow_id=flow_id, value=body.value)


@router.post("/flows/{flow_id}/next")
async def next_step(
    flow_id: str,
    body: NextRequest | None = None,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
    service: FlowService = Depends(get_service),
) -> FlowView:
    """Validate and commit the answer, then advance."""
    if body is not None and "value" in body.model_fields_set:
        return await service.next(db, user_id=user_id, flow_id=flow_id, value=body.value)
    return await service.next(db, user_id=user_id, flow_id=flow_id)


@router.post("/flows/{flow_id}/previous")
async def previous_step(
    flow_id: str,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
    service: FlowService = Depends(get_service),
) -> FlowView:
    """Go back one step.  From the first step this abandons the flow."""
    return await service.previous(db, user_id=user_id, flow_id=flow_id)


@router.post("/flows/{flow_id}/skip")
async def skip_step(
    flow_id: str,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
    service: FlowService = Depends(get_service),
) -> FlowView:
    """Skip a voice or expression analysis step."""
    return await service.skip(db, user_id=user_id, flow_id=flow_id)


@router.post("/flows/{flow_id}/capture")
async def complete_capture(
    flow_id: str,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
    service: FlowService = Depends(get_service),
) -> FlowView:
    """Record a finished voice or expression analysis and advance."""
    return await service.complete_capture(db, user_id=user_id, flow_id=flow_id)


@router.post("/flows/{flow_id}/submit")
async def retry_submit(
    flow_id: str,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
    service: FlowService = Depends(get_service),
) -> FlowView:
    """Retry submission of a completed flow.  409 unless the flow is awaiting submission."""
    return await service.retry_submit(db, user_id=user_id, flow_id=flow_id)
