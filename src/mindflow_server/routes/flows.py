"""Flow management endpoints — create, get, list and abandon flows.

All endpoints require the ``X-User-ID`` header.  Flow identity is the
(user_id, flow_id) pair, enforced by a unique constraint in the database.
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from mindflow.models.flow import FlowInfo, FlowView
from mindflow.service import FlowService

from mindflow_server.config import ServerSettings
from mindflow_server.dependencies import get_db, get_service, get_settings, get_user_id

router = APIRouter(tags=["flows"])


class CreateFlowRequest(BaseModel):
    """Body for POST /flows."""
    flow_id: str
    definition_id: str


@router.post("/flows", status_code=201)
async def create_flow(
    body: CreateFlowRequest,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
    service: FlowService = Depends(get_service),
) -> FlowInfo:
    """Start a new flow.  409 if the flow id is taken, 404 for an unknown definition."""
    return await service.create_flow(
        db, user_id=user_id, flow_id=body.flow_id, definition_id=body.definition_id,
    )


@router.get("/flows/{flow_id}")
async def get_flow(
    flow_id: str,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
    service: FlowService = Depends(get_service),
) -> FlowInfo:
    info = await service.get_flow(db, user_id=user_id, flow_id=flow_id)
    if info is None:
        raise ValueError(f"Flow not found: flow_id={flow_id}")
    return info


@router.get("/flows")
async def list_flows(
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
    service: FlowService = Depends(get_service),
    settings: ServerSettings = Depends(get_settings),
    definition_id: str | None = Query(None),
    limit: int | None = Query(None, ge=1),
    offset: int = Query(0, ge=0),
) -> list[FlowInfo]:
    """List the caller's flows, most recent first.  ``limit`` is capped by settings."""
    return await service.list_flows(
        db,
        user_id=user_id,
        definition_id=definition_id,
        limit=settings.page_size(limit),
        offset=offset,
    )


@router.delete("/flows/{flow_id}")
async def abandon_flow(
    flow_id: str,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
    service: FlowService = Depends(get_service),
) -> FlowView:
    """Abandon the flow; its answers are discarded."""
    return await service.abandon(db, user_id=user_id, flow_id=flow_id)
