"""Progress metrics endpoints."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pathgen.auth import get_active_user
from pathgen.db.base import get_db
from pathgen.schemas.common import ErrorResponse
from pathgen.schemas.metrics import (
    ActivityFeed,
    PathMetrics,
    RecalculateResponse,
    ShareSnapshot,
    UserMetricsOut,
)
from pathgen.services.metrics import MetricsService

router = APIRouter(
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}}
)


@router.get("", response_model=UserMetricsOut)
async def get_user_metrics(
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_active_user),
) -> UserMetricsOut:
    """Aggregate counters with recent activity and per-level progress."""
    service = MetricsService(db)
    return await service.overview(user_id)


@router.post("/recalculate", response_model=RecalculateResponse)
async def recalculate_user_metrics(
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_active_user),
) -> RecalculateResponse:
    """Rebuild the rollup from the path tables."""
    service = MetricsService(db)
    await service.recalculate(user_id)
    return RecalculateResponse(metrics=await service.overview(user_id))


@router.get("/paths", response_model=List[PathMetrics])
async def get_path_metrics(
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_active_user),
) -> List[PathMetrics]:
    service = MetricsService(db)
    return await service.path_metrics(user_id)


@router.get("/activity", response_model=ActivityFeed)
async def get_activity(
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_active_user),
) -> ActivityFeed:
    service = MetricsService(db)
    return await service.activity(user_id, limit=limit)


@router.get("/share", response_model=ShareSnapshot)
async def get_share_snapshot(
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_active_user),
) -> ShareSnapshot:
    """Snapshot of the user's progress for a read-only share link."""
    service = MetricsService(db)
    return await service.share_snapshot(user_id)
