"""Learning path endpoints."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pathgen.auth import get_active_user
from pathgen.db.base import get_db
from pathgen.schemas.common import ErrorResponse
from pathgen.schemas.generation import DraftCurriculum, GenerateRequest
from pathgen.schemas.learning_paths import (
    LearningPathCreated,
    LearningPathIn,
    LearningPathOut,
    LearningPathSummary,
    ModuleCompletionUpdate,
    ModuleNotesUpdate,
)
from pathgen.services.generation import CurriculumGenerator
from pathgen.services.learning_paths import LearningPathService

router = APIRouter(
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    }
)


def get_generator() -> CurriculumGenerator:
    return CurriculumGenerator()


@router.get("", response_model=List[LearningPathSummary])
async def list_paths(
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_active_user),
) -> List[LearningPathSummary]:
    """List the user's paths, newest first."""
    service = LearningPathService(db)
    return await service.list_paths(user_id)


@router.post("/generate", response_model=DraftCurriculum)
async def generate_path(
    payload: GenerateRequest,
    generator: CurriculumGenerator = Depends(get_generator),
    user_id: UUID = Depends(get_active_user),
) -> DraftCurriculum:
    """Ask the AI for a draft curriculum. The draft is not saved."""
    return await generator.generate(payload.topic)


@router.post("", response_model=LearningPathCreated, status_code=201)
async def create_path(
    payload: LearningPathIn,
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_active_user),
) -> LearningPathCreated:
    service = LearningPathService(db)
    path = await service.create_path(user_id, payload.topic, payload.levels)
    return LearningPathCreated(id=path.id)


@router.get("/{path_id}", response_model=LearningPathOut)
async def get_path(
    path_id: UUID,
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_active_user),
) -> LearningPathOut:
    service = LearningPathService(db)
    path = await service.get_path(user_id, path_id)
    return LearningPathOut.model_validate(path)


@router.put("/{path_id}")
async def update_path(
    path_id: UUID,
    payload: LearningPathIn,
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_active_user),
) -> dict:
    """Replace the path's topic and all of its levels."""
    service = LearningPathService(db)
    await service.update_path(user_id, path_id, payload.topic, payload.levels)
    return {}


@router.delete("/{path_id}")
async def delete_path(
    path_id: UUID,
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_active_user),
) -> dict:
    service = LearningPathService(db)
    await service.delete_path(user_id, path_id)
    return {}


@router.patch("/{path_id}/modules/{module_id}/complete")
async def set_module_completion(
    path_id: UUID,
    module_id: UUID,
    payload: ModuleCompletionUpdate,
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_active_user),
) -> dict:
    service = LearningPathService(db)
    await service.set_module_completion(
        user_id, path_id, module_id, payload.is_completed
    )
    return {}


@router.patch("/{path_id}/modules/{module_id}/notes")
async def set_module_notes(
    path_id: UUID,
    module_id: UUID,
    payload: ModuleNotesUpdate,
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_active_user),
) -> dict:
    service = LearningPathService(db)
    await service.set_module_notes(user_id, path_id, module_id, payload.notes)
    return {}
