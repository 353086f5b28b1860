"""Learning path service layer."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pathgen.db.base import utcnow
from pathgen.errors import MetricsUpdateError, NotFoundError
from pathgen.models import LearningPath, Level, Module, Project
from pathgen.schemas.learning_paths import LearningPathSummary, LevelIn
from pathgen.services.metrics import MetricsService

logger = logging.getLogger(__name__)


class LearningPathService:
    """CRUD over a user's learning paths.

    Every method is scoped by ``user_id``; a path owned by someone else is
    reported exactly like a missing one.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.metrics = MetricsService(db)

    async def list_paths(self, user_id: UUID) -> list[LearningPathSummary]:
        """Path summaries with level/module counts, newest first."""
        return [
            LearningPathSummary(
                id=totals.id,
                topic=totals.topic,
                created_at=totals.created_at,
                level_count=totals.level_count,
                module_count=totals.total_modules,
                completed_module_count=totals.completed_modules,
            )
            for totals in await self.metrics.path_totals(user_id)
        ]

    async def get_path(self, user_id: UUID, path_id: UUID) -> LearningPath:
        """Owned path with levels, modules and projects loaded in order."""
        result = await self.db.execute(
            select(LearningPath)
            .where(LearningPath.id == path_id, LearningPath.user_id == user_id)
            .options(
                selectinload(LearningPath.levels).selectinload(Level.modules),
                selectinload(LearningPath.levels).selectinload(Level.projects),
            )
            .execution_options(populate_existing=True)
        )
        path = result.scalar_one_or_none()
        if path is None:
            raise NotFoundError("Learning path not found")
        return path

    async def create_path(
        self, user_id: UUID, topic: str, levels: list[LevelIn]
    ) -> LearningPath:
        """Insert a path and all of its children in a single transaction."""
        path = LearningPath(user_id=user_id, topic=topic, created_at=utcnow())
        path.levels = self._build_levels(levels)
        self.db.add(path)
        await self.db.commit()

        logger.info(
            "Created learning path %s for user %s (%d levels, %d modules)",
            path.id,
            user_id,
            len(levels),
            sum(len(level.modules) for level in levels),
        )
        await self._refresh_metrics(user_id, path.id)
        return path

    async def update_path(
        self, user_id: UUID, path_id: UUID, topic: str, levels: list[LevelIn]
    ) -> LearningPath:
        """Replace the topic and every level of an owned path.

        Existing levels, modules and projects are deleted and re-created from
        ``levels``; completion flags and notes survive only if resent.
        """
        path = await self.get_path(user_id, path_id)
        path.topic = topic
        path.levels.clear()
        # Delete the old rows before inserting replacements
        await self.db.flush()
        path.levels.extend(self._build_levels(levels))
        await self.db.commit()

        logger.info("Replaced contents of learning path %s", path_id)
        await self._refresh_metrics(user_id, path_id)
        return path

    async def delete_path(self, user_id: UUID, path_id: UUID) -> None:
        path = await self.get_path(user_id, path_id)
        await self.db.delete(path)
        await self.db.commit()

        logger.info("Deleted learning path %s for user %s", path_id, user_id)
        await self._refresh_metrics(user_id, path_id)

    async def set_module_completion(
        self, user_id: UUID, path_id: UUID, module_id: UUID, is_completed: bool
    ) -> Module:
        module = await self._get_owned_module(user_id, path_id, module_id)
        module.is_completed = is_completed
        module.updated_at = utcnow()
        await self.db.commit()

        await self._refresh_metrics(user_id, module_id)
        return module

    async def set_module_notes(
        self, user_id: UUID, path_id: UUID, module_id: UUID, notes: str
    ) -> Module:
        """Update notes only; ``updated_at`` keeps tracking completion changes."""
        module = await self._get_owned_module(user_id, path_id, module_id)
        module.notes = notes
        await self.db.commit()
        return module

    async def _get_owned_module(
        self, user_id: UUID, path_id: UUID, module_id: UUID
    ) -> Module:
        result = await self.db.execute(
            select(Module)
            .join(Level, Module.level_id == Level.id)
            .join(LearningPath, Level.learning_path_id == LearningPath.id)
            .where(
                Module.id == module_id,
                LearningPath.id == path_id,
                LearningPath.user_id == user_id,
            )
        )
        module = result.scalar_one_or_none()
        if module is None:
            raise NotFoundError("Module not found")
        return module

    def _build_levels(self, levels: list[LevelIn]) -> list[Level]:
        """ORM rows for submitted levels; order_index is the array position."""
        now = utcnow()
        built = []
        for level_index, level in enumerate(levels):
            built.append(
                Level(
                    name=level.name,
                    order_index=level_index,
                    modules=[
                        Module(
                            title=module.title,
                            description=module.description,
                            youtube_url=module.youtube_url,
                            github_url=module.github_url,
                            is_completed=module.is_completed,
                            notes=module.notes,
                            order_index=module_index,
                            updated_at=now,
                        )
                        for module_index, module in enumerate(level.modules)
                    ],
                    projects=[
                        Project(
                            title=project.title,
                            description=project.description,
                            github_url=project.github_url,
                            order_index=project_index,
                        )
                        for project_index, project in enumerate(level.projects)
                    ],
                )
            )
        return built

    async def _refresh_metrics(self, user_id: UUID, resource_id: UUID) -> None:
        """Recalculate the user's rollup after a committed mutation."""
        try:
            await self.metrics.recalculate(user_id)
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.exception("Metrics update failed for user %s", user_id)
            raise MetricsUpdateError(
                "Metrics update failed; the change was saved. "
                "Retry with POST /user-metrics/recalculate.",
                details={"resource_id": str(resource_id)},
            ) from exc
