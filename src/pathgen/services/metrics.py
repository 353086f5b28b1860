"""Progress metrics computed from the learning path tables.

``UserMetrics`` rows are only a cache of :meth:`MetricsService.recalculate`;
nothing ever increments or decrements the stored counters in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy import Integer, case, desc, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pathgen.db.base import utcnow
from pathgen.models import LearningPath, Level, Module, UserMetrics
from pathgen.schemas.metrics import (
    ActivityFeed,
    DailyActivity,
    LevelBucket,
    LevelMetrics,
    ModuleActivity,
    OverallMetrics,
    PathActivity,
    PathMetrics,
    ProgressByLevel,
    RecentActivity,
    ShareSnapshot,
    UserMetricsOut,
)

logger = logging.getLogger(__name__)

# Checked in order; the first keyword found in the level name wins
LEVEL_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("beginner", ("beginner", "basic")),
    ("intermediate", ("intermediate",)),
    ("advanced", ("advanced", "expert")),
]
DEFAULT_BUCKET = "beginner"


def completion_percent(completed: int, total: int) -> int:
    """Whole-number percentage, rounding halves up; 0 for an empty total."""
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


def completion_rate(completed: int, total: int) -> float:
    """Percentage with one decimal place, rounding halves up."""
    if total <= 0:
        return 0.0
    return ((2000 * completed + total) // (2 * total)) / 10


def level_bucket(level_name: str) -> str:
    """Map a free-text level name onto beginner/intermediate/advanced."""
    lowered = (level_name or "").lower()
    for bucket, keywords in LEVEL_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return bucket
    return DEFAULT_BUCKET


@dataclass
class PathTotals:
    """Aggregate counts for one path."""

    id: UUID
    topic: str
    created_at: Any
    level_count: int
    total_modules: int
    completed_modules: int

    @property
    def is_completed(self) -> bool:
        return self.total_modules > 0 and self.total_modules == self.completed_modules


def _completed_sum():
    return func.coalesce(
        func.sum(case((Module.is_completed.is_(True), 1), else_=0)), 0
    ).cast(Integer)


class MetricsService:
    """Recalculates and reads per-user progress metrics."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def path_totals(self, user_id: UUID) -> list[PathTotals]:
        """Per-path level/module counts, newest path first.

        Left joins keep paths without levels or modules as 0/0.
        """
        query = (
            select(
                LearningPath.id,
                LearningPath.topic,
                LearningPath.created_at,
                func.count(distinct(Level.id)).label("level_count"),
                func.count(Module.id).label("total_modules"),
                _completed_sum().label("completed_modules"),
            )
            .select_from(LearningPath)
            .outerjoin(Level, Level.learning_path_id == LearningPath.id)
            .outerjoin(Module, Module.level_id == Level.id)
            .where(LearningPath.user_id == user_id)
            .group_by(LearningPath.id, LearningPath.topic, LearningPath.created_at)
            .order_by(desc(LearningPath.created_at))
        )
        result = await self.db.execute(query)
        return [
            PathTotals(
                id=row.id,
                topic=row.topic,
                created_at=row.created_at,
                level_count=row.level_count or 0,
                total_modules=row.total_modules or 0,
                completed_modules=row.completed_modules or 0,
            )
            for row in result.all()
        ]

    async def recalculate(self, user_id: UUID, *, commit: bool = True) -> UserMetrics:
        """Recompute the rollup from the child tables and upsert it."""
        paths = await self.path_totals(user_id)

        total_modules = sum(p.total_modules for p in paths)
        completed_modules = sum(p.completed_modules for p in paths)

        metrics = await self.db.get(UserMetrics, user_id)
        if metrics is None:
            metrics = UserMetrics(user_id=user_id)
            self.db.add(metrics)

        metrics.total_paths = len(paths)
        metrics.completed_paths = sum(1 for p in paths if p.is_completed)
        metrics.total_modules = total_modules
        metrics.completed_modules = completed_modules
        metrics.average_completion_rate = completion_percent(
            completed_modules, total_modules
        )
        metrics.last_updated = utcnow()

        if commit:
            await self.db.commit()
        else:
            await self.db.flush()

        logger.debug(
            "Recalculated metrics for user %s: paths=%d/%d modules=%d/%d",
            user_id,
            metrics.completed_paths,
            metrics.total_paths,
            metrics.completed_modules,
            metrics.total_modules,
        )
        return metrics

    async def get_metrics(self, user_id: UUID) -> UserMetrics:
        """Stored rollup, rebuilt first if the row is missing."""
        metrics = await self.db.get(UserMetrics, user_id)
        if metrics is None:
            logger.warning("No metrics row for user %s; recalculating", user_id)
            metrics = await self.recalculate(user_id)
        return metrics

    async def recent_activity(self, user_id: UUID) -> RecentActivity:
        last_module = (
            await self.db.execute(
                select(Module.title, LearningPath.topic)
                .join(Level, Module.level_id == Level.id)
                .join(LearningPath, Level.learning_path_id == LearningPath.id)
                .where(LearningPath.user_id == user_id, Module.is_completed.is_(True))
                .order_by(desc(Module.updated_at))
                .limit(1)
            )
        ).first()

        last_path = (
            await self.db.execute(
                select(LearningPath.topic)
                .where(LearningPath.user_id == user_id)
                .order_by(desc(LearningPath.created_at))
                .limit(1)
            )
        ).scalar_one_or_none()

        completed_count = (
            await self.db.execute(
                select(func.count(Module.id))
                .join(Level, Module.level_id == Level.id)
                .join(LearningPath, Level.learning_path_id == LearningPath.id)
                .where(LearningPath.user_id == user_id, Module.is_completed.is_(True))
            )
        ).scalar_one()

        return RecentActivity(
            last_completed_module=(
                f"{last_module.title} ({last_module.topic})" if last_module else None
            ),
            last_created_path=last_path,
            completed_module_count=completed_count or 0,
        )

    async def progress_by_level(self, user_id: UUID) -> ProgressByLevel:
        result = await self.db.execute(
            select(
                Level.name,
                func.count(Module.id).label("total_modules"),
                _completed_sum().label("completed_modules"),
            )
            .select_from(LearningPath)
            .join(Level, Level.learning_path_id == LearningPath.id)
            .outerjoin(Module, Module.level_id == Level.id)
            .where(LearningPath.user_id == user_id)
            .group_by(Level.name)
        )

        buckets = {name: LevelBucket() for name, _ in LEVEL_KEYWORDS}
        for row in result.all():
            bucket = buckets[level_bucket(row.name)]
            bucket.total += row.total_modules or 0
            bucket.completed += row.completed_modules or 0
        return ProgressByLevel(**buckets)

    async def overview(self, user_id: UUID) -> UserMetricsOut:
        """Stored aggregates combined with the activity and by-level views."""
        metrics = await self.get_metrics(user_id)
        return UserMetricsOut(
            total_paths=metrics.total_paths,
            completed_paths=metrics.completed_paths,
            total_modules=metrics.total_modules,
            completed_modules=metrics.completed_modules,
            average_completion_rate=metrics.average_completion_rate,
            last_updated=metrics.last_updated,
            recent_activity=await self.recent_activity(user_id),
            progress_by_level=await self.progress_by_level(user_id),
        )

    async def level_breakdown(self, path_id: UUID) -> list[LevelMetrics]:
        result = await self.db.execute(
            select(
                Level.name,
                func.count(Module.id).label("total_modules"),
                _completed_sum().label("completed_modules"),
            )
            .select_from(Level)
            .outerjoin(Module, Module.level_id == Level.id)
            .where(Level.learning_path_id == path_id)
            .group_by(Level.id, Level.name, Level.order_index)
            .order_by(Level.order_index, Level.name)
        )
        return [
            LevelMetrics(
                level_name=row.name,
                total_modules=row.total_modules or 0,
                completed_modules=row.completed_modules or 0,
                completion_rate=completion_rate(
                    row.completed_modules or 0, row.total_modules or 0
                ),
            )
            for row in result.all()
        ]

    async def path_metrics(self, user_id: UUID) -> list[PathMetrics]:
        """Completion figures for each path with a level-by-level breakdown."""
        items = []
        for totals in await self.path_totals(user_id):
            items.append(
                PathMetrics(
                    id=totals.id,
                    topic=totals.topic,
                    created_at=totals.created_at,
                    total_levels=totals.level_count,
                    total_modules=totals.total_modules,
                    completed_modules=totals.completed_modules,
                    completion_rate=completion_rate(
                        totals.completed_modules, totals.total_modules
                    ),
                    is_completed=totals.is_completed,
                    levels=await self.level_breakdown(totals.id),
                )
            )
        return items

    async def activity(self, user_id: UUID, limit: int = 10) -> ActivityFeed:
        """Recent completions, recent paths and completions per day."""
        module_rows = await self.db.execute(
            select(
                Module.title,
                Module.notes,
                Module.updated_at,
                Level.name.label("level_name"),
                LearningPath.topic,
            )
            .join(Level, Module.level_id == Level.id)
            .join(LearningPath, Level.learning_path_id == LearningPath.id)
            .where(LearningPath.user_id == user_id, Module.is_completed.is_(True))
            .order_by(desc(Module.updated_at))
            .limit(limit)
        )
        module_activity = [
            ModuleActivity(
                module_title=row.title,
                level_name=row.level_name,
                path_topic=row.topic,
                completed_at=row.updated_at,
                notes=row.notes or "",
            )
            for row in module_rows.all()
        ]

        path_activity = [
            PathActivity(
                topic=totals.topic,
                created_at=totals.created_at,
                total_modules=totals.total_modules,
                completed_modules=totals.completed_modules,
            )
            for totals in (await self.path_totals(user_id))[:limit]
        ]

        day = func.date(Module.updated_at)
        daily_rows = await self.db.execute(
            select(day.label("activity_date"), func.count(Module.id).label("count"))
            .join(Level, Module.level_id == Level.id)
            .join(LearningPath, Level.learning_path_id == LearningPath.id)
            .where(LearningPath.user_id == user_id, Module.is_completed.is_(True))
            .group_by(day)
            .order_by(desc(day))
            .limit(7)
        )
        daily_activity = [
            DailyActivity(activity_date=row.activity_date, modules_completed=row.count)
            for row in daily_rows.all()
        ]

        return ActivityFeed(
            module_activity=module_activity,
            path_activity=path_activity,
            daily_activity=daily_activity,
        )

    async def share_snapshot(self, user_id: UUID) -> ShareSnapshot:
        metrics = await self.get_metrics(user_id)
        return ShareSnapshot(
            overall_metrics=OverallMetrics(
                total_paths=metrics.total_paths,
                completed_paths=metrics.completed_paths,
                total_modules=metrics.total_modules,
                completed_modules=metrics.completed_modules,
                average_completion_rate=metrics.average_completion_rate,
            ),
            path_metrics=await self.path_metrics(user_id),
            recent_activity=await self.activity(user_id, limit=5),
            shared_at=utcnow(),
        )
