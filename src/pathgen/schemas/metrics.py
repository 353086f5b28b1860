"""Schemas for the metrics rollup and derived progress views."""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MetricsCounts(BaseModel):
    """Stored aggregate counters."""

    total_paths: int
    completed_paths: int
    total_modules: int
    completed_modules: int
    average_completion_rate: int
    last_updated: datetime

    model_config = ConfigDict(from_attributes=True)


class RecentActivity(BaseModel):
    last_completed_module: Optional[str] = Field(None, alias="lastCompletedModule")
    last_created_path: Optional[str] = Field(None, alias="lastCreatedPath")
    completed_module_count: int = Field(0, alias="completedModuleCount")

    model_config = ConfigDict(populate_by_name=True)


class LevelBucket(BaseModel):
    total: int = 0
    completed: int = 0


class ProgressByLevel(BaseModel):
    beginner: LevelBucket = LevelBucket()
    intermediate: LevelBucket = LevelBucket()
    advanced: LevelBucket = LevelBucket()


class UserMetricsOut(MetricsCounts):
    """Aggregates plus the activity and by-level views."""

    recent_activity: RecentActivity = Field(alias="recentActivity")
    progress_by_level: ProgressByLevel = Field(alias="progressByLevel")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class RecalculateResponse(BaseModel):
    message: str = "Metrics recalculated successfully"
    metrics: UserMetricsOut


class LevelMetrics(BaseModel):
    level_name: str
    total_modules: int
    completed_modules: int
    completion_rate: float


class PathMetrics(BaseModel):
    id: UUID
    topic: str
    created_at: datetime
    total_levels: int
    total_modules: int
    completed_modules: int
    completion_rate: float
    is_completed: bool
    levels: List[LevelMetrics] = []


class ModuleActivity(BaseModel):
    module_title: str
    level_name: str
    path_topic: str
    completed_at: datetime
    notes: str = ""


class PathActivity(BaseModel):
    topic: str
    created_at: datetime
    total_modules: int
    completed_modules: int


class DailyActivity(BaseModel):
    activity_date: date
    modules_completed: int


class ActivityFeed(BaseModel):
    module_activity: List[ModuleActivity] = Field(alias="moduleActivity")
    path_activity: List[PathActivity] = Field(alias="pathActivity")
    daily_activity: List[DailyActivity] = Field(alias="dailyActivity")

    model_config = ConfigDict(populate_by_name=True)


class OverallMetrics(BaseModel):
    total_paths: int = Field(alias="totalPaths")
    completed_paths: int = Field(alias="completedPaths")
    total_modules: int = Field(alias="totalModules")
    completed_modules: int = Field(alias="completedModules")
    average_completion_rate: int = Field(alias="averageCompletionRate")

    model_config = ConfigDict(populate_by_name=True)


class ShareSnapshot(BaseModel):
    """Read-only progress snapshot embedded in a share link."""

    overall_metrics: OverallMetrics = Field(alias="overallMetrics")
    path_metrics: List[PathMetrics] = Field(alias="pathMetrics")
    recent_activity: ActivityFeed = Field(alias="recentActivity")
    shared_at: datetime = Field(alias="sharedAt")

    model_config = ConfigDict(populate_by_name=True)
