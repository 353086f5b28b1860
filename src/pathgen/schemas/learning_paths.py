"""Pydantic schemas for learning paths and their nested content."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from pathgen.schemas.common import CamelModel


class ModuleIn(CamelModel):
    """Module as submitted by the client."""

    title: str = Field(min_length=1)
    description: str = ""
    youtube_url: Optional[str] = None
    github_url: Optional[str] = None
    is_completed: bool = False
    notes: str = ""

    @field_validator("description", "notes", mode="before")
    @classmethod
    def none_to_empty(cls, value):
        return "" if value is None else value


class ProjectIn(CamelModel):
    title: str = Field(min_length=1)
    description: str = ""
    github_url: Optional[str] = None

    @field_validator("description", mode="before")
    @classmethod
    def none_to_empty(cls, value):
        return "" if value is None else value


class LevelIn(CamelModel):
    name: str = Field(min_length=1)
    modules: List[ModuleIn] = []
    projects: List[ProjectIn] = []


class LearningPathIn(CamelModel):
    """Body of create and update. Update replaces every level."""

    topic: str = Field(min_length=1)
    levels: List[LevelIn] = []

    @field_validator("topic")
    @classmethod
    def topic_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("topic must not be blank")
        return value


class ModuleOut(CamelModel):
    id: UUID
    title: str
    description: str
    youtube_url: Optional[str] = None
    github_url: Optional[str] = None
    is_completed: bool
    notes: str
    order_index: int
    updated_at: datetime


class ProjectOut(CamelModel):
    id: UUID
    title: str
    description: str
    github_url: Optional[str] = None
    order_index: int


class LevelOut(CamelModel):
    id: UUID
    name: str
    order_index: int
    modules: List[ModuleOut] = []
    projects: List[ProjectOut] = []


class LearningPathOut(CamelModel):
    """Path with fully nested levels, modules and projects."""

    id: UUID
    topic: str
    created_at: datetime
    levels: List[LevelOut] = []


class LearningPathSummary(CamelModel):
    id: UUID
    topic: str
    created_at: datetime
    level_count: int
    module_count: int
    completed_module_count: int


class LearningPathCreated(CamelModel):
    id: UUID


class ModuleCompletionUpdate(CamelModel):
    is_completed: bool


class ModuleNotesUpdate(CamelModel):
    notes: str = Field(max_length=20000)
