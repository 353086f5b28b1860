"""Schemas for AI-generated draft curricula."""

from typing import List, Optional

from pydantic import Field, field_validator

from pathgen.schemas.common import CamelModel


class GenerateRequest(CamelModel):
    topic: str = Field(min_length=1, max_length=200)

    @field_validator("topic")
    @classmethod
    def topic_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("topic must not be blank")
        return value


class DraftModule(CamelModel):
    title: str = ""
    description: str = ""
    youtube_url: Optional[str] = None
    github_url: Optional[str] = None
    is_completed: bool = False
    notes: str = ""


class DraftProject(CamelModel):
    title: str = "Untitled Project"
    description: str = "No description provided."
    github_url: str = "#"


class DraftLevel(CamelModel):
    name: str
    modules: List[DraftModule] = []
    projects: List[DraftProject] = []


class DraftCurriculum(CamelModel):
    """An unsaved curriculum, shaped like the create-path body."""

    topic: str
    levels: List[DraftLevel]
