"""Learning path models: paths, levels, modules and projects."""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from pathgen.db.base import Base, utcnow


class LearningPath(Base):
    """A user's curriculum for one topic."""

    __tablename__ = "learning_paths"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    topic = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    user = relationship("User", back_populates="learning_paths")
    levels = relationship(
        "Level",
        back_populates="path",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="Level.order_index",
    )

    __table_args__ = (Index("idx_learning_paths_user", "user_id", "created_at"),)


class Level(Base):
    """One difficulty tier within a path."""

    __tablename__ = "levels"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    learning_path_id = Column(
        UUID(as_uuid=True),
        ForeignKey("learning_paths.id", ondelete="CASCADE"),
        nullable=False,
    )
    name = Column(String(255), nullable=False)
    order_index = Column(Integer, nullable=False)

    # Relationships
    path = relationship("LearningPath", back_populates="levels")
    modules = relationship(
        "Module",
        back_populates="level",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="Module.order_index",
    )
    projects = relationship(
        "Project",
        back_populates="level",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="Project.order_index",
    )

    __table_args__ = (Index("idx_levels_path_order", "learning_path_id", "order_index"),)


class Module(Base):
    """A single learning unit; the unit of completion tracking."""

    __tablename__ = "modules"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    level_id = Column(
        UUID(as_uuid=True),
        ForeignKey("levels.id", ondelete="CASCADE"),
        nullable=False,
    )
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    youtube_url = Column(Text, nullable=True)
    github_url = Column(Text, nullable=True)
    is_completed = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=False, default="")
    order_index = Column(Integer, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    level = relationship("Level", back_populates="modules")

    __table_args__ = (
        Index("idx_modules_level_order", "level_id", "order_index"),
        Index("idx_modules_completed", "is_completed", "updated_at"),
    )


class Project(Base):
    """A hands-on exercise attached to a level."""

    __tablename__ = "projects"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    level_id = Column(
        UUID(as_uuid=True),
        ForeignKey("levels.id", ondelete="CASCADE"),
        nullable=False,
    )
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    github_url = Column(Text, nullable=True)
    order_index = Column(Integer, nullable=False)

    # Relationships
    level = relationship("Level", back_populates="projects")

    __table_args__ = (Index("idx_projects_level_order", "level_id", "order_index"),)
