"""User account model."""

from uuid import uuid4

from sqlalchemy import Column, DateTime, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from pathgen.db.base import Base, utcnow


class User(Base):
    """Registered learner."""

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    email = Column(String(320), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    learning_paths = relationship(
        "LearningPath",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    metrics = relationship(
        "UserMetrics",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
