"""Per-user metrics rollup model."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from pathgen.db.base import Base, utcnow


class UserMetrics(Base):
    """Denormalized progress counters, recomputed from the path tables."""

    __tablename__ = "user_metrics"

    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    total_paths = Column(Integer, nullable=False, default=0)
    completed_paths = Column(Integer, nullable=False, default=0)
    total_modules = Column(Integer, nullable=False, default=0)
    completed_modules = Column(Integer, nullable=False, default=0)
    average_completion_rate = Column(Integer, nullable=False, default=0)
    last_updated = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    user = relationship("User", back_populates="metrics")

    __table_args__ = (
        CheckConstraint(
            "average_completion_rate >= 0 AND average_completion_rate <= 100",
            name="check_completion_rate_range",
        ),
    )
