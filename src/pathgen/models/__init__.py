"""SQLAlchemy models for users, learning paths and metrics."""

from .learning_path import LearningPath, Level, Module, Project
from .user import User
from .user_metrics import UserMetrics

__all__ = [
    "User",
    "LearningPath",
    "Level",
    "Module",
    "Project",
    "UserMetrics",
]
