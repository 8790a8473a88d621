"""
Database module for persistence.

Provides SQLAlchemy models and the repository pattern for read-only
resume lookups.
"""

from resume_interviewer.db.models import Base, ResumeModel, UserProfileModel
from resume_interviewer.db.repository import (
    ResumeRepository,
    SqlResumeStore,
    UserProfileRepository,
    build_engine,
    build_session_factory,
)
from resume_interviewer.db.schemas import Resume

__all__ = [
    "Base",
    "Resume",
    "ResumeModel",
    "ResumeRepository",
    "SqlResumeStore",
    "UserProfileModel",
    "UserProfileRepository",
    "build_engine",
    "build_session_factory",
]
