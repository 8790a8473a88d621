"""
Repository pattern for database operations.

Provides a clean abstraction over SQLAlchemy for the read-only resume
lookups the interviewer needs.
"""

import logging
from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from resume_interviewer.db.models import Base, ResumeModel, UserProfileModel
from resume_interviewer.db.schemas import Resume

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Base)


def build_engine(database_url: str) -> AsyncEngine:
    """
    Create an async engine for the given database.

    Args:
        database_url: SQLAlchemy URL using the asyncpg driver.

    Returns:
        A pooled async engine.
    """
    return create_async_engine(database_url, pool_pre_ping=True)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to an engine."""
    return async_sessionmaker(engine, expire_on_commit=False)


class BaseRepository(ABC, Generic[T]):
    """Abstract base repository with common lookups."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self._session = session

    @property
    @abstractmethod
    def _model_class(self) -> type[T]:
        """Get the model class for this repository."""
        ...

    async def get_by_id(self, entity_id: int) -> T | None:
        """
        Get an entity by its ID.

        Args:
            entity_id: The entity's primary key.

        Returns:
            The entity if found, None otherwise.
        """
        return await self._session.get(self._model_class, entity_id)


class UserProfileRepository(BaseRepository[UserProfileModel]):
    """Repository for user profile lookups."""

    @property
    def _model_class(self) -> type[UserProfileModel]:
        """Get the model class."""
        return UserProfileModel

    async def get_by_firebase_uid(self, firebase_uid: str) -> UserProfileModel | None:
        """
        Get a profile by its external auth id.

        Args:
            firebase_uid: Identity-provider user id.

        Returns:
            The profile if found, None otherwise.
        """
        stmt = select(UserProfileModel).where(UserProfileModel.firebase_uid == firebase_uid)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()


class ResumeRepository(BaseRepository[ResumeModel]):
    """Repository for resume lookups."""

    @property
    def _model_class(self) -> type[ResumeModel]:
        """Get the model class."""
        return ResumeModel

    async def get_primary(self, user_pk: int) -> ResumeModel | None:
        """
        Get the primary resume for a user.

        Args:
            user_pk: Internal user id (user_profiles.id).

        Returns:
            The most recent primary resume, or None.
        """
        stmt = (
            select(ResumeModel)
            .where(ResumeModel.user_id == user_pk, ResumeModel.is_primary.is_(True))
            .order_by(ResumeModel.created_at.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()


class SqlResumeStore:
    """
    Resume store over the user profile and resume tables.

    Callers identify users by their external auth id; the store resolves
    the internal profile id before touching resumes.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """
        Initialize the store.

        Args:
            session_factory: Factory for async database sessions.
        """
        self._session_factory = session_factory

    async def get_primary_resume(self, user_id: str) -> Resume | None:
        """
        Get the user's primary resume.

        Args:
            user_id: External auth id.

        Returns:
            The primary resume, or None when the user or resume is missing.
        """
        async with self._session_factory() as session:
            profile = await UserProfileRepository(session).get_by_firebase_uid(user_id)
            if profile is None:
                logger.warning(f"No user profile found for user id: {user_id}")
                return None

            resume = await ResumeRepository(session).get_primary(profile.id)
            return Resume.model_validate(resume) if resume else None

