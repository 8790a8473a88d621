"""
Per-user job description store.

Holds the job description a candidate is preparing for, so it can be
embedded in the system instruction when an interview starts.
"""

import logging

logger = logging.getLogger(__name__)

NO_JOB_DESCRIPTION = "No job description provided."


class JobDescriptionStore:
    """In-process map of user id to job description text."""

    def __init__(self) -> None:
        self._descriptions: dict[str, str] = {}

    def set(self, user_id: str, job_description: str) -> None:
        self._descriptions[user_id] = job_description
        logger.info(f"Stored job description for user: {user_id}")

    def get(self, user_id: str) -> str | None:
        return self._descriptions.get(user_id)

    def has(self, user_id: str) -> bool:
        return user_id in self._descriptions

    def clear(self, user_id: str) -> None:
        if self._descriptions.pop(user_id, None) is not None:
            logger.info(f"Cleared job description for user: {user_id}")

    def clear_all(self) -> None:
        self._descriptions.clear()

    def get_formatted(self, user_id: str) -> str:
        """Get the job description, or a placeholder when none is stored."""
        return self._descriptions.get(user_id) or NO_JOB_DESCRIPTION
