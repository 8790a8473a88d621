"""
Exception taxonomy for interview turns.

Every error that can abort (or degrade) a turn derives from InterviewError,
which carries the HTTP status the API layer should answer with and an
optional cause string for the structured error payload.
"""


class InterviewError(Exception):
    """Base class for interview orchestration errors."""

    status_code: int = 500

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NoActiveSession(InterviewError):
    """A non-starting action was issued for a user without a session."""

    status_code = 409


class NoPrimaryResume(InterviewError):
    """The user has no primary resume to ground the interview on."""

    status_code = 404


class EmptyStreamResult(InterviewError):
    """The model produced neither text nor a tool invocation."""

    status_code = 502


class MalformedToolResult(InterviewError):
    """A tool invocation could not be turned into a valid result."""

    status_code = 502


class StreamProcessingFailed(InterviewError):
    """The response stream failed or exceeded its deadline."""

    status_code = 502


class EmbeddingFetchError(InterviewError):
    """A similarity search against an embedding index failed."""

    status_code = 503


class MissingUserId(InterviewError):
    """The request carried no caller identity."""

    status_code = 401
