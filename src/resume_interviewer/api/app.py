"""
FastAPI application factory.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from resume_interviewer.api.routes import router
from resume_interviewer.errors import InterviewError
from resume_interviewer.orchestrator.interview_controller import InterviewController, build_controller

logger = logging.getLogger(__name__)


def error_payload(error: InterviewError) -> dict[str, str]:
    """Build the structured error body for an interview error."""
    payload = {"error": error.message}
    if error.details is not None:
        payload["details"] = error.details
    return payload


async def handle_interview_error(request: Request, exc: InterviewError) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} failed: {exc.message} ({exc.details})")
    return JSONResponse(status_code=exc.status_code, content=error_payload(exc))


def create_app(controller: InterviewController | None = None) -> FastAPI:
    """
    Create the API application.

    Args:
        controller: Controller to serve. When omitted, one is built from
            settings on startup.

    Returns:
        Configured FastAPI app.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "controller", None) is None:
            app.state.controller = build_controller()
        logger.info("Interview API started")
        yield
        await app.state.controller.close()
        logger.info("Interview API stopped")

    app = FastAPI(title="Resume Interviewer", lifespan=lifespan)
    app.state.controller = controller
    app.include_router(router)
    app.add_exception_handler(InterviewError, handle_interview_error)

    @app.get("/health")
    async def health(request: Request) -> dict[str, object]:
        active = request.app.state.controller.sessions.active_session_count()
        return {"status": "ok", "active_sessions": active}

    return app
