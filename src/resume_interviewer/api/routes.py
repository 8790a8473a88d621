"""
Chat routes.

Caller identity arrives in the ``X-User-Id`` header; verifying it is the
job of whatever sits in front of this service.
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse, StreamingResponse

from resume_interviewer.errors import InterviewError, MissingUserId
from resume_interviewer.orchestrator.interview_controller import InterviewController
from resume_interviewer.orchestrator.schemas import ChatRequest, ChatResponse, SessionStatus, StreamEvent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["Chat"])


def get_controller(request: Request) -> InterviewController:
    return request.app.state.controller


def get_user_id(x_user_id: str | None = Header(default=None)) -> str:
    if not x_user_id:
        raise MissingUserId("No user ID")
    return x_user_id


@router.post("", response_model=ChatResponse, response_model_exclude_none=True)
async def chat(
    body: ChatRequest,
    user_id: str = Depends(get_user_id),
    controller: InterviewController = Depends(get_controller),
):
    """Run one interview turn and return the complete response."""
    try:
        return await controller.process_chat(user_id, body)
    except InterviewError:
        raise
    except Exception as e:
        logger.exception(f"Chat turn failed for user {user_id}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to process chat request", "details": str(e)},
        )


def _sse(event: StreamEvent) -> str:
    return f"data: {json.dumps(event.to_wire())}\n\n"


@router.post("/stream")
async def chat_stream(
    body: ChatRequest,
    user_id: str = Depends(get_user_id),
    controller: InterviewController = Depends(get_controller),
) -> StreamingResponse:
    """Run one interview turn, streaming events as server-sent events."""
    queue: asyncio.Queue[StreamEvent | None] = asyncio.Queue()
    error_sent = False

    async def on_chunk(event: StreamEvent) -> None:
        nonlocal error_sent
        if event.type == "error":
            error_sent = True
        await queue.put(event)

    async def run_turn() -> None:
        try:
            response = await controller.process_chat(user_id, body, on_chunk=on_chunk)
            await queue.put(StreamEvent(type="final", response=response))
        except InterviewError as e:
            logger.warning(f"Streaming turn failed for user {user_id}: {e.message}")
            if not error_sent:
                await queue.put(StreamEvent(type="error", error=e.message, details=e.details))
        except Exception as e:
            logger.exception(f"Streaming turn failed for user {user_id}")
            await queue.put(
                StreamEvent(type="error", error="Failed to process chat request", details=str(e))
            )
        finally:
            await queue.put(None)

    async def event_source() -> AsyncIterator[str]:
        task = asyncio.create_task(run_turn())
        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield _sse(event)
        finally:
            if not task.done():
                task.cancel()

    return StreamingResponse(
        event_source(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )


@router.post("/clear")
async def clear_chat(
    user_id: str = Depends(get_user_id),
    controller: InterviewController = Depends(get_controller),
) -> dict[str, object]:
    await controller.clear_session(user_id)
    return {"success": True, "message": "Chat session cleared"}


@router.get("/status", response_model=SessionStatus)
async def chat_status(
    user_id: str = Depends(get_user_id),
    controller: InterviewController = Depends(get_controller),
) -> SessionStatus:
    return await controller.get_status(user_id)
