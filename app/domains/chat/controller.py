"""Chat API controller with FastAPI endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db, get_generation_client, validate_token
from app.domains.ai.generation import GenerationClient
from app.domains.chat.service import ChatService
from app.exceptions.base import BaseAppException
from app.schemas.base import ResponseSchema
from app.schemas.chat import ChatMessageRequest, ChatRequest
from models.user import User


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/chat",
    tags=["chat"],
    dependencies=[Depends(validate_token)],
)


def _server_error(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ResponseSchema(status="error", message=message, data=None).model_dump(),
    )


@router.post("/sessions", response_model=ResponseSchema, status_code=201)
async def create_chat_session(
    _request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a new, empty chat session for the current user."""
    try:
        result = await ChatService(db).create_session(user_id=current_user.id)

        return ResponseSchema(
            status="success",
            message="Session created successfully",
            data=result.model_dump(mode="json"),
        )

    except BaseAppException:
        raise
    except Exception as e:
        logger.error(f"Error creating chat session: {str(e)}")
        return _server_error("Failed to create session")


@router.get("/sessions", response_model=ResponseSchema)
async def get_chat_sessions(
    _request: Request,
    limit: int = Query(10, ge=1, le=100, description="Page size"),
    cursor: UUID | None = Query(None, description="next_cursor from the previous page"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the current user's active sessions, most recently updated first.

    Args:
        limit: Page size
        cursor: Cursor returned by the previous page
        current_user: Current authenticated user
        db: Database session

    Returns:
        Session summaries with the cursor for the next page
    """
    try:
        result = await ChatService(db).list_sessions(user_id=current_user.id, limit=limit, cursor=cursor)

        return ResponseSchema(
            status="success",
            message="Sessions retrieved successfully",
            data=result.model_dump(mode="json"),
        )

    except BaseAppException:
        raise
    except Exception as e:
        logger.error(f"Error retrieving chat sessions: {str(e)}")
        return _server_error("Failed to retrieve sessions")


@router.get("/sessions/{session_id}", response_model=ResponseSchema)
async def get_chat_session(
    _request: Request,
    session_id: UUID = Path(..., description="Session ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a session with all of its turns."""
    try:
        result = await ChatService(db).get_session(session_id=session_id, user_id=current_user.id)

        return ResponseSchema(
            status="success",
            message="Session retrieved successfully",
            data=result.model_dump(mode="json"),
        )

    except BaseAppException:
        raise
    except Exception as e:
        logger.error(f"Error retrieving chat session: {str(e)}")
        return _server_error("Failed to retrieve session")


async def _submit(
    db: AsyncSession,
    generator: GenerationClient,
    session_id: UUID,
    user: User,
    message: str,
) -> ResponseSchema | JSONResponse:
    try:
        service = ChatService(db, generator=generator)
        result = await service.submit(session_id=session_id, user_id=user.id, content=message)

        return ResponseSchema(
            status="success",
            message="Message sent successfully",
            data=result.model_dump(mode="json"),
        )

    except BaseAppException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error in chat: {str(e)}")
        return _server_error("An unexpected error occurred")


@router.post("/sessions/{session_id}/messages", response_model=ResponseSchema, status_code=201)
async def send_session_message(
    _request: Request,
    session_id: UUID = Path(..., description="Session ID"),
    message_request: ChatMessageRequest = Body(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    generator: GenerationClient = Depends(get_generation_client),
):
    """Send a message to a session and receive the counselor's reply.

    Args:
        session_id: Target session
        message_request: Message body
        current_user: Current authenticated user
        db: Database session
        generator: Reply generation client

    Returns:
        The stored user turn and assistant turn
    """
    return await _submit(db, generator, session_id, current_user, message_request.message)


@router.post("/message", response_model=ResponseSchema, status_code=201)
async def send_chat_message(
    _request: Request,
    chat_request: ChatRequest = Body(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    generator: GenerationClient = Depends(get_generation_client),
):
    """Send a message with the session id in the request body."""
    return await _submit(db, generator, chat_request.session_id, current_user, chat_request.message)


@router.delete("/sessions/{session_id}", response_model=ResponseSchema)
async def delete_chat_session(
    _request: Request,
    session_id: UUID = Path(..., description="Session ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a session. Its turns are kept and it stays readable by id."""
    try:
        result = await ChatService(db).delete_session(session_id=session_id, user_id=current_user.id)

        return ResponseSchema(
            status="success",
            message="Session deleted successfully",
            data=result.model_dump(mode="json"),
        )

    except BaseAppException:
        raise
    except Exception as e:
        logger.error(f"Error deleting chat session: {str(e)}")
        return _server_error("Failed to delete session")
