"""Chat API controller with FastAPI endpoints."""

import logging

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_completion_client, get_current_user, get_db, validate_token
from app.domains.chat.service import ChatService
from app.schemas.base import ResponseSchema
from app.schemas.chat import ChatRequest, ChatTurnResponse, CompletionUsage
from app.schemas.message import MessageResponse
from app.services.completion_client import CompletionClient
from models.user import User


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/chat",
    tags=["chat"],
    dependencies=[Depends(validate_token)],
)


@router.post("", response_model=ResponseSchema, status_code=201)
async def submit_chat_turn(
    _request: Request,
    chat_request: ChatRequest = Body(...),
    current_user: User = Depends(get_current_user),
    completion_client: CompletionClient = Depends(get_completion_client),
    db: AsyncSession = Depends(get_db),
):
    """Send a message on a branch and get the assistant reply.

    The reply sees the branch's full context, inherited messages included.
    Provider failures are returned as an assistant message with
    `completion_failed` set rather than as an error response.

    Args:
        chat_request: Conversation, branch and message content
        current_user: Current authenticated user
        completion_client: Client for the completion provider
        db: Database session

    Returns:
        Both persisted messages and the conversation title
    """
    service = ChatService(db, completion_client)
    result = await service.submit_turn(
        conversation_id=chat_request.conversation_id,
        branch_id=chat_request.branch_id,
        content=chat_request.content,
        caller_id=current_user.id,
    )

    data = ChatTurnResponse(
        conversation_id=chat_request.conversation_id,
        branch_id=chat_request.branch_id,
        user_message=MessageResponse.model_validate(result.user_message),
        assistant_message=MessageResponse.model_validate(result.assistant_message),
        conversation_title=result.conversation_title,
        completion_failed=result.completion_failed,
        usage=CompletionUsage.model_validate(result.usage) if result.usage else None,
    )
    return ResponseSchema(
        status="success",
        message="Message sent successfully",
        data=data.model_dump(mode="json"),
    )
