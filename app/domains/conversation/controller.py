"""Conversation API controller with FastAPI endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db, validate_token
from app.domains.branch.store import BranchStore
from app.domains.context.resolver import ContextResolver
from app.domains.conversation.service import ConversationService
from app.domains.message.store import MessageStore
from app.exceptions.branching import BranchNotFoundError
from app.schemas.base import ResponseSchema
from app.schemas.branch import BranchResponse, BranchSummaryResponse
from app.schemas.conversation import (
    ConversationCreate,
    ConversationCreatedResponse,
    ConversationDetailResponse,
    ConversationRename,
    ConversationResponse,
    ConversationSummaryResponse,
)
from app.schemas.message import BranchMessagesResponse, MessageResponse
from models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/conversations",
    tags=["conversations"],
    dependencies=[Depends(validate_token)],
)


@router.post("", response_model=ResponseSchema, status_code=201)
async def create_conversation(
    _request: Request,
    conversation_data: ConversationCreate | None = Body(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a conversation together with its main branch."""
    service = ConversationService(db)
    conversation, main_branch = await service.create_conversation(
        owner_id=current_user.id, title=conversation_data.title if conversation_data else None
    )

    data = ConversationCreatedResponse(
        **ConversationResponse.model_validate(conversation).model_dump(),
        main_branch=BranchResponse.model_validate(main_branch),
    )
    return ResponseSchema(
        status="success",
        message="Conversation created successfully",
        data=data.model_dump(mode="json"),
    )


@router.get("", response_model=ResponseSchema)
async def list_conversations(
    _request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the current user's conversations, most recently active first."""
    service = ConversationService(db)
    conversations = await service.list_conversations(current_user.id)

    return ResponseSchema(
        status="success",
        message="Conversations retrieved successfully",
        data={
            "conversations": [
                ConversationSummaryResponse.model_validate(c).model_dump(mode="json") for c in conversations
            ],
            "total": len(conversations),
        },
    )


@router.delete("", response_model=ResponseSchema)
async def delete_all_conversations(
    _request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete every conversation of the current user."""
    service = ConversationService(db)
    deleted = await service.delete_all_conversations(current_user.id)

    return ResponseSchema(
        status="success",
        message="Conversations deleted successfully",
        data={"deleted_count": deleted},
    )


@router.get("/{conversation_id}", response_model=ResponseSchema)
async def get_conversation(
    _request: Request,
    conversation_id: UUID = Path(..., description="Conversation ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a conversation with its branches."""
    service = ConversationService(db)
    conversation = await service.get_conversation(conversation_id, current_user.id)
    branches = await service.branches.list_branches(conversation.id)

    data = ConversationDetailResponse(
        **ConversationResponse.model_validate(conversation).model_dump(),
        branches=[BranchSummaryResponse.model_validate(b) for b in branches],
    )
    return ResponseSchema(
        status="success",
        message="Conversation retrieved successfully",
        data=data.model_dump(mode="json"),
    )


@router.api_route("/{conversation_id}", methods=["PUT", "PATCH"], response_model=ResponseSchema)
async def rename_conversation(
    _request: Request,
    conversation_id: UUID = Path(..., description="Conversation ID"),
    rename_data: ConversationRename = Body(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Rename a conversation."""
    service = ConversationService(db)
    conversation = await service.rename_conversation(conversation_id, current_user.id, rename_data.title)

    return ResponseSchema(
        status="success",
        message="Conversation renamed successfully",
        data=ConversationResponse.model_validate(conversation).model_dump(mode="json"),
    )


@router.delete("/{conversation_id}", response_model=ResponseSchema)
async def delete_conversation(
    _request: Request,
    conversation_id: UUID = Path(..., description="Conversation ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a conversation with all its branches and messages."""
    service = ConversationService(db)
    await service.delete_conversation(conversation_id, current_user.id)

    return ResponseSchema(status="success", message="Conversation deleted successfully", data=None)


@router.get("/{conversation_id}/branches", response_model=ResponseSchema)
async def list_branches(
    _request: Request,
    conversation_id: UUID = Path(..., description="Conversation ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the branches of a conversation with message counts and last activity."""
    service = ConversationService(db)
    conversation = await service.get_conversation(conversation_id, current_user.id)
    branches = await service.branches.list_branches(conversation.id)

    return ResponseSchema(
        status="success",
        message="Branches retrieved successfully",
        data={"branches": [BranchSummaryResponse.model_validate(b).model_dump(mode="json") for b in branches]},
    )


@router.get("/{conversation_id}/messages", response_model=ResponseSchema)
async def get_branch_messages(
    _request: Request,
    conversation_id: UUID = Path(..., description="Conversation ID"),
    branch_id: UUID | None = Query(None, alias="branchId", description="Branch to resolve; main when omitted"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get the full context visible on a branch, inherited messages included."""
    messages = MessageStore(db)
    branches = BranchStore(db, messages)
    service = ConversationService(db, branches)
    conversation = await service.get_conversation(conversation_id, current_user.id)

    if branch_id is None:
        branch = await branches.get_main_branch(conversation.id)
    else:
        branch = await service.get_owned_branch(branch_id, current_user.id)
        if branch.conversation_id != conversation.id:
            raise BranchNotFoundError("Branch not found in this conversation")

    context = await ContextResolver(branches, messages).resolve_context(branch.id)

    data = BranchMessagesResponse(
        conversation_id=conversation.id,
        branch_id=branch.id,
        messages=[MessageResponse.model_validate(m) for m in context],
    )
    return ResponseSchema(
        status="success",
        message="Messages retrieved successfully",
        data=data.model_dump(mode="json"),
    )
