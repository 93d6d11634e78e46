"""Branch API controller: forks, threads and branch maintenance."""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db, validate_token
from app.domains.branch.store import BranchStore
from app.domains.context.resolver import ContextResolver
from app.domains.conversation.service import ConversationService
from app.domains.fork.operator import ForkOperator
from app.domains.message.store import MessageStore
from app.schemas.base import ResponseSchema
from app.schemas.branch import BranchCreate, BranchRename, BranchResponse, ForkRequest, ThreadRequest
from models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["branches"],
    dependencies=[Depends(validate_token)],
)


class BranchContext:
    """Stores and services bound to one request session."""

    def __init__(self, db: AsyncSession):
        self.messages = MessageStore(db)
        self.branches = BranchStore(db, self.messages)
        self.conversations = ConversationService(db, self.branches)
        self.resolver = ContextResolver(self.branches, self.messages)
        self.forks = ForkOperator(self.branches, self.messages, self.resolver)


def _branch_payload(branch) -> dict:
    return BranchResponse.model_validate(branch).model_dump(mode="json")


@router.post("/fork", response_model=ResponseSchema, status_code=201)
async def fork_branch(
    _request: Request,
    fork_data: ForkRequest = Body(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Fork a new branch after a message; the new branch inherits everything visible up to it."""
    ctx = BranchContext(db)
    conversation = await ctx.conversations.get_conversation(fork_data.conversation_id, current_user.id)
    branch = await ctx.forks.fork(
        conversation_id=conversation.id,
        parent_message_id=fork_data.parent_message_id,
        name=fork_data.resolved_name,
        caller_id=current_user.id,
        parent_branch_id=fork_data.branch_id,
        color=fork_data.color,
    )

    return ResponseSchema(status="success", message="Branch created successfully", data=_branch_payload(branch))


@router.post("/thread", response_model=ResponseSchema, status_code=201)
async def create_thread(
    _request: Request,
    thread_data: ThreadRequest = Body(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Start a new top-level thread labelled with the message it came from."""
    ctx = BranchContext(db)
    conversation = await ctx.conversations.get_conversation(thread_data.conversation_id, current_user.id)
    branch = await ctx.forks.new_thread(
        conversation_id=conversation.id,
        from_message_id=thread_data.from_message_id,
        name=thread_data.resolved_name,
        caller_id=current_user.id,
        color=thread_data.color,
    )

    return ResponseSchema(status="success", message="Thread created successfully", data=_branch_payload(branch))


@router.post("/branches", response_model=ResponseSchema, status_code=201)
async def create_branch(
    _request: Request,
    branch_data: BranchCreate = Body(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Fork an explicit parent branch at a message visible on it."""
    ctx = BranchContext(db)
    conversation = await ctx.conversations.get_conversation(branch_data.conversation_id, current_user.id)
    branch = await ctx.forks.fork(
        conversation_id=conversation.id,
        parent_message_id=branch_data.forked_from_message_id,
        name=branch_data.name,
        caller_id=current_user.id,
        parent_branch_id=branch_data.parent_branch_id,
        color=branch_data.color,
    )

    return ResponseSchema(status="success", message="Branch created successfully", data=_branch_payload(branch))


@router.get("/branches/{branch_id}", response_model=ResponseSchema)
async def get_branch(
    _request: Request,
    branch_id: UUID = Path(..., description="Branch ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a specific branch by ID."""
    ctx = BranchContext(db)
    branch = await ctx.conversations.get_owned_branch(branch_id, current_user.id)

    return ResponseSchema(status="success", message="Branch retrieved successfully", data=_branch_payload(branch))


@router.patch("/branches/{branch_id}", response_model=ResponseSchema)
async def rename_branch(
    _request: Request,
    branch_id: UUID = Path(..., description="Branch ID"),
    rename_data: BranchRename = Body(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Rename a branch."""
    ctx = BranchContext(db)
    branch = await ctx.conversations.get_owned_branch(branch_id, current_user.id)
    branch = await ctx.branches.rename_branch(branch.id, rename_data.name)

    return ResponseSchema(status="success", message="Branch renamed successfully", data=_branch_payload(branch))


@router.delete("/branches/{branch_id}", response_model=ResponseSchema)
async def delete_branch(
    _request: Request,
    branch_id: UUID = Path(..., description="Branch ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a branch and its own messages. The main branch cannot be deleted."""
    ctx = BranchContext(db)
    branch = await ctx.conversations.get_owned_branch(branch_id, current_user.id)
    conversation = await ctx.conversations.get_conversation(branch.conversation_id, current_user.id)
    await ctx.branches.delete_branch(branch.id)
    await ctx.conversations.touch(conversation)
    await ctx.conversations.commit()

    return ResponseSchema(status="success", message="Branch deleted successfully", data=None)
