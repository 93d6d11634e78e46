"""Conversation schemas for request/response serialization."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from .base import BaseModelSchema, RequestSchema
from .branch import BranchResponse, BranchSummaryResponse


class ConversationCreate(RequestSchema):
    """Schema for creating a conversation."""

    title: str | None = Field(None, max_length=255, description="Optional conversation title")


class ConversationRename(RequestSchema):
    """Schema for renaming a conversation."""

    title: str = Field(..., max_length=255)


class ConversationResponse(BaseModelSchema):
    """Schema for a conversation row."""

    owner_ref: UUID
    title: str


class ConversationSummaryResponse(ConversationResponse):
    """Conversation with list statistics."""

    branch_count: int = 0
    last_message_at: datetime | None = None


class ConversationCreatedResponse(ConversationResponse):
    """Conversation together with its auto-created main branch."""

    main_branch: BranchResponse


class ConversationDetailResponse(ConversationResponse):
    """Conversation with its branches."""

    branches: list[BranchSummaryResponse] = Field(default_factory=list)
