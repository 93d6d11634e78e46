"""Message schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from models.message import MessageRole

from .base import BaseSchema


class MessageResponse(BaseSchema):
    """A persisted message as returned by the API."""

    id: UUID
    conversation_id: UUID
    branch_id: UUID
    role: MessageRole
    content: str
    parent_message_id: UUID | None = None
    created_at: datetime
    model: str | None = None
    tokens_used: int | None = None


class PromptMessage(BaseSchema):
    """Role/content pair sent to the completion provider."""

    role: MessageRole
    content: str


class BranchMessagesResponse(BaseSchema):
    """Resolved context of one branch."""

    conversation_id: UUID
    branch_id: UUID
    messages: list[MessageResponse] = Field(default_factory=list)
