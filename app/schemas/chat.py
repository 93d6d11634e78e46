"""Chat turn schemas."""

from __future__ import annotations

from uuid import UUID

from pydantic import Field

from .base import BaseSchema, RequestSchema
from .message import MessageResponse


class ChatRequest(RequestSchema):
    """Schema for submitting one chat turn on a branch."""

    conversation_id: UUID
    branch_id: UUID
    content: str = Field(..., min_length=1, description="User message")


class CompletionUsage(BaseSchema):
    """Token usage reported by the provider."""

    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None


class ChatTurnResponse(BaseSchema):
    """Result of a chat turn: both persisted messages."""

    conversation_id: UUID
    branch_id: UUID
    user_message: MessageResponse
    assistant_message: MessageResponse
    conversation_title: str
    completion_failed: bool = Field(default=False, description="Assistant message is a synthetic error reply")
    usage: CompletionUsage | None = None
