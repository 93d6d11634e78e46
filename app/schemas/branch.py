"""Branch schemas for request/response serialization."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from .base import BaseModelSchema, RequestSchema

COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class BranchResponse(BaseModelSchema):
    """Schema for a branch row."""

    conversation_id: UUID
    name: str
    parent_branch_id: UUID | None = None
    forked_from_message_id: UUID | None = None
    created_by: UUID | None = None
    color: str | None = None
    is_main: bool = False
    is_materialized: bool = False


class BranchSummaryResponse(BranchResponse):
    """Branch with query-time activity statistics."""

    message_count: int = Field(default=0, description="Messages authored on this branch")
    last_activity: datetime | None = Field(None, description="Timestamp of the latest own message")


class BranchCreate(RequestSchema):
    """Explicit fork of a branch at a visible message."""

    conversation_id: UUID
    parent_branch_id: UUID
    forked_from_message_id: UUID
    name: str = Field(..., min_length=1, max_length=100)
    color: str | None = Field(None, pattern=COLOR_PATTERN)


class BranchRename(RequestSchema):
    """Schema for renaming a branch."""

    name: str = Field(..., min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class ForkRequest(RequestSchema):
    """Fork a new branch after a message."""

    conversation_id: UUID
    parent_message_id: UUID
    name: str | None = Field(None, max_length=100)
    branch_name: str | None = Field(None, max_length=100, description="Legacy alias for name")
    branch_id: UUID | None = Field(None, description="Branch the message is visible on, when inherited")
    color: str | None = Field(None, pattern=COLOR_PATTERN)

    @property
    def resolved_name(self) -> str | None:
        return self.name if self.name is not None else self.branch_name


class ThreadRequest(RequestSchema):
    """Start a new top-level thread labelled with an origin message."""

    conversation_id: UUID
    from_message_id: UUID
    name: str | None = Field(None, max_length=100)
    thread_name: str | None = Field(None, max_length=100, description="Legacy alias for name")
    color: str | None = Field(None, pattern=COLOR_PATTERN)

    @property
    def resolved_name(self) -> str | None:
        return self.name if self.name is not None else self.thread_name
