"""Settings schemas for the stored completion API key."""

from datetime import datetime

from pydantic import Field

from .base import BaseSchema, RequestSchema


class ApiKeyUpdate(RequestSchema):
    """Schema for storing an API key."""

    api_key: str = Field(..., description="Completion provider API key")


class UserSettingsResponse(BaseSchema):
    """Whether the caller has a key on file; the key itself is never returned."""

    has_api_key: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
