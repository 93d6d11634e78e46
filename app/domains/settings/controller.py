"""Settings controller endpoints for the stored completion API key."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, validate_token
from app.database import get_db
from app.domains.settings.service import SettingsService
from app.schemas.base import ResponseSchema
from app.schemas.settings import ApiKeyUpdate, UserSettingsResponse
from models.user import User


router = APIRouter(
    prefix="/api/settings",
    tags=["Settings"],
    dependencies=[Depends(validate_token)],
)


def _to_response(user_settings) -> UserSettingsResponse:
    if user_settings is None:
        return UserSettingsResponse(has_api_key=False)
    return UserSettingsResponse(
        has_api_key=bool(user_settings.api_key_encrypted),
        created_at=user_settings.created_at,
        updated_at=user_settings.updated_at,
    )


@router.get("", response_model=UserSettingsResponse)
async def get_settings(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get whether the current user has an API key stored.

    The key itself is never returned.
    """
    settings_service = SettingsService(db)
    user_settings = await settings_service.get_settings(current_user.id)
    return _to_response(user_settings)


@router.post("/api-key", response_model=UserSettingsResponse)
async def store_api_key(
    update_data: ApiKeyUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Store (or replace) the current user's completion API key."""
    settings_service = SettingsService(db)
    user_settings = await settings_service.store_api_key(current_user.id, update_data.api_key)
    return _to_response(user_settings)


@router.delete("/api-key", response_model=ResponseSchema)
async def delete_api_key(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Remove the current user's stored API key."""
    settings_service = SettingsService(db)
    deleted = await settings_service.delete_api_key(current_user.id)
    return ResponseSchema(
        status="success",
        message="API key removed" if deleted else "No API key was stored",
        data={"deleted": deleted},
    )
