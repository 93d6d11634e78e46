# app/domains/settings/service.py
"""Settings service for the caller's completion API key."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import InvalidToken, decrypt_api_key, encrypt_api_key
from app.exceptions.base import CredentialError, ValidationError
from app.shared.persistence import SessionStore
from models import UserSettings


logger = logging.getLogger(__name__)


class SettingsService(SessionStore):
    """Service for storing and retrieving the per-user API key."""

    def __init__(self, db: AsyncSession):
        """Initialize service with a database session."""
        super().__init__(db)

    async def get_settings(self, user_id: UUID) -> UserSettings | None:
        """
        Get the user's settings row.

        Args:
            user_id: The user's unique identifier

        Returns:
            UserSettings | None: The settings row, or None if the user never stored a key
        """
        result = await self.db.execute(select(UserSettings).where(UserSettings.user_id == user_id))
        return result.scalar_one_or_none()

    async def store_api_key(self, user_id: UUID, api_key: str) -> UserSettings:
        """
        Encrypt and store an API key, replacing any previous one.

        Args:
            user_id: The user's unique identifier
            api_key: Plaintext provider API key

        Returns:
            UserSettings: Updated settings row

        Raises:
            ValidationError: If the key is blank
        """
        api_key = (api_key or "").strip()
        if not api_key:
            raise ValidationError("API key is required")

        user_settings = await self.get_settings(user_id)
        if not user_settings:
            user_settings = UserSettings(user_id=user_id)
            self.db.add(user_settings)

        user_settings.api_key_encrypted = encrypt_api_key(api_key)
        await self.commit()
        await self.db.refresh(user_settings)
        logger.info(f"Stored API key for user {user_id}")
        return user_settings

    async def delete_api_key(self, user_id: UUID) -> bool:
        """
        Clear the stored API key.

        Returns:
            bool: True if a key was cleared, False if none was stored
        """
        user_settings = await self.get_settings(user_id)
        if not user_settings or not user_settings.api_key_encrypted:
            return False

        user_settings.api_key_encrypted = None
        await self.commit()
        logger.info(f"Cleared API key for user {user_id}")
        return True

    async def get_decrypted_credential(self, user_id: UUID) -> str:
        """
        Plaintext API key for outbound completion calls.

        Raises:
            CredentialError: If no key is stored or the stored key cannot be decrypted
        """
        user_settings = await self.get_settings(user_id)
        if not user_settings or not user_settings.api_key_encrypted:
            raise CredentialError("API key not configured")

        try:
            return decrypt_api_key(user_settings.api_key_encrypted)
        except InvalidToken:
            logger.warning(f"Stored API key for user {user_id} could not be decrypted")
            raise CredentialError("Invalid stored API key. Please re-configure your API key.") from None
