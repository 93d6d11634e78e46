"""
Unit tests for SettingsService and API key encryption.
"""

import pytest
from cryptography.fernet import Fernet
from sqlalchemy import select

from app.core import security
from app.core.security import decrypt_api_key, encrypt_api_key
from app.domains.settings.service import SettingsService
from app.exceptions.base import BaseAppException, CredentialError, ValidationError
from models import UserSettings


class TestApiKeyEncryption:
    """Test cases for the Fernet helpers."""

    def test_encrypted_value_is_not_plaintext(self):
        token = encrypt_api_key("sk-secret")

        assert "sk-secret" not in token
        assert decrypt_api_key(token) == "sk-secret"

    def test_missing_encryption_key(self, monkeypatch):
        monkeypatch.setattr(security.settings, "encryption_key", None)

        with pytest.raises(BaseAppException) as exc_info:
            encrypt_api_key("sk-secret")

        assert exc_info.value.error_code == "ENCRYPTION_NOT_CONFIGURED"


class TestSettingsService:
    """Test cases for SettingsService."""

    @pytest.mark.asyncio
    async def test_get_settings_when_none_stored(self, test_db, test_user):
        service = SettingsService(test_db)

        assert await service.get_settings(test_user.id) is None

    @pytest.mark.asyncio
    async def test_store_api_key_encrypts(self, test_db, test_user):
        service = SettingsService(test_db)

        user_settings = await service.store_api_key(test_user.id, "  sk-secret  ")

        assert user_settings.api_key_encrypted
        assert user_settings.api_key_encrypted != "sk-secret"
        result = await test_db.execute(select(UserSettings).where(UserSettings.user_id == test_user.id))
        assert result.scalar_one().api_key_encrypted == user_settings.api_key_encrypted

    @pytest.mark.asyncio
    async def test_store_api_key_replaces_previous(self, test_db, test_user):
        service = SettingsService(test_db)
        await service.store_api_key(test_user.id, "sk-old")

        await service.store_api_key(test_user.id, "sk-new")

        assert await service.get_decrypted_credential(test_user.id) == "sk-new"
        result = await test_db.execute(select(UserSettings).where(UserSettings.user_id == test_user.id))
        assert len(result.scalars().all()) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("api_key", ["", "   "])
    async def test_store_blank_api_key_rejected(self, test_db, test_user, api_key):
        service = SettingsService(test_db)

        with pytest.raises(ValidationError, match="API key is required"):
            await service.store_api_key(test_user.id, api_key)

    @pytest.mark.asyncio
    async def test_get_decrypted_credential(self, test_db, test_user):
        service = SettingsService(test_db)
        await service.store_api_key(test_user.id, "sk-secret")

        assert await service.get_decrypted_credential(test_user.id) == "sk-secret"

    @pytest.mark.asyncio
    async def test_credential_absent(self, test_db, test_user):
        service = SettingsService(test_db)

        with pytest.raises(CredentialError, match="API key not configured"):
            await service.get_decrypted_credential(test_user.id)

    @pytest.mark.asyncio
    async def test_credential_encrypted_with_other_key(self, test_db, test_user):
        service = SettingsService(test_db)
        foreign_token = Fernet(Fernet.generate_key()).encrypt(b"sk-secret").decode()
        test_db.add(UserSettings(user_id=test_user.id, api_key_encrypted=foreign_token))
        await test_db.commit()

        with pytest.raises(CredentialError, match="Invalid stored API key"):
            await service.get_decrypted_credential(test_user.id)

    @pytest.mark.asyncio
    async def test_delete_api_key(self, test_db, test_user):
        service = SettingsService(test_db)
        await service.store_api_key(test_user.id, "sk-secret")

        assert await service.delete_api_key(test_user.id) is True
        assert await service.delete_api_key(test_user.id) is False
        with pytest.raises(CredentialError):
            await service.get_decrypted_credential(test_user.id)
