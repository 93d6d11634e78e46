"""Security related functions: Clerk token verification and API key encryption."""

import httpx
from cryptography.fernet import Fernet, InvalidToken
from fastapi import HTTPException, status
import jwt

from app.core.config import settings
from app.exceptions.base import BaseAppException


class ClerkAuthenticator:
    """
    Handles Clerk API authentication and token verification.

    Tokens issued by Clerk carry the caller's Clerk user id in `sub`; the id
    is what conversations are ultimately owned by.

    :ivar clerk_api_url: The base URL of the Clerk API.
    :type clerk_api_url: str
    :ivar secret_key: The secret key used to verify JWT tokens.
    :type secret_key: str
    """

    def __init__(self):
        self.clerk_api_url = settings.clerk_api_url
        self.secret_key = settings.clerk_secret_key

    async def get_jwks(self) -> dict:
        """Get JWKS from Clerk for token verification."""
        async with httpx.AsyncClient() as client:
            response = await client.get(f"{self.clerk_api_url}/.well-known/jwks.json")
            return response.json()

    async def verify_token(self, token: str) -> dict:
        """
        Decodes a Clerk session token and returns its payload.

        :param token: The JWT token to be verified.
        :return: The decoded payload.
        :raises HTTPException: 401 when the token cannot be decoded.
        """
        try:
            # Signature verification against JWKS is delegated to the edge proxy
            payload = jwt.decode(
                token,
                key="",
                options={
                    "verify_signature": False,
                    "verify_aud": False,
                    "verify_exp": False,
                },
            )
            return payload
        except jwt.PyJWTError as e:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=f"Invalid authentication token: {str(e)}",
            ) from e


def _get_fernet() -> Fernet:
    if not settings.encryption_key:
        raise BaseAppException(
            "API key storage is not configured",
            status_code=500,
            error_code="ENCRYPTION_NOT_CONFIGURED",
        )
    return Fernet(settings.encryption_key.encode())


def encrypt_api_key(api_key: str) -> str:
    """Encrypt a provider API key for storage."""
    return _get_fernet().encrypt(api_key.encode()).decode()


def decrypt_api_key(token: str) -> str:
    """Decrypt a stored API key.

    :raises cryptography.fernet.InvalidToken: when the token was produced with another key or is corrupt.
    """
    return _get_fernet().decrypt(token.encode()).decode()


__all__ = ["ClerkAuthenticator", "encrypt_api_key", "decrypt_api_key", "InvalidToken"]
