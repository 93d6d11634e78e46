"""
User Settings model for storing the caller's completion API key.

The key is never stored in clear text: `api_key_encrypted` holds a Fernet token
produced with the server-side `ENCRYPTION_KEY`.
"""

from sqlalchemy import Column, ForeignKey, Text
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel


class UserSettings(BaseModel):
    """
    Per-user settings row (one-to-one with User).

    :ivar user_id: Foreign key reference to the user.
    :type user_id: UUID
    :ivar api_key_encrypted: Encrypted completion-provider API key, NULL when unset.
    :type api_key_encrypted: str
    """

    __tablename__ = "user_settings"

    user_id = Column(UUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    api_key_encrypted = Column(Text, nullable=True)

    user = relationship("User", back_populates="settings")
