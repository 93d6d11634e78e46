"""
Provides the User model for the application's database schema.

A user is the caller identity behind every request. Users are provisioned
lazily from the Clerk token payload the first time they call the API, and
they own conversations (the `owner_ref` of a conversation is a user id).

Relationships
-------------
conversations : sqlalchemy.orm.relationship
    Conversations owned by the user.
settings : sqlalchemy.orm.relationship
    One-to-one settings row holding the encrypted completion API key.
"""

from sqlalchemy import Boolean, Column, String
from sqlalchemy.orm import relationship

from .base import BaseModel


class User(BaseModel):
    """
    Represents an authenticated caller.

    :ivar clerk_user_id: Unique identifier for the user provided by Clerk.
    :type clerk_user_id: str
    :ivar email: Email address of the user.
    :type email: str
    :ivar username: Optional display name.
    :type username: str
    :ivar is_active: Inactive users are refused by the auth dependency.
    :type is_active: bool
    """

    __tablename__ = "users"

    clerk_user_id = Column(String(255), unique=True, nullable=False)
    email = Column(String(255), nullable=True)
    username = Column(String(100))
    is_active = Column(Boolean, default=True)

    conversations = relationship("Conversation", back_populates="owner", passive_deletes=True)
    settings = relationship("UserSettings", back_populates="user", uselist=False, passive_deletes=True)
