"""
Models package initialization.
"""

from .base import Base, BaseModel
from .branch import Branch
from .conversation import Conversation
from .message import Message, MessageRole
from .user import User
from .user_settings import UserSettings

__all__ = [
    "Base",
    "BaseModel",
    "User",
    "UserSettings",
    # Branching chat models
    "Conversation",
    "Branch",
    "Message",
    "MessageRole",
]
