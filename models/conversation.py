"""
Conversation model: a named chat thread owning a forest of branches.
"""

from sqlalchemy import Column, ForeignKey, Index, String
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel


class Conversation(BaseModel):
    """
    Represents a conversation owned by a user.

    Deleting a conversation removes all of its branches and messages.
    `updated_at` is refreshed on every new message and on rename.
    """

    __tablename__ = "conversations"

    owner_ref = Column(UUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False, default="New Conversation")

    owner = relationship("User", back_populates="conversations")
    branches = relationship(
        "Branch",
        back_populates="conversation",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Branch.created_at",
    )
    messages = relationship(
        "Message",
        back_populates="conversation",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index("idx_conversations_owner_updated", "owner_ref", "updated_at"),)
