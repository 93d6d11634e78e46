"""
Message model: one turn in a conversation, authored on exactly one branch.
"""

import enum

from sqlalchemy import Column, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel


class MessageRole(str, enum.Enum):
    """Message role enumeration."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Message(BaseModel):
    """
    Represents a persisted message.

    Messages are append-only. Within a branch they are ordered by
    `(created_at, seq)`; `seq` is a conversation-wide insertion counter.
    """

    __tablename__ = "messages"

    conversation_id = Column(
        UUID(), ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False
    )
    branch_id = Column(UUID(), ForeignKey("branches.id", ondelete="CASCADE"), nullable=False)
    role = Column(
        Enum(MessageRole, name="message_role", values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
    )
    content = Column(Text, nullable=False)
    parent_message_id = Column(UUID(), nullable=True)  # bookkeeping only
    seq = Column(Integer, nullable=False)
    model = Column(String(100), nullable=True)
    tokens_used = Column(Integer, nullable=True)

    conversation = relationship("Conversation", back_populates="messages")
    branch = relationship("Branch", back_populates="messages")

    __table_args__ = (
        Index("idx_messages_branch_created", "branch_id", "created_at", "seq"),
        Index("idx_messages_conversation_seq", "conversation_id", "seq"),
    )
