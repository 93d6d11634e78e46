"""
Branch model: a named line of conversation inside a Conversation.

A branch with a parent is a fork and inherits everything visible on the parent
up to `forked_from_message_id`. A branch without a parent is either the main
branch (`is_main`) or a top-level thread, whose `forked_from_message_id` is a
provenance label only.
"""

from sqlalchemy import Boolean, Column, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel


class Branch(BaseModel):
    """
    Represents one branch of a conversation.

    :ivar conversation_id: Owning conversation.
    :ivar name: Unique within the conversation.
    :ivar parent_branch_id: Parent branch for forks, NULL for main and threads.
    :ivar forked_from_message_id: Fork cut-point (forks) or provenance label (threads).
    :ivar created_by: User that created the branch.
    :ivar color: Optional display color (#RRGGBB).
    :ivar is_main: True only for the conversation's original root branch.
    :ivar is_materialized: True when the fork copied its inherited messages into its own rows.
    """

    __tablename__ = "branches"

    conversation_id = Column(
        UUID(), ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(100), nullable=False)
    parent_branch_id = Column(UUID(), ForeignKey("branches.id"), nullable=True)
    # Not a ForeignKey: messages reference branches, so this would form a cycle.
    forked_from_message_id = Column(UUID(), nullable=True)
    created_by = Column(UUID(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    color = Column(String(7), nullable=True)
    is_main = Column(Boolean, default=False, nullable=False)
    is_materialized = Column(Boolean, default=False, nullable=False)

    conversation = relationship("Conversation", back_populates="branches")
    messages = relationship("Message", back_populates="branch", passive_deletes=True)

    __table_args__ = (UniqueConstraint("conversation_id", "name", name="uq_branches_conversation_name"),)

    @property
    def is_fork(self) -> bool:
        return self.parent_branch_id is not None

    @property
    def is_thread(self) -> bool:
        return self.parent_branch_id is None and not self.is_main and self.forked_from_message_id is not None
