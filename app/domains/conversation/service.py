"""Conversation service layer: conversations, their ownership and titles."""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import and_, delete, desc, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.config import settings
from app.domains.branch.store import BranchStore
from app.domains.message.store import MessageStore
from app.exceptions.base import ValidationError
from app.exceptions.branching import BranchNotFoundError, ConversationNotFoundError
from app.shared.persistence import SessionStore
from models.base import utcnow
from models.branch import Branch
from models.conversation import Conversation
from models.message import Message


logger = logging.getLogger(__name__)


def generate_title(content: str) -> str:
    """Title derived from the first user message."""
    text = " ".join(content.split())
    if not text:
        return settings.default_conversation_title
    if len(text) <= settings.title_max_length:
        return text
    return text[: settings.title_max_length].rstrip() + "…"


class ConversationService(SessionStore):
    """Service class for conversation business logic.

    Every lookup is scoped to the caller: a conversation owned by someone else
    is reported as not found.
    """

    def __init__(self, db: AsyncSession, branch_store: BranchStore | None = None):
        super().__init__(db)
        self.branches = branch_store or BranchStore(db, MessageStore(db))

    async def create_conversation(self, owner_id: UUID, title: str | None = None) -> tuple[Conversation, Branch]:
        """Create a conversation together with its main branch."""
        title = (title or "").strip() or settings.default_conversation_title
        conversation = Conversation(owner_ref=owner_id, title=title)
        self.db.add(conversation)
        await self.flush()

        main_branch = await self.branches.create_branch(
            conversation_id=conversation.id,
            name=settings.main_branch_name,
            parent_branch_id=None,
            forked_from_message_id=None,
            creator=owner_id,
            color=settings.main_branch_color,
            is_main=True,
            commit=False,
        )
        await self.commit()
        logger.info(f"Created conversation {conversation.id} for user {owner_id}")
        return conversation, main_branch

    async def get_conversation(self, conversation_id: UUID, owner_id: UUID) -> Conversation:
        stmt = select(Conversation).where(
            and_(Conversation.id == conversation_id, Conversation.owner_ref == owner_id)
        )
        result = await self.db.execute(stmt)
        conversation = result.scalar_one_or_none()
        if not conversation:
            raise ConversationNotFoundError()
        return conversation

    async def get_owned_branch(self, branch_id: UUID, owner_id: UUID) -> Branch:
        """Branch lookup that also checks the caller owns its conversation."""
        branch = await self.branches.get_branch(branch_id)
        try:
            await self.get_conversation(branch.conversation_id, owner_id)
        except ConversationNotFoundError:
            raise BranchNotFoundError() from None
        return branch

    async def list_conversations(self, owner_id: UUID) -> list[dict[str, Any]]:
        """Conversations by most recent activity first."""
        branch_count = (
            select(func.count(Branch.id))
            .where(Branch.conversation_id == Conversation.id)
            .correlate(Conversation)
            .scalar_subquery()
        )
        last_message_at = (
            select(func.max(Message.created_at))
            .where(Message.conversation_id == Conversation.id)
            .correlate(Conversation)
            .scalar_subquery()
        )
        stmt = (
            select(Conversation, branch_count.label("branch_count"), last_message_at.label("last_message_at"))
            .where(Conversation.owner_ref == owner_id)
            .order_by(desc(Conversation.updated_at))
        )
        result = await self.db.execute(stmt)
        return [
            {
                "id": conversation.id,
                "owner_ref": conversation.owner_ref,
                "title": conversation.title,
                "created_at": conversation.created_at,
                "updated_at": conversation.updated_at,
                "branch_count": count or 0,
                "last_message_at": last,
            }
            for conversation, count, last in result.all()
        ]

    async def rename_conversation(self, conversation_id: UUID, owner_id: UUID, title: str) -> Conversation:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Conversation title is required")
        conversation = await self.get_conversation(conversation_id, owner_id)
        await self.touch(conversation, title=title)
        await self.commit()
        await self.db.refresh(conversation)
        return conversation

    async def delete_conversation(self, conversation_id: UUID, owner_id: UUID) -> None:
        conversation = await self.get_conversation(conversation_id, owner_id)
        await self._delete_contents([conversation.id])
        await self.db.execute(delete(Conversation).where(Conversation.id == conversation.id))
        await self.commit()
        logger.info(f"Deleted conversation {conversation_id}")

    async def delete_all_conversations(self, owner_id: UUID) -> int:
        result = await self.db.execute(select(Conversation.id).where(Conversation.owner_ref == owner_id))
        conversation_ids = list(result.scalars().all())
        if conversation_ids:
            await self._delete_contents(conversation_ids)
            await self.db.execute(delete(Conversation).where(Conversation.id.in_(conversation_ids)))
            await self.commit()
        logger.info(f"Deleted {len(conversation_ids)} conversations for user {owner_id}")
        return len(conversation_ids)

    async def touch(self, conversation: Conversation, title: str | None = None) -> None:
        """Refresh `updated_at`, optionally setting the title. Caller commits."""
        if title is not None:
            conversation.title = title
        conversation.updated_at = utcnow()
        await self.flush()

    async def _delete_contents(self, conversation_ids: list[UUID]) -> None:
        # Messages reference branches, so they go first.
        await self.db.execute(delete(Message).where(Message.conversation_id.in_(conversation_ids)))
        await self.db.execute(delete(Branch).where(Branch.conversation_id.in_(conversation_ids)))
