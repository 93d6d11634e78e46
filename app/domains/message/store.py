"""Message store: append-only log of messages, each tagged with its branch."""

import logging
from uuid import UUID

from sqlalchemy import and_, delete, func, or_
from sqlalchemy.future import select

from app.exceptions.base import ValidationError
from app.exceptions.branching import MessageNotFoundError
from app.shared.persistence import SessionStore
from models.base import utcnow
from models.message import Message, MessageRole


logger = logging.getLogger(__name__)


def ordering_key(message: Message) -> tuple:
    """Sort key of a message within a branch: created_at, then insertion sequence."""
    return (message.created_at, message.seq)


class MessageStore(SessionStore):
    """Persistence for messages.

    Messages are never mutated after insertion. Ordering inside a branch is
    `(created_at, seq)` ascending; `created_at` is assigned here and never goes
    backwards within a conversation.
    """

    async def append_message(
        self,
        conversation_id: UUID,
        branch_id: UUID,
        role: MessageRole | str,
        content: str,
        parent_message_id: UUID | None = None,
        model: str | None = None,
        tokens_used: int | None = None,
        commit: bool = True,
    ) -> Message:
        """Append a message to a branch.

        Callers are responsible for refreshing the conversation's `updated_at`.
        """
        try:
            role = MessageRole(role)
        except ValueError:
            raise ValidationError(f"Invalid message role: {role}") from None
        if content is None:
            raise ValidationError("Message content is required")

        last_seq, last_created_at = await self._conversation_clock(conversation_id)
        created_at = utcnow()
        if last_created_at is not None and created_at < last_created_at:
            created_at = last_created_at

        message = Message(
            conversation_id=conversation_id,
            branch_id=branch_id,
            role=role,
            content=content,
            parent_message_id=parent_message_id,
            model=model,
            tokens_used=tokens_used,
            seq=last_seq + 1,
            created_at=created_at,
            updated_at=created_at,
        )
        self.db.add(message)
        if commit:
            await self.commit()
        else:
            await self.flush()
        return message

    async def copy_message(
        self, source: Message, branch_id: UUID, parent_message_id: UUID | None
    ) -> Message:
        """Insert a copy of `source` on another branch, keeping role, content and created_at."""
        last_seq, _ = await self._conversation_clock(source.conversation_id)
        copy = Message(
            conversation_id=source.conversation_id,
            branch_id=branch_id,
            role=source.role,
            content=source.content,
            parent_message_id=parent_message_id,
            model=source.model,
            tokens_used=source.tokens_used,
            seq=last_seq + 1,
            created_at=source.created_at,
            updated_at=utcnow(),
        )
        self.db.add(copy)
        await self.flush()
        return copy

    async def get_message_by_id(self, message_id: UUID) -> Message:
        result = await self.db.execute(select(Message).where(Message.id == message_id))
        message = result.scalar_one_or_none()
        if not message:
            raise MessageNotFoundError()
        return message

    async def get_messages_by_branch(self, branch_id: UUID) -> list[Message]:
        """Own messages of a branch only, never inherited ones."""
        stmt = (
            select(Message)
            .where(Message.branch_id == branch_id)
            .order_by(Message.created_at, Message.seq)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_messages_up_to(self, branch_id: UUID, cutoff_message_id: UUID) -> list[Message]:
        """Own messages of a branch ordered at or before the cutoff message."""
        cutoff = await self.get_message_by_id(cutoff_message_id)
        stmt = (
            select(Message)
            .where(
                and_(
                    Message.branch_id == branch_id,
                    or_(
                        Message.created_at < cutoff.created_at,
                        and_(Message.created_at == cutoff.created_at, Message.seq <= cutoff.seq),
                    ),
                )
            )
            .order_by(Message.created_at, Message.seq)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_conversation_messages(self, conversation_id: UUID) -> int:
        stmt = select(func.count(Message.id)).where(Message.conversation_id == conversation_id)
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def delete_branch_messages(self, branch_id: UUID) -> list[UUID]:
        """Bulk-delete a branch's own messages and return their ids."""
        result = await self.db.execute(select(Message.id).where(Message.branch_id == branch_id))
        message_ids = list(result.scalars().all())
        if message_ids:
            await self.db.execute(delete(Message).where(Message.branch_id == branch_id))
        return message_ids

    async def _conversation_clock(self, conversation_id: UUID):
        stmt = select(func.max(Message.seq), func.max(Message.created_at)).where(
            Message.conversation_id == conversation_id
        )
        result = await self.db.execute(stmt)
        last_seq, last_created_at = result.one()
        return last_seq or 0, last_created_at
