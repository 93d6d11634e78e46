"""Branch store: the persisted forest of branches of each conversation."""

import logging
import random
from typing import Any
from uuid import UUID

from sqlalchemy import and_, func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select

from app.core.config import settings
from app.exceptions.base import ValidationError
from app.exceptions.branching import (
    BranchHasChildrenError,
    BranchNotFoundError,
    DuplicateBranchNameError,
    MainBranchDeletionError,
)
from app.shared.persistence import SessionStore
from app.domains.message.store import MessageStore
from models.branch import Branch
from models.message import Message


logger = logging.getLogger(__name__)


class BranchStore(SessionStore):
    """Persistence and invariants for branches.

    Enforces per-conversation name uniqueness, protects the main branch and
    keeps the forest free of dangling parents. Ancestry of fork points is
    checked by the fork operator, which can resolve context.
    """

    def __init__(self, db, message_store: MessageStore | None = None):
        super().__init__(db)
        self.messages = message_store or MessageStore(db)

    async def create_branch(
        self,
        conversation_id: UUID,
        name: str,
        parent_branch_id: UUID | None,
        forked_from_message_id: UUID | None,
        creator: UUID | None,
        color: str | None = None,
        is_main: bool = False,
        is_materialized: bool = False,
        commit: bool = True,
    ) -> Branch:
        """Create a branch after validating its name and references."""
        name = self._validate_name(name)

        if await self._get_branch_by_name(conversation_id, name):
            raise DuplicateBranchNameError(name)

        if parent_branch_id is not None:
            parent = await self.get_branch(parent_branch_id)
            if parent.conversation_id != conversation_id:
                raise ValidationError("Parent branch does not belong to this conversation")
            if forked_from_message_id is None:
                raise ValidationError("A fork requires the message it is forked from")

        if forked_from_message_id is not None:
            message = await self.messages.get_message_by_id(forked_from_message_id)
            if message.conversation_id != conversation_id:
                raise ValidationError("Forked-from message does not belong to this conversation")

        branch = Branch(
            conversation_id=conversation_id,
            name=name,
            parent_branch_id=parent_branch_id,
            forked_from_message_id=forked_from_message_id,
            created_by=creator,
            color=color or random.choice(settings.branch_colors_list),
            is_main=is_main,
            is_materialized=is_materialized,
        )
        self.db.add(branch)
        try:
            if commit:
                await self.db.commit()
            else:
                await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicateBranchNameError(name) from e

        logger.info(f"Created branch '{name}' ({branch.id}) in conversation {conversation_id}")
        return branch

    async def get_branch(self, branch_id: UUID) -> Branch:
        result = await self.db.execute(select(Branch).where(Branch.id == branch_id))
        branch = result.scalar_one_or_none()
        if not branch:
            raise BranchNotFoundError()
        return branch

    async def get_main_branch(self, conversation_id: UUID) -> Branch:
        stmt = select(Branch).where(and_(Branch.conversation_id == conversation_id, Branch.is_main.is_(True)))
        result = await self.db.execute(stmt)
        branch = result.scalar_one_or_none()
        if not branch:
            raise BranchNotFoundError("Main branch not found")
        return branch

    async def list_branches(self, conversation_id: UUID) -> list[dict[str, Any]]:
        """Branches by created_at ascending, with message_count and last_activity derived at query time."""
        message_count = (
            select(func.count(Message.id)).where(Message.branch_id == Branch.id).correlate(Branch).scalar_subquery()
        )
        last_activity = (
            select(func.max(Message.created_at))
            .where(Message.branch_id == Branch.id)
            .correlate(Branch)
            .scalar_subquery()
        )
        stmt = (
            select(Branch, message_count.label("message_count"), last_activity.label("last_activity"))
            .where(Branch.conversation_id == conversation_id)
            .order_by(Branch.created_at, Branch.is_main.desc())
        )
        result = await self.db.execute(stmt)

        branches = []
        for branch, count, last in result.all():
            branches.append(
                {
                    "id": branch.id,
                    "conversation_id": branch.conversation_id,
                    "name": branch.name,
                    "parent_branch_id": branch.parent_branch_id,
                    "forked_from_message_id": branch.forked_from_message_id,
                    "created_by": branch.created_by,
                    "color": branch.color,
                    "is_main": branch.is_main,
                    "is_materialized": branch.is_materialized,
                    "created_at": branch.created_at,
                    "updated_at": branch.updated_at,
                    "message_count": count or 0,
                    "last_activity": last,
                }
            )
        return branches

    async def rename_branch(self, branch_id: UUID, new_name: str) -> Branch:
        branch = await self.get_branch(branch_id)
        new_name = self._validate_name(new_name)
        if new_name == branch.name:
            return branch

        existing = await self._get_branch_by_name(branch.conversation_id, new_name)
        if existing and existing.id != branch.id:
            raise DuplicateBranchNameError(new_name)

        branch.name = new_name
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicateBranchNameError(new_name) from e
        await self.db.refresh(branch)
        return branch

    async def delete_branch(self, branch_id: UUID) -> None:
        """Delete a non-main branch and its own messages.

        Inherited ancestor messages stay with the ancestor. Threads labelled
        with one of the deleted messages lose the label.
        """
        branch = await self.get_branch(branch_id)
        if branch.is_main:
            raise MainBranchDeletionError()

        child_count = await self._count_children(branch_id)
        if child_count:
            raise BranchHasChildrenError(child_count)

        deleted_ids = await self.messages.delete_branch_messages(branch_id)
        if deleted_ids:
            await self.db.execute(
                update(Branch)
                .where(
                    and_(
                        Branch.conversation_id == branch.conversation_id,
                        Branch.forked_from_message_id.in_(deleted_ids),
                    )
                )
                .values(forked_from_message_id=None)
            )
        await self.db.delete(branch)
        await self.commit()
        logger.info(f"Deleted branch {branch_id} with {len(deleted_ids)} messages")

    async def next_available_name(self, conversation_id: UUID, base_name: str) -> str:
        """`base_name`, or `base_name N` with the smallest free N."""
        if not await self._get_branch_by_name(conversation_id, base_name):
            return base_name
        suffix = 2
        while await self._get_branch_by_name(conversation_id, f"{base_name} {suffix}"):
            suffix += 1
        return f"{base_name} {suffix}"

    # Private helper methods

    def _validate_name(self, name: str | None) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Branch name is required")
        if len(name) > settings.max_branch_name_length:
            raise ValidationError(
                f"Branch name cannot exceed {settings.max_branch_name_length} characters"
            )
        return name

    async def _get_branch_by_name(self, conversation_id: UUID, name: str) -> Branch | None:
        stmt = select(Branch).where(and_(Branch.conversation_id == conversation_id, Branch.name == name))
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _count_children(self, branch_id: UUID) -> int:
        stmt = select(func.count(Branch.id)).where(Branch.parent_branch_id == branch_id)
        result = await self.db.execute(stmt)
        return result.scalar() or 0
