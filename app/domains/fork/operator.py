"""Fork and thread operations on the branch forest."""

import logging
from uuid import UUID

from app.core.config import settings
from app.domains.branch.store import BranchStore
from app.domains.context.resolver import ContextResolver
from app.domains.message.store import MessageStore, ordering_key
from app.exceptions.base import ValidationError
from app.exceptions.branching import MessageNotFoundError, NonAncestorForkError
from models.branch import Branch


logger = logging.getLogger(__name__)


class ForkOperator:
    """Creates forks and top-level threads.

    A fork becomes a child of the branch the message is visible on and
    inherits context up to that message. By default inheritance is logical:
    nothing is copied and the resolver walks up the parent chain. With
    `copy_messages` enabled the visible prefix is copied onto the fork, which
    is then marked materialized and resolves from its own rows only.
    """

    def __init__(
        self,
        branch_store: BranchStore,
        message_store: MessageStore,
        resolver: ContextResolver,
        copy_messages: bool | None = None,
    ):
        self.branches = branch_store
        self.messages = message_store
        self.resolver = resolver
        self.copy_messages = settings.fork_copy_messages if copy_messages is None else copy_messages

    async def fork(
        self,
        conversation_id: UUID,
        parent_message_id: UUID,
        name: str | None,
        caller_id: UUID | None,
        parent_branch_id: UUID | None = None,
        color: str | None = None,
    ) -> Branch:
        """Fork at `parent_message_id`.

        The parent branch defaults to the branch that authored the message;
        pass `parent_branch_id` to fork from a message that branch inherited.
        """
        message = await self.messages.get_message_by_id(parent_message_id)
        if message.conversation_id != conversation_id:
            raise MessageNotFoundError()

        parent_branch_id = parent_branch_id or message.branch_id
        parent = await self.branches.get_branch(parent_branch_id)
        if parent.conversation_id != conversation_id:
            raise ValidationError("Parent branch does not belong to this conversation")

        parent_context = await self.resolver.resolve_context(parent.id)
        if not any(m.id == message.id for m in parent_context):
            raise NonAncestorForkError()

        if name is None:
            name = await self.branches.next_available_name(conversation_id, settings.default_fork_name)

        branch = await self.branches.create_branch(
            conversation_id=conversation_id,
            name=name,
            parent_branch_id=parent.id,
            forked_from_message_id=message.id,
            creator=caller_id,
            color=color,
            is_materialized=self.copy_messages,
            commit=False,
        )
        try:
            if self.copy_messages:
                cutoff_key = ordering_key(message)
                prefix = [m for m in parent_context if ordering_key(m) <= cutoff_key]
                await self._copy_prefix(prefix, branch.id)
            await self.branches.commit()
        except Exception:
            await self.branches.rollback()
            raise

        logger.info(
            f"Forked branch {branch.id} from {parent.id} at message {message.id} "
            f"(copied={self.copy_messages})"
        )
        return branch

    async def new_thread(
        self,
        conversation_id: UUID,
        from_message_id: UUID,
        name: str | None,
        caller_id: UUID | None,
        color: str | None = None,
    ) -> Branch:
        """Start an empty top-level branch labelled with its origin message."""
        if name is None or not name.strip():
            raise ValidationError("Thread name is required")

        message = await self.messages.get_message_by_id(from_message_id)
        if message.conversation_id != conversation_id:
            raise MessageNotFoundError()

        branch = await self.branches.create_branch(
            conversation_id=conversation_id,
            name=name,
            parent_branch_id=None,
            forked_from_message_id=message.id,
            creator=caller_id,
            color=color,
        )
        logger.info(f"Started thread {branch.id} from message {message.id}")
        return branch

    async def _copy_prefix(self, prefix, branch_id: UUID) -> None:
        # parent_message_id links are remapped so copies point at copies.
        id_map: dict[UUID, UUID] = {}
        for source in prefix:
            parent_id = id_map.get(source.parent_message_id, source.parent_message_id)
            copy = await self.messages.copy_message(source, branch_id, parent_id)
            id_map[source.id] = copy.id
