"""Context resolution: the ordered messages a branch logically contains."""

import logging
from uuid import UUID

from app.domains.branch.store import BranchStore
from app.domains.message.store import MessageStore, ordering_key
from app.exceptions.base import InvariantViolationError
from models.branch import Branch
from models.message import Message


logger = logging.getLogger(__name__)


class ContextResolver:
    """Computes a branch's visible context from the branch forest.

    A root branch, a thread or a materialized fork contains only its own
    messages. A logical fork contains its parent's resolved context up to and
    including the fork point, followed by its own messages. Messages added to
    the parent after the fork point are never visible on the fork.
    """

    def __init__(self, branch_store: BranchStore, message_store: MessageStore):
        self.branches = branch_store
        self.messages = message_store

    async def resolve_context(self, branch_id: UUID) -> list[Message]:
        branch = await self.branches.get_branch(branch_id)
        return await self._resolve(branch, visited=set())

    async def is_visible(self, message_id: UUID, branch_id: UUID) -> bool:
        context = await self.resolve_context(branch_id)
        return any(m.id == message_id for m in context)

    async def build_prompt(self, branch_id: UUID) -> list[dict[str, str]]:
        """Resolved context as role/content pairs for the completion client."""
        context = await self.resolve_context(branch_id)
        return to_prompt(context)

    async def _resolve(self, branch: Branch, visited: set) -> list[Message]:
        if branch.id in visited:
            logger.error(f"Cycle detected in branch ancestry at {branch.id}")
            raise InvariantViolationError(
                "Branch ancestry contains a cycle", details={"branch_id": str(branch.id)}
            )
        visited.add(branch.id)

        own = await self.messages.get_messages_by_branch(branch.id)
        if branch.parent_branch_id is None or branch.is_materialized:
            return own

        if branch.forked_from_message_id is None:
            # Fork point was deleted with its branch; nothing left to inherit.
            return own

        parent = await self.branches.get_branch(branch.parent_branch_id)
        parent_context = await self._resolve(parent, visited)

        cutoff = next((m for m in parent_context if m.id == branch.forked_from_message_id), None)
        if cutoff is None:
            raise InvariantViolationError(
                "Fork point is not part of the parent branch's context",
                details={"branch_id": str(branch.id)},
            )

        cutoff_key = ordering_key(cutoff)
        inherited = [m for m in parent_context if ordering_key(m) <= cutoff_key]
        return inherited + own


def to_prompt(messages: list[Message]) -> list[dict[str, str]]:
    return [{"role": m.role.value, "content": m.content} for m in messages]
