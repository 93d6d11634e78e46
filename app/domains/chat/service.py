"""Chat turn orchestration: one user message in, one assistant message out."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.domains.branch.store import BranchStore
from app.domains.context.resolver import ContextResolver, to_prompt
from app.domains.conversation.service import ConversationService, generate_title
from app.domains.message.store import MessageStore
from app.domains.settings.service import SettingsService
from app.exceptions.base import ValidationError
from app.exceptions.branching import BranchNotFoundError
from app.exceptions.completion import CompletionTransportError
from app.services.completion_client import CompletionClient
from models.message import Message, MessageRole


logger = logging.getLogger(__name__)

CredentialProvider = Callable[[UUID], Awaitable[str]]

FAILED_REPLY_TEMPLATE = "Sorry, I couldn't generate a response: {error}"


@dataclass
class ChatTurnResult:
    """Both messages persisted by a turn."""

    user_message: Message
    assistant_message: Message
    conversation_title: str
    completion_failed: bool = False
    usage: dict[str, Any] = field(default_factory=dict)


class ChatService:
    """Runs chat turns on a branch.

    A turn appends the user message, sends the branch's resolved context to
    the completion provider and appends the reply. Provider failures become a
    visible assistant message so a turn always completes; any other error
    rolls the whole turn back.
    """

    def __init__(
        self,
        db: AsyncSession,
        completion_client: CompletionClient,
        credential_provider: CredentialProvider | None = None,
        conversations: ConversationService | None = None,
        resolver: ContextResolver | None = None,
    ):
        """Initialize chat service.

        Args:
            db: Async database session shared by the stores.
            completion_client: Client for the chat completions provider.
            credential_provider: Returns the caller's plaintext API key; defaults
                to the stored, encrypted key.
        """
        self.db = db
        self.completion_client = completion_client
        self.credential_provider = credential_provider or SettingsService(db).get_decrypted_credential
        self.messages = MessageStore(db)
        branches = BranchStore(db, self.messages)
        self.conversations = conversations or ConversationService(db, branches)
        self.resolver = resolver or ContextResolver(branches, self.messages)

    async def submit_turn(
        self, conversation_id: UUID, branch_id: UUID, content: str, caller_id: UUID
    ) -> ChatTurnResult:
        """Submit one user message on a branch and persist the assistant reply.

        Args:
            conversation_id: Conversation the branch belongs to.
            branch_id: Branch receiving the turn.
            content: User message text.
            caller_id: Authenticated user; must own the conversation.

        Returns:
            ChatTurnResult with both persisted messages.

        Raises:
            ConversationNotFoundError, BranchNotFoundError: unknown or foreign ids.
            ValidationError: empty or oversized content.
            CredentialError: no usable API key on file.
        """
        conversation = await self.conversations.get_conversation(conversation_id, caller_id)
        branch = await self.resolver.branches.get_branch(branch_id)
        if branch.conversation_id != conversation.id:
            raise BranchNotFoundError("Branch not found in this conversation")

        content = self._validate_content(content)
        api_key = await self.credential_provider(caller_id)

        try:
            is_first = await self.messages.count_conversation_messages(conversation.id) == 0
            context = await self.resolver.resolve_context(branch.id)

            user_message = await self.messages.append_message(
                conversation_id=conversation.id,
                branch_id=branch.id,
                role=MessageRole.USER,
                content=content,
                parent_message_id=context[-1].id if context else None,
                commit=False,
            )
            prompt = to_prompt(context + [user_message])

            completion_failed = False
            usage: dict[str, Any] = {}
            model = None
            tokens_used = None
            try:
                result = await self.completion_client.complete(prompt, api_key)
                reply = result.content
                model = result.model
                usage = result.usage
                tokens_used = result.tokens_used
            except CompletionTransportError as e:
                logger.warning(f"Completion failed for branch {branch.id}: {e.message}")
                completion_failed = True
                reply = FAILED_REPLY_TEMPLATE.format(error=e.message)

            assistant_message = await self.messages.append_message(
                conversation_id=conversation.id,
                branch_id=branch.id,
                role=MessageRole.ASSISTANT,
                content=reply,
                parent_message_id=user_message.id,
                model=model,
                tokens_used=tokens_used,
                commit=False,
            )

            await self.conversations.touch(
                conversation, title=generate_title(content) if is_first else None
            )
            await self.conversations.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Turn completed on branch {branch.id} of conversation {conversation.id} "
            f"(completion_failed={completion_failed})"
        )
        return ChatTurnResult(
            user_message=user_message,
            assistant_message=assistant_message,
            conversation_title=conversation.title,
            completion_failed=completion_failed,
            usage=usage,
        )

    def _validate_content(self, content: str) -> str:
        if content is None or not content.strip():
            raise ValidationError("Message content is required")
        if len(content) > settings.max_message_length:
            raise ValidationError(
                f"Message content cannot exceed {settings.max_message_length} characters"
            )
        return content
