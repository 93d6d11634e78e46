"""Conversation, branch and message exceptions."""

from .base import ConflictError, InvariantViolationError, NotFoundError


class ConversationNotFoundError(NotFoundError):
    """Raised when a conversation does not exist or belongs to someone else."""

    def __init__(self, message: str = "Conversation not found"):
        super().__init__(message=message)


class BranchNotFoundError(NotFoundError):
    """Raised when a branch is not found."""

    def __init__(self, message: str = "Branch not found"):
        super().__init__(message=message)


class MessageNotFoundError(NotFoundError):
    """Raised when a message is not found."""

    def __init__(self, message: str = "Message not found"):
        super().__init__(message=message)


class DuplicateBranchNameError(ConflictError):
    """Raised when a branch name is already used in the conversation."""

    def __init__(self, name: str):
        super().__init__(
            message="Branch name already exists",
            details={"name": name},
        )


class MainBranchDeletionError(InvariantViolationError):
    """Raised when deleting the conversation's main branch."""

    def __init__(self, message: str = "Cannot delete main branch"):
        super().__init__(message=message)


class BranchHasChildrenError(InvariantViolationError):
    """Raised when deleting a branch other branches are forked from."""

    def __init__(self, child_count: int):
        super().__init__(
            message="Cannot delete a branch that other branches fork from",
            details={"child_count": child_count},
        )


class NonAncestorForkError(InvariantViolationError):
    """Raised when the fork message is not visible on the parent branch."""

    def __init__(self, message: str = "Fork message is not part of the parent branch's context"):
        super().__init__(message=message)
