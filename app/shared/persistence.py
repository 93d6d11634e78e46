"""Session helpers shared by the stores.

Stores flush their writes and leave the commit to the caller when an operation
spans several rows (fork with copy, chat turn). Database errors never leave
this layer raw: they are translated to domain exceptions after a rollback.
"""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions.base import ConflictError, ValidationError


logger = logging.getLogger(__name__)


class SessionStore:
    """Base class for stores bound to one async session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def flush(self) -> None:
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            await self._fail(e)

    async def commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self._fail(e)

    async def rollback(self) -> None:
        await self.db.rollback()

    async def _fail(self, error: SQLAlchemyError):
        await self.db.rollback()
        if isinstance(error, IntegrityError):
            logger.warning(f"Integrity constraint violated: {error.orig}")
            raise ConflictError("Write conflicts with existing data") from error
        logger.error(f"Database error: {str(error)}")
        raise ValidationError(f"Failed to persist changes: {str(error)}") from error
