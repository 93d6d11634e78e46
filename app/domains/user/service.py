# app/domains/user/service.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional
from models import User


class UserService:
    """Caller identities provisioned from Clerk token payloads."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_clerk_id(self, clerk_user_id: str) -> Optional[User]:
        """Get a user by Clerk user ID."""
        result = await self.db.execute(select(User).where(User.clerk_user_id == clerk_user_id))
        return result.scalar_one_or_none()

    async def create_user(self, clerk_user_id: str, email: str = None, username: str = None) -> User:
        """Create a new user."""
        user = User(clerk_user_id=clerk_user_id, email=email, username=username)

        try:
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)
            return user
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise e

    async def get_or_create_user(self, clerk_user_id: str, clerk_payload: dict) -> User:
        """Get existing user or create new one from Clerk payload."""
        user = await self.get_user_by_clerk_id(clerk_user_id)
        if not user:
            user = await self.create_user(
                clerk_user_id=clerk_user_id,
                email=clerk_payload.get("email"),
                username=clerk_payload.get("username"),
            )
        return user
