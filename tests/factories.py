"""
Test data factories for generating test objects.

Factories build unsaved ORM instances; tests add them to the async session
themselves, since factory_boy's SQLAlchemy persistence is synchronous.
"""

import uuid

import factory

from models import Conversation, User


class UserFactory(factory.Factory):
    """Factory for creating User test instances."""

    class Meta:
        model = User

    id = factory.LazyFunction(uuid.uuid4)
    clerk_user_id = factory.LazyFunction(lambda: f"clerk_user_{uuid.uuid4()}")
    email = factory.Sequence(lambda n: f"user{n}@example.com")
    username = factory.Sequence(lambda n: f"testuser{n}")
    is_active = True


class ConversationFactory(factory.Factory):
    """Factory for bare Conversation rows (no main branch).

    Use `ConversationService.create_conversation` when the main branch matters.
    """

    class Meta:
        model = Conversation

    id = factory.LazyFunction(uuid.uuid4)
    title = factory.Faker("sentence", nb_words=3)
    # owner_ref will be passed when building


class MessageContentFactory(factory.DictFactory):
    """Realistic chat message text."""

    content = factory.Faker("sentence", nb_words=8)


def message_text() -> str:
    return MessageContentFactory()["content"]


async def persist(db, *objects):
    """Add built instances to the session and commit."""
    db.add_all(objects)
    await db.commit()
    for obj in objects:
        await db.refresh(obj)
    return objects[0] if len(objects) == 1 else objects
