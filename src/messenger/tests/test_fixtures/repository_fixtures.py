"""Fixtures for repository tests."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from messenger.models.message import Message
from messenger.models.user import User
from messenger.repositories.base_repository import BaseRepository
from messenger.repositories.conversation_repository import ConversationRepository
from messenger.repositories.message_repository import MessageRepository
from messenger.repositories.user_repository import UserRepository

# NOTE: every fixture here depends on `db_session` from conftest.py, so all rows
# a test creates live in that test's own session and database.

# Messages get strictly increasing created_at values from this point on, so
# ordering assertions never depend on clock resolution.
BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def base_repo(db_session: AsyncSession) -> BaseRepository[User]:
    """BaseRepository bound to the User model, for the generic CRUD tests."""
    return BaseRepository(User, db_session)


@pytest.fixture
async def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
async def message_repository(db_session: AsyncSession) -> MessageRepository:
    return MessageRepository(db_session)


@pytest.fixture
async def conversation_repository(db_session: AsyncSession) -> ConversationRepository:
    """ConversationRepository with default options (date-only format, conversation-wide seen marking)."""
    return ConversationRepository(db_session)


@pytest.fixture
def sample_user_data() -> dict[str, str]:
    """
    Deterministic payload for `create()` calls.

    Returns:
        dict: User creation fields (slug, name, avatar).
    """
    return {
        "slug": "testuser",
        "name": "Test User",
        "avatar": "avatars/testuser.png",
    }


@pytest.fixture
async def create_user(base_repo: BaseRepository[User]):
    """
    Factory creating users with optional overrides.

    Usage:
        user = await create_user(slug="bob")
    """
    async def _create(**overrides):
        suffix = uuid.uuid4().hex[:8]
        data = {
            "slug": f"user-{suffix}",
            "name": f"User {suffix}",
            "avatar": None,
            "is_online": False,
        }
        data.update(overrides)
        return await base_repo.create(**data)

    return _create


@pytest.fixture
async def created_user(create_user, sample_user_data) -> User:
    return await create_user(**sample_user_data)


@pytest.fixture
async def multiple_users(create_user) -> list[User]:
    """Three persisted users with unique slugs."""
    return [await create_user(slug=f"user-{idx}-{uuid.uuid4().hex[:6]}") for idx in range(3)]


@pytest.fixture
async def alice_and_bob(create_user) -> tuple[User, User]:
    """Two users with fixed slugs, the usual pair for conversation tests."""
    alice = await create_user(slug="alice", name="Alice", avatar="avatars/alice.png", is_online=True)
    bob = await create_user(slug="bob", name="Bob")
    return alice, bob


@pytest.fixture
async def create_message(db_session: AsyncSession, faker):
    """
    Factory inserting a message row directly (no validation), one minute after
    the previous one unless `created_at` is given.

    Usage:
        msg = await create_message(alice, bob)
        old = await create_message(bob, alice, seen_at=some_time, deleted_by_receiver=True)
    """
    repo = BaseRepository(Message, db_session)
    state = {"n": 0}

    async def _create(sender: User, receiver: User, text: str | None = None, **overrides):
        state["n"] += 1
        data = {
            "sender_id": sender.id,
            "receiver_id": receiver.id,
            "message": text if text is not None else faker.sentence(),
            "created_at": BASE_TIME + timedelta(minutes=state["n"]),
        }
        data.update(overrides)
        return await repo.create(**data)

    return _create
