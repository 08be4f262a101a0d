import pytest

from messenger.exceptions.base import DuplicateError
from messenger.models.user import User
from messenger.repositories.user_repository import UserRepository


@pytest.mark.asyncio
class TestUserRepositoryCreate:
    """
    Tests covering UserRepository.create_user().

    Fixtures used:
      - user_repository: UserRepository bound to the test session.

    Rationale:
      - create_user normalizes the slug (strip + lower-case) so "Alice" and
        "alice" cannot both exist; the unique constraint must surface as DuplicateError.
    """

    async def test_create_user_success(self, user_repository: UserRepository):
        user = await user_repository.create_user(slug="alice", name="Alice", avatar="a.png", is_online=True)

        assert isinstance(user, User)
        assert user.id is not None
        assert user.slug == "alice"
        assert user.name == "Alice"
        assert user.avatar == "a.png"
        assert user.is_online is True
        assert user.created_at is not None

    async def test_create_user_normalizes_input(self, user_repository: UserRepository):
        user = await user_repository.create_user(slug="  Alice  ", name="  Alice Liddell ")

        assert user.slug == "alice"
        assert user.name == "Alice Liddell"
        assert user.avatar is None
        assert user.is_online is False

    async def test_create_user_duplicate_slug_case_insensitive(self, user_repository: UserRepository):
        await user_repository.create_user(slug="dupman", name="Dup")

        with pytest.raises(DuplicateError) as exc_info:
            await user_repository.create_user(slug="DUPMAN", name="Other")

        assert exc_info.value.fields == ["slug"]


@pytest.mark.asyncio
class TestUserRepositoryRead:

    async def test_get_by_slug(self, user_repository: UserRepository):
        created = await user_repository.create_user(slug="carol", name="Carol")

        assert (await user_repository.get_by_slug("carol")).id == created.id
        assert (await user_repository.get_by_slug(" CAROL ")).id == created.id
        assert await user_repository.get_by_slug("nobody") is None


@pytest.mark.asyncio
class TestUserRepositoryPresence:

    async def test_set_online_toggles_flag(self, user_repository: UserRepository):
        user = await user_repository.create_user(slug="dave", name="Dave")

        updated = await user_repository.set_online(user.id, True)
        assert updated is not None
        assert updated.is_online is True

        updated = await user_repository.set_online(user.id, False)
        assert updated.is_online is False

    async def test_set_online_unknown_user_returns_none(self, user_repository: UserRepository):
        assert await user_repository.set_online(999_999, True) is None
