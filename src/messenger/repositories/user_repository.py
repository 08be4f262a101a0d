"""
User repository for handling user-specific database operations.

Extends BaseRepository with lookups by slug and presence updates. Users are the
conversation participants; their slug is what conversation listings show.
"""

import logging

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from messenger.models.user import User
from .base_repository import BaseRepository, RepositoryError

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for User entity operations.

    Inherits the generic CRUD helpers and adds slug lookup and the online flag.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    # =================================================================================================================
    # Create Operations
    # =================================================================================================================

    async def create_user(
        self,
        slug: str,
        name: str,
        avatar: str | None = None,
        is_online: bool = False,
    ) -> User:
        """
        Create a new user.

        Args:
            slug: Unique public handle (stripped and lower-cased before storage)
            name: Display name
            avatar: Optional avatar path or URL
            is_online: Initial presence flag

        Returns:
            The created User entity

        Raises:
            DuplicateError: If the slug is already taken
            RepositoryError: For any unexpected database errors
        """
        normalized_slug = slug.strip().lower()
        logger.info(f"Creating new user: {normalized_slug}")

        return await self.create(
            slug=normalized_slug,
            name=name.strip(),
            avatar=avatar,
            is_online=is_online,
        )

    # =================================================================================================================
    # Read Operations
    # =================================================================================================================

    async def get_by_slug(self, slug: str) -> User | None:
        """
        Get a user by slug (case-insensitive, since slugs are stored lower-cased).

        Returns:
            The User if found, otherwise None
        """
        return await self.find_by_field("slug", slug.strip().lower())

    # =================================================================================================================
    # Update Operations
    # =================================================================================================================

    async def set_online(self, user_id: int, is_online: bool) -> User | None:
        """
        Update a user's presence flag.

        Returns:
            The updated User, or None if no user has this id

        Raises:
            RepositoryError: If the update fails
        """
        try:
            result = await self.db.execute(
                update(User)
                .where(User.id == user_id)
                .values(is_online=is_online)
                .execution_options(synchronize_session="fetch")
            )
        except Exception as e:
            logger.error(f"Error updating presence of user {user_id}: {e}")
            raise RepositoryError("Failed to update user presence") from e

        if result.rowcount == 0:
            logger.warning(f"User with ID {user_id} not found for presence update")
            return None

        logger.debug(f"User {user_id} is_online={is_online}")
        return await self.get_by_id(user_id)
