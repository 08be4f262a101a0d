"""
Message repository for handling single-message operations.

Sending a message and removing one message from one party's view live here;
thread-level reads and the mutual delete of a whole thread live in
ConversationRepository.
"""

import logging

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from messenger.models.message import Message
from messenger.models.user import User
from .base_repository import BaseRepository, NotFoundError, RepositoryError

logger = logging.getLogger(__name__)


class MessageRepository(BaseRepository[Message]):
    """
    Repository for Message entity operations.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Message, db)

    # =================================================================================================================
    # Create Operations
    # =================================================================================================================

    async def send(self, sender_id: int, receiver_id: int, text: str) -> Message:
        """
        Create a message from `sender_id` to `receiver_id`.

        Both users must exist. The text is stripped and must not be blank.

        Args:
            sender_id: Id of the author
            receiver_id: Id of the recipient
            text: Message body

        Returns:
            Message: The created Message entity (id and created_at populated).

        Raises:
            RepositoryError: If the text is blank (`error_code="invalid_input"`)
                or a database error occurs.
            NotFoundError: If either user does not exist.
        """
        body = (text or "").strip()
        if not body:
            logger.info("repo.message.blank_text", extra={"sender_id": sender_id, "receiver_id": receiver_id})
            raise RepositoryError("Message text must not be blank", fields=["message"], error_code="invalid_input")

        try:
            result = await self.db.execute(select(User.id).where(User.id.in_([sender_id, receiver_id])))
            existing = set(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to look up participants {sender_id}->{receiver_id}: {e}")
            raise RepositoryError("Failed to send message") from e

        missing = [
            field for field, user_id in (("sender_id", sender_id), ("receiver_id", receiver_id))
            if user_id not in existing
        ]
        if missing:
            raise NotFoundError(f"User not found for field(s): {', '.join(missing)}", fields=missing)

        logger.info(f"Sending message from user {sender_id} to user {receiver_id}")
        return await self.create(sender_id=sender_id, receiver_id=receiver_id, message=body)

    # =================================================================================================================
    # Read Operations
    # =================================================================================================================

    async def get_message(self, message_id: int) -> Message | None:
        """
        Get a single message by id, regardless of its deletion flags.
        """
        return await self.get_by_id(message_id)

    async def count_unread_from(self, receiver_id: int, sender_id: int) -> int:
        """
        Count messages `sender_id` sent to `receiver_id` that the receiver has not
        seen and has not deleted. Used for per-thread unread badges.
        """
        try:
            result = await self.db.execute(
                select(func.count(Message.id)).where(
                    Message.receiver_id == receiver_id,
                    Message.sender_id == sender_id,
                    Message.seen_at.is_(None),
                    Message.deleted_by_receiver.is_(False),
                )
            )
            count = result.scalar() or 0
            logger.debug(f"User {receiver_id} has {count} unread message(s) from user {sender_id}")
            return count
        except Exception as e:
            logger.error(f"Error counting unread messages for {receiver_id} from {sender_id}: {e}")
            raise RepositoryError("Failed to count unread messages") from e

    # =================================================================================================================
    # Delete Operations
    # =================================================================================================================

    async def delete_message(self, user_id: int, message_id: int) -> bool:
        """
        Remove one message from `user_id`'s view.

        Sets `deleted_by_sender` when the user authored the message and
        `deleted_by_receiver` when the user received it. Once both flags are
        set the row is physically removed.

        Returns:
            True if the flag was set, False if the message does not exist or
            `user_id` is not one of its parties.

        Raises:
            RepositoryError: If a database error occurs.
        """
        try:
            result = await self.db.execute(
                select(Message.sender_id, Message.receiver_id).where(Message.id == message_id)
            )
            row = result.one_or_none()
            if row is None:
                logger.warning(f"Message {message_id} not found for deletion")
                return False

            values = {}
            if row.sender_id == user_id:
                values["deleted_by_sender"] = True
            if row.receiver_id == user_id:
                values["deleted_by_receiver"] = True
            if not values:
                logger.info(
                    "repo.message.delete_not_party",
                    extra={"user_id": user_id, "message_id": message_id},
                )
                return False

            async with self.db.begin_nested():
                await self.db.execute(update(Message).where(Message.id == message_id).values(**values))
                purged = await self.db.execute(
                    delete(Message).where(
                        and_(
                            Message.id == message_id,
                            Message.deleted_by_sender.is_(True),
                            Message.deleted_by_receiver.is_(True),
                        )
                    )
                )
        except Exception as e:
            logger.error(f"Error deleting message {message_id} for user {user_id}: {e}")
            raise RepositoryError("Failed to delete message") from e

        logger.info(
            "repo.message.deleted",
            extra={"user_id": user_id, "message_id": message_id, "purged": purged.rowcount > 0},
        )
        return True
