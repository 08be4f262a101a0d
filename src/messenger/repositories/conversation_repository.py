"""
Conversation repository: thread-level reads and the mutual delete of a thread.

A conversation is not stored. It is the set of messages exchanged by two users,
filtered by the viewing party's own deletion flag:

    (sender_id = viewer  AND receiver_id = partner AND deleted_by_sender   = false)
 OR (sender_id = partner AND receiver_id = viewer  AND deleted_by_receiver = false)

Every public method takes the viewer's id explicitly.
"""

import logging
from datetime import datetime, timezone
from typing import Literal, Type

from sqlalchemy import Select, and_, delete, func, or_, select, union, union_all, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from messenger.models.message import Message
from messenger.models.user import User
from messenger.schemas.conversation import (
    ConversationMessage,
    ConversationSummary,
    DeleteResult,
    NotificationsError,
    NotificationsResult,
)
from .base_repository import BaseRepository, RepositoryError

logger = logging.getLogger(__name__)

SeenScope = Literal["conversation", "incoming"]
SEEN_SCOPES = ("conversation", "incoming")


class ConversationRepository(BaseRepository[Message]):
    """
    Repository for conversations between two users.

    Args:
        db: The async database session (the caller commits).
        model: Mapped message class to query. Any class exposing the message
            columns (`sender_id`, `receiver_id`, `message`, `seen_at`,
            `created_at`, `deleted_by_sender`, `deleted_by_receiver`) works.
        date_format: strftime format applied to `created_at` in `get()`.
        seen_scope: "conversation" stamps every unseen visible message of the
            thread when the first page is read; "incoming" only those the
            viewer received.
        page_size: Default `limit` for `get()`.

    The inherited entity helpers (`create`, `get_by_id`, `find_by_field`,
    `exists`, `count`) work on single messages. `delete` is replaced: it takes
    the pair `(sender_id, receiver_id)` and returns a `DeleteResult` instead of
    removing one row by id (use `MessageRepository.delete_message` for that).
    """

    def __init__(
        self,
        db: AsyncSession,
        model: Type[Message] = Message,
        *,
        date_format: str = "%Y-%m-%d",
        seen_scope: SeenScope = "conversation",
        page_size: int = 10,
    ):
        super().__init__(model, db)
        if seen_scope not in SEEN_SCOPES:
            raise ValueError(f"seen_scope must be one of {SEEN_SCOPES}, got {seen_scope!r}")
        self.date_format = date_format
        self.seen_scope = seen_scope
        self.page_size = page_size

    # =================================================================================================================
    # Query building
    # =================================================================================================================

    def user_conversations(self, sender_id: int, receiver_id: int) -> Select:
        """
        Messages between `sender_id` (the viewer) and `receiver_id` that the viewer has not deleted.

        Returns an unexecuted `Select` so callers can add ordering, paging or
        reuse its WHERE clause (the seen-marking update in `get()` does).
        """
        m = self.model
        return select(m).where(
            or_(
                and_(m.sender_id == sender_id, m.receiver_id == receiver_id, m.deleted_by_sender.is_(False)),
                and_(m.sender_id == receiver_id, m.receiver_id == sender_id, m.deleted_by_receiver.is_(False)),
            )
        )

    def _between(self, a: int, b: int):
        m = self.model
        return or_(
            and_(m.sender_id == a, m.receiver_id == b),
            and_(m.sender_id == b, m.receiver_id == a),
        )

    # =================================================================================================================
    # Read Operations
    # =================================================================================================================

    async def get(
        self,
        sender_id: int,
        receiver_id: int,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[ConversationMessage]:
        """
        One page of the conversation, newest first (`created_at DESC`, then `id DESC`).

        Reading the first page (`offset == 0`) marks the thread as seen: every
        visible message with `seen_at IS NULL` gets the current UTC time (see
        `seen_scope`). The returned rows are projected before that update, so
        they show the state the viewer had not seen yet. Later pages never
        touch `seen_at`.

        Args:
            sender_id: The viewer
            receiver_id: The conversation partner
            offset: Rows to skip
            limit: Page size (defaults to `page_size`)

        Returns:
            list[ConversationMessage]: `id`, `message`, `sender` (author slug),
            `seen_at`, `created_at` formatted with `date_format`.

        Raises:
            RepositoryError: If a database error occurs.
        """
        m = self.model
        limit = self.page_size if limit is None else limit
        conversation = self.user_conversations(sender_id, receiver_id)
        author = aliased(User, name="author")

        query = (
            select(m.id, m.message, author.slug.label("sender"), m.seen_at, m.created_at)
            .join_from(m, author, author.id == m.sender_id)
            .where(conversation.whereclause)
            .order_by(m.created_at.desc(), m.id.desc())
            .offset(offset)
            .limit(limit)
        )

        try:
            result = await self.db.execute(query)
            messages = [
                ConversationMessage(
                    id=row.id,
                    message=row.message,
                    sender=row.sender,
                    seen_at=row.seen_at,
                    created_at=row.created_at.strftime(self.date_format),
                )
                for row in result
            ]

            marked = 0
            if offset == 0:
                marked = await self._mark_seen(conversation, sender_id)
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving conversation {sender_id}<->{receiver_id}: {e}")
            raise RepositoryError("Failed to retrieve conversation") from e

        logger.debug(
            f"Retrieved {len(messages)} message(s) for {sender_id}<->{receiver_id} "
            f"(offset={offset}, limit={limit}, marked_seen={marked})"
        )
        return messages

    async def _mark_seen(self, conversation: Select, viewer_id: int) -> int:
        m = self.model
        conditions = [conversation.whereclause, m.seen_at.is_(None)]
        if self.seen_scope == "incoming":
            conditions.append(m.receiver_id == viewer_id)

        result = await self.db.execute(
            update(m).where(*conditions).values(seen_at=datetime.now(timezone.utc))
        )
        return result.rowcount

    async def all(self, user_id: int) -> list[ConversationSummary]:
        """
        The user's inbox: one row per partner with the latest visible message.

        "Latest" is the highest message id among the messages the user sent
        (not sender-deleted) or received (not receiver-deleted) in that thread.
        Rows are ordered by that id, newest thread first.

        Returns:
            list[ConversationSummary]: partner `slug`, partner name as `user`,
            `avatar`, `is_online`, the latest message's author slug as
            `sender`, `message`, `seen_at`, `created_at`.

        Raises:
            RepositoryError: If a database error occurs.
        """
        m = self.model

        sent = (
            select(m.receiver_id.label("usr"), func.max(m.id).label("id"))
            .where(m.sender_id == user_id, m.deleted_by_sender.is_(False))
            .group_by(m.receiver_id)
        )
        received = (
            select(m.sender_id.label("usr"), func.max(m.id).label("id"))
            .where(m.receiver_id == user_id, m.deleted_by_receiver.is_(False))
            .group_by(m.sender_id)
        )
        threads = union_all(sent, received).subquery("threads")
        latest = (
            select(threads.c.usr, func.max(threads.c.id).label("id"))
            .group_by(threads.c.usr)
            .subquery("latest")
        )

        partner = aliased(User, name="partner")
        author = aliased(User, name="author")
        query = (
            select(
                partner.slug,
                partner.name.label("user"),
                partner.avatar,
                partner.is_online,
                author.slug.label("sender"),
                m.message,
                m.seen_at,
                m.created_at,
            )
            .select_from(latest)
            .join(m, m.id == latest.c.id)
            .join(partner, partner.id == latest.c.usr)
            .join(author, author.id == m.sender_id)
            .order_by(m.id.desc())
        )

        try:
            result = await self.db.execute(query)
            conversations = [ConversationSummary.model_validate(row._asdict()) for row in result]
        except SQLAlchemyError as e:
            logger.error(f"Error listing conversations of user {user_id}: {e}")
            raise RepositoryError("Failed to list conversations") from e

        logger.debug(f"User {user_id} has {len(conversations)} conversation(s)")
        return conversations

    async def recipients(self, user_id: int) -> list[str]:
        """
        Slugs of everyone the user has a visible message with, in either direction.

        Distinct and sorted by slug.

        Raises:
            RepositoryError: If a database error occurs.
        """
        m = self.model
        sent_to = (
            select(User.slug)
            .join(m, m.receiver_id == User.id)
            .where(m.sender_id == user_id, m.deleted_by_sender.is_(False))
        )
        received_from = (
            select(User.slug)
            .join(m, m.sender_id == User.id)
            .where(m.receiver_id == user_id, m.deleted_by_receiver.is_(False))
        )
        partners = union(sent_to, received_from).subquery("partners")

        try:
            result = await self.db.execute(select(partners.c.slug).order_by(partners.c.slug))
            slugs = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing recipients of user {user_id}: {e}")
            raise RepositoryError("Failed to list recipients") from e

        logger.debug(f"User {user_id} has {len(slugs)} recipient(s)")
        return slugs

    async def notifications(
        self,
        user_id: int,
        include_deleted: bool = True,
    ) -> NotificationsResult | NotificationsError:
        """
        Unread count for the user's notification badge.

        Counts messages received by the user with `seen_at IS NULL`. By default
        messages the user deleted unread still count; pass
        `include_deleted=False` to skip them.

        Never raises for storage failures: they are returned as
        `NotificationsError(message=...)`.
        """
        m = self.model
        query = select(func.count(m.id)).where(m.receiver_id == user_id, m.seen_at.is_(None))
        if not include_deleted:
            query = query.where(m.deleted_by_receiver.is_(False))

        try:
            result = await self.db.execute(query)
            total = result.scalar() or 0
        except SQLAlchemyError as e:
            logger.error(f"Error counting notifications of user {user_id}: {e}")
            return NotificationsError(message=str(e))

        logger.debug(f"User {user_id} has {total} unread message(s)")
        return NotificationsResult(status=True, total=total)

    # =================================================================================================================
    # Delete Operations
    # =================================================================================================================

    async def delete(self, sender_id: int, receiver_id: int) -> DeleteResult:
        """
        Delete the whole thread from `sender_id`'s view.

        1. messages `sender_id -> receiver_id` get `deleted_by_sender = true`
        2. messages `receiver_id -> sender_id` get `deleted_by_receiver = true`
        3. messages of the pair with both flags set are physically removed

        The three statements share one SAVEPOINT, so a failure leaves every
        flag as it was. Storage failures are returned, not raised.
        Message instances already loaded in the session are expired after a
        failed delete; read their ids before calling if they are needed later.

        Returns:
            DeleteResult: `status=True` with the number of `purged` rows, or
            `status=False` with the error `message`.
        """
        m = self.model
        try:
            async with self.db.begin_nested():
                hidden_sent = await self.db.execute(
                    update(m)
                    .where(m.sender_id == sender_id, m.receiver_id == receiver_id)
                    .values(deleted_by_sender=True)
                )
                hidden_received = await self.db.execute(
                    update(m)
                    .where(m.sender_id == receiver_id, m.receiver_id == sender_id)
                    .values(deleted_by_receiver=True)
                )
                purged = await self.db.execute(
                    delete(m).where(
                        self._between(sender_id, receiver_id),
                        m.deleted_by_sender.is_(True),
                        m.deleted_by_receiver.is_(True),
                    )
                )
        except SQLAlchemyError as e:
            logger.error(f"Error deleting conversation {sender_id}<->{receiver_id}: {e}")
            return DeleteResult(status=False, message=str(e))

        logger.info(
            "repo.conversation.deleted",
            extra={
                "user_id": sender_id,
                "partner_id": receiver_id,
                "hidden": hidden_sent.rowcount + hidden_received.rowcount,
                "purged": purged.rowcount,
            },
        )
        return DeleteResult(status=True, purged=purged.rowcount)


# ConversationRepository Method Summary
# | Method                               | Returns                                       | Mutates                                  |
# | ------------------------------------ | --------------------------------------------- | ---------------------------------------- |
# | `user_conversations(s, r)`           | `Select` over the visible thread              | nothing                                  |
# | `get(s, r, offset, limit)`           | `list[ConversationMessage]`                   | `seen_at` when `offset == 0`             |
# | `all(user_id)`                       | `list[ConversationSummary]`                   | nothing                                  |
# | `recipients(user_id)`                | `list[str]` (sorted slugs)                    | nothing                                  |
# | `notifications(user_id)`             | `NotificationsResult` / `NotificationsError`  | nothing                                  |
# | `delete(s, r)`                       | `DeleteResult`                                | deletion flags, purges mutual deletes    |
