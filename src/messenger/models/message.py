from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Text, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func, expression
from datetime import datetime
from messenger.database.base import Base
from typing import TYPE_CHECKING

# Avoid circular import issues when using type hints for related models
if TYPE_CHECKING:
    from .user import User


class Message(Base):
    """
    SQLAlchemy model for a direct message between exactly two users.

    Each party hides the message from its own view with a separate flag
    (`deleted_by_sender`, `deleted_by_receiver`); the row is only removed
    once both flags are set.
    """
    __tablename__ = "messages"
    __table_args__ = (
        # Both directions of a pair are looked up on every conversation query
        Index("ix_messages_sender_receiver", "sender_id", "receiver_id"),
    )

    # Monotonically assigned; the highest id in a thread is its latest message
    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True
    )

    sender_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=False,
        index=True
    )

    receiver_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=False,
        index=True
    )

    # Message body (can be multi-line, so Text is used)
    message: Mapped[str] = mapped_column(
        Text,
        nullable=False
    )

    # NULL until the receiver opens the conversation
    seen_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    deleted_by_sender: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=expression.false(),
        nullable=False
    )

    deleted_by_receiver: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=expression.false(),
        nullable=False
    )

    # --- Relationships ---

    sender: Mapped["User"] = relationship(
        "User",
        back_populates="sent_messages",
        foreign_keys=[sender_id]
    )

    receiver: Mapped["User"] = relationship(
        "User",
        back_populates="received_messages",
        foreign_keys=[receiver_id]
    )

    def __repr__(self) -> str:
        return (
            f"<Message(id={self.id!r}, sender_id={self.sender_id!r}, "
            f"receiver_id={self.receiver_id!r}, seen={self.seen_at is not None})>"
        )
