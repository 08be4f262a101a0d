from sqlalchemy import String, DateTime, Boolean, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from datetime import datetime
from messenger.database.base import Base
from typing import TYPE_CHECKING

# Avoid circular import issues when using type hints for related models
if TYPE_CHECKING:
    from .message import Message


class User(Base):
    """
    SQLAlchemy model for a messaging participant.

    Only the profile fields shown in conversation lists live here; credentials
    and sessions belong to the authentication layer.
    """
    __tablename__ = "users"

    # Integer identity, referenced by messages.sender_id / messages.receiver_id
    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True
    )

    # Public handle used in URLs and as the "sender" of a message (unique)
    slug: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False
    )

    # Display name
    name: Mapped[str] = mapped_column(
        String(150),
        nullable=False
    )

    # Avatar path or URL
    avatar: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True
    )

    is_online: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    # --- Relationships ---

    sent_messages: Mapped[list["Message"]] = relationship(
        "Message",
        back_populates="sender",
        foreign_keys="Message.sender_id",
        lazy="select"
    )

    received_messages: Mapped[list["Message"]] = relationship(
        "Message",
        back_populates="receiver",
        foreign_keys="Message.receiver_id",
        lazy="select"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id!r}, slug={self.slug!r}, is_online={self.is_online!r})>"
