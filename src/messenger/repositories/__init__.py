"""
Repository layer: the data-access API of the package.

Usage:
    from messenger.repositories import ConversationRepository, MessageRepository, UserRepository
"""

from .base_repository import BaseRepository
from .user_repository import UserRepository
from .conversation_repository import ConversationRepository
from .message_repository import MessageRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "ConversationRepository",
    "MessageRepository",
]
