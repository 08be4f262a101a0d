"""
Centralized access to the messaging models.

    from messenger.models import User, Message

Importing this package also registers both tables on `Base.metadata`.
"""

from .user import User
from .message import Message

__all__ = [
    "User",
    "Message",
]
