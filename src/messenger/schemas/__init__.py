from .conversation import (
    ConversationMessage,
    ConversationSummary,
    NotificationsResult,
    NotificationsError,
    DeleteResult,
)

__all__ = [
    "ConversationMessage",
    "ConversationSummary",
    "NotificationsResult",
    "NotificationsError",
    "DeleteResult",
]
