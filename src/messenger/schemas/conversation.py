"""
Result schemas returned by ConversationRepository.

Plain `model_dump()` gives the dict shape callers serialize. Conversation rows
keep `None` values (`"seen_at": None` for an unread message); `DeleteResult`
leaves out its unset optional fields, e.g. `{"status": True, "purged": 0}` or
`{"status": False, "message": "..."}`.
"""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, model_serializer


class ConversationMessage(BaseModel):
    """One row of a conversation page; `created_at` is already rendered through the date format."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    message: str
    sender: str
    seen_at: datetime | None = None
    created_at: str


class ConversationSummary(BaseModel):
    """Latest message with one partner, as listed in a user's inbox."""
    model_config = ConfigDict(from_attributes=True)

    slug: str
    user: str
    avatar: str | None = None
    is_online: bool
    sender: str
    message: str
    seen_at: datetime | None = None
    created_at: datetime


class NotificationsResult(BaseModel):
    status: bool = True
    total: int


class NotificationsError(BaseModel):
    """Failure variant of notifications(): carries only the error text, no status."""
    message: str


class DeleteResult(BaseModel):
    status: bool
    message: str | None = None
    # rows physically removed because both parties had deleted them
    purged: int | None = None

    @model_serializer(mode="wrap")
    def _drop_unset(self, handler):
        return {key: value for key, value in handler(self).items() if value is not None}
