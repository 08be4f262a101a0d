"""
Factories that wire repositories from settings.

Web handlers or jobs depend on these instead of constructing repositories by hand:

    async for db in get_db_session():
        repo = get_conversation_repository(db)
        page = await repo.get(viewer_id, partner_id)
        await db.commit()
"""
import importlib
import logging
from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from messenger.config.settings import Settings, get_settings
from messenger.database.session import get_async_session
from messenger.repositories.conversation_repository import ConversationRepository

logger = logging.getLogger(__name__)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_async_session():
        yield session


@lru_cache()
def resolve_model(dotted_path: str) -> type:
    """
    Import the mapped class named by a dotted path such as
    "messenger.models.message.Message".

    Raises:
        ValueError: If the path is malformed or does not resolve to a mapped class.
    """
    module_path, _, attr = dotted_path.rpartition(".")
    if not module_path:
        raise ValueError(f"MESSAGE_MODEL must be a dotted path, got {dotted_path!r}")

    try:
        model = getattr(importlib.import_module(module_path), attr)
    except (ImportError, AttributeError) as e:
        raise ValueError(f"Cannot import message model {dotted_path!r}") from e

    if not hasattr(model, "__table__"):
        raise ValueError(f"{dotted_path!r} is not a mapped SQLAlchemy class")

    logger.debug(f"Resolved message model {dotted_path}")
    return model


def get_conversation_repository(db: AsyncSession, settings: Settings | None = None) -> ConversationRepository:
    """
    Build a ConversationRepository bound to the configured message model and options
    (MESSAGE_MODEL, MESSAGE_DATE_FORMAT, SEEN_SCOPE, CONVERSATION_PAGE_SIZE).
    """
    settings = settings or get_settings()
    return ConversationRepository(
        db,
        model=resolve_model(settings.MESSAGE_MODEL),
        date_format=settings.MESSAGE_DATE_FORMAT,
        seen_scope=settings.SEEN_SCOPE,
        page_size=settings.CONVERSATION_PAGE_SIZE,
    )
