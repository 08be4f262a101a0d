from .base import Base
from .session import get_engine, get_sessionmaker, get_async_session, enable_sqlite_savepoints

__all__ = ["Base", "get_engine", "get_sessionmaker", "get_async_session", "enable_sqlite_savepoints"]
