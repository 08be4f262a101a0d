from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from pathlib import Path
from typing import Literal
from functools import lru_cache
from ..validators.config_validators import to_uppercase, to_lowercase


class Settings(BaseSettings):
    """
    Application settings loaded from environment.
    """

    # Environment
    ENV: Literal["development", "testing", "staging", "production"] = "development"

    # Database configuration (Postgres is used only when host and database are both set)
    POSTGRES_DRIVER: str = "asyncpg"
    POSTGRES_USERNAME: str | None = None
    POSTGRES_PASSWORD: str | None = None
    POSTGRES_HOST: str | None = None
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str | None = None

    # Test database configuration
    TEST_POSTGRES_DB: str | None = None
    TESTING: bool = False

    # Local fallback database
    SQLITE_PATH: str = "./messenger.db"

    # SQLAlchemy
    SQLALCHEMY_ECHO: bool = False

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"
    LOG_TO_STDOUT: bool = True
    LOG_DIR: Path = Path("/var/log/messenger")
    LOG_MAX_BYTES: int = 10_000_000  # 10 MB
    LOG_BACKUP_COUNT: int = 5
    ENABLE_SQL_LOGGING: bool = False

    # Conversations
    MESSAGE_MODEL: str = "messenger.models.message.Message"
    CONVERSATION_PAGE_SIZE: int = 10
    MESSAGE_DATE_FORMAT: str = "%Y-%m-%d"
    SEEN_SCOPE: Literal["conversation", "incoming"] = "conversation"

    # --- Derived settings ---
    @property
    def DATABASE_URL(self) -> str:
        """
        Return the database URL for the current environment.

        - Postgres settings complete and `TESTING=True` with `TEST_POSTGRES_DB` set:
          the test database is used so tests never touch the main one.
        - Postgres settings complete: the regular `POSTGRES_DB`.
        - Otherwise: a local SQLite file through the aiosqlite driver.

        Returns:
            str: The constructed database connection URL.
        """
        if not (self.POSTGRES_HOST and self.POSTGRES_DB):
            return f"sqlite+aiosqlite:///{self.SQLITE_PATH}"

        database = self.POSTGRES_DB
        if self.TESTING and self.TEST_POSTGRES_DB:
            database = self.TEST_POSTGRES_DB

        return (
            f"postgresql+{self.POSTGRES_DRIVER}://"
            f"{self.POSTGRES_USERNAME}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/"
            f"{database}"
        )

    # --- Validators ---
    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str | None) -> str | None:
        """
        Normalize LOG_LEVEL to uppercase before Literal validation runs,
        so `LOG_LEVEL=debug` in the environment is accepted.
        """
        return to_uppercase(v)

    @field_validator("LOG_FORMAT", "SEEN_SCOPE", mode="before")
    @classmethod
    def normalize_lowercase(cls, v: str | None) -> str | None:
        return to_lowercase(v)

    @field_validator("CONVERSATION_PAGE_SIZE")
    @classmethod
    def check_page_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("CONVERSATION_PAGE_SIZE must be a positive integer")
        return v

    # --- ConfigDict settings ---
    model_config = SettingsConfigDict(
        # .env next to the package root (src/messenger/.env)
        env_file=str(Path(__file__).parent.parent / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Settings come only from the environment, so one cached instance is enough.
@lru_cache()
def get_settings() -> Settings:
    return Settings()
