import pytest
from pydantic import ValidationError

from messenger.config.settings import Settings


def make_settings(**overrides) -> Settings:
    """Settings built only from the given values, ignoring any .env file."""
    return Settings(_env_file=None, **overrides)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Drop variables the CI environment may set so defaults are predictable."""
    for name in ("POSTGRES_HOST", "POSTGRES_DB", "TEST_POSTGRES_DB", "TESTING", "LOG_LEVEL", "SEEN_SCOPE"):
        monkeypatch.delenv(name, raising=False)


class TestDatabaseUrl:

    def test_sqlite_when_postgres_incomplete(self):
        settings = make_settings(SQLITE_PATH="./chat.db", POSTGRES_HOST="db")
        assert settings.DATABASE_URL == "sqlite+aiosqlite:///./chat.db"

    def test_postgres_url(self):
        settings = make_settings(
            POSTGRES_USERNAME="app",
            POSTGRES_PASSWORD="pw",
            POSTGRES_HOST="db",
            POSTGRES_PORT=6543,
            POSTGRES_DB="chat",
        )
        assert settings.DATABASE_URL == "postgresql+asyncpg://app:pw@db:6543/chat"

    def test_testing_switches_to_test_database(self):
        settings = make_settings(
            POSTGRES_USERNAME="app",
            POSTGRES_PASSWORD="pw",
            POSTGRES_HOST="db",
            POSTGRES_DB="chat",
            TEST_POSTGRES_DB="chat_test",
            TESTING=True,
        )
        assert settings.DATABASE_URL.endswith("/chat_test")

        # TEST_POSTGRES_DB alone is not enough
        settings = make_settings(POSTGRES_HOST="db", POSTGRES_DB="chat", TEST_POSTGRES_DB="chat_test")
        assert settings.DATABASE_URL.endswith("/chat")


class TestNormalization:

    def test_log_level_uppercased_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", " debug ")
        assert make_settings().LOG_LEVEL == "DEBUG"

    def test_seen_scope_lowercased(self):
        assert make_settings(SEEN_SCOPE="Incoming").SEEN_SCOPE == "incoming"

    def test_unknown_seen_scope_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(SEEN_SCOPE="all")

    @pytest.mark.parametrize("size", [0, -5])
    def test_page_size_must_be_positive(self, size):
        with pytest.raises(ValidationError) as exc_info:
            make_settings(CONVERSATION_PAGE_SIZE=size)
        assert "CONVERSATION_PAGE_SIZE" in str(exc_info.value)

    def test_conversation_defaults(self):
        settings = make_settings()
        assert settings.MESSAGE_MODEL == "messenger.models.message.Message"
        assert settings.MESSAGE_DATE_FORMAT == "%Y-%m-%d"
        assert settings.SEEN_SCOPE == "conversation"
        assert settings.CONVERSATION_PAGE_SIZE == 10
