import pytest

from messenger.config.settings import Settings
from messenger.core.dependencies import get_conversation_repository, resolve_model
from messenger.models.message import Message
from messenger.repositories.conversation_repository import ConversationRepository


class TestResolveModel:

    def test_resolves_mapped_class(self):
        assert resolve_model("messenger.models.message.Message") is Message

    @pytest.mark.parametrize(
        "path",
        [
            "Message",                                  # no module part
            "messenger.models.nowhere.Message",         # module does not exist
            "messenger.models.message.Missing",         # attribute does not exist
            "messenger.config.settings.Settings",       # not a mapped class
        ],
    )
    def test_rejects_bad_paths(self, path):
        with pytest.raises(ValueError):
            resolve_model(path)


@pytest.mark.asyncio
async def test_get_conversation_repository_uses_settings(db_session):
    settings = Settings(
        _env_file=None,
        MESSAGE_DATE_FORMAT="%d/%m/%Y",
        SEEN_SCOPE="incoming",
        CONVERSATION_PAGE_SIZE=25,
    )

    repo = get_conversation_repository(db_session, settings)

    assert isinstance(repo, ConversationRepository)
    assert repo.db is db_session
    assert repo.model is Message
    assert repo.date_format == "%d/%m/%Y"
    assert repo.seen_scope == "incoming"
    assert repo.page_size == 25
