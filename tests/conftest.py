from collections.abc import Iterator

import pytest

from topicbot.config import Settings
from tests.telegram_fakes import FakeBot

_ENV_VARS = (
    "TELEGRAM_BOT_TOKEN",
    "BOT_TOKEN",
    "DEBUG",
    "MAX_LENGTH_MESSEGE_API",
    "MAX_LENGTH_MESSAGE_API",
    "MAX_LOG_LENGTH",
    "POLL_TIMEOUT",
    "POLL_TIMEOUT_S",
    "THREAD_FALLBACK",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterator[None]:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield


@pytest.fixture
def fake_bot() -> FakeBot:
    return FakeBot()


@pytest.fixture
def settings(clean_env: None) -> Settings:
    return Settings(bot_token="123:abc", _env_file=None)
