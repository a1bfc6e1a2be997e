import pytest
from typer.testing import CliRunner

from topicbot import __version__, cli
from topicbot.config import ConfigError, Settings
from topicbot.telegram.api_models import BotUser
from topicbot.telegram.client import TIMEOUT_MARGIN_S


def test_version() -> None:
    result = CliRunner().invoke(cli.create_app(), ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_missing_token_exits(clean_env: None) -> None:
    result = CliRunner().invoke(cli.create_app(), [])
    assert result.exit_code == 1
    assert "Missing bot token" in result.output


def test_whoami_prints_identity(
    clean_env: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")

    async def _fake_whoami(settings: Settings) -> BotUser:
        assert settings.token == "123:abc"
        return BotUser(id=42, is_bot=True, first_name="Topic", username="topic_bot")

    monkeypatch.setattr(cli, "_whoami", _fake_whoami)
    result = CliRunner().invoke(cli.create_app(), ["whoami"])
    assert result.exit_code == 0
    assert "@topic_bot (42)" in result.output


def test_failed_identity_check_exits(
    clean_env: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")

    async def _fake_serve(settings: Settings) -> None:
        raise ConfigError("Failed to verify the bot token with getMe.")

    monkeypatch.setattr(cli, "_serve", _fake_serve)
    result = CliRunner().invoke(cli.create_app(), [])
    assert result.exit_code == 1
    assert "getMe" in result.output


def test_debug_flag_overrides_environment(
    clean_env: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")
    seen: list[bool] = []

    async def _fake_serve(settings: Settings) -> None:
        seen.append(settings.debug)

    monkeypatch.setattr(cli, "_serve", _fake_serve)
    result = CliRunner().invoke(cli.create_app(), ["--debug"])
    assert result.exit_code == 0
    assert seen == [True]


def test_build_client_uses_settings(clean_env: None) -> None:
    settings = Settings(
        bot_token="123:abc", poll_timeout_s=10, max_log_length=50, _env_file=None
    )
    client = cli.build_client(settings)
    assert client._max_log_length == 50


def test_client_timeout_covers_long_poll(clean_env: None) -> None:
    settings = Settings(bot_token="123:abc", poll_timeout_s=10, _env_file=None)
    client = cli.build_client(settings)
    assert client._client.timeout.read == 10 + TIMEOUT_MARGIN_S
