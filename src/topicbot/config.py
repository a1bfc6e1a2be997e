from __future__ import annotations

from pydantic import AliasChoices, Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_BOT_TOKEN = "TELEGRAM_BOT_TOKEN"
ENV_MAX_LOG_LENGTH = "MAX_LENGTH_MESSEGE_API"

DEFAULT_MAX_LOG_LENGTH = 200
DEFAULT_POLL_TIMEOUT_S = 60


class ConfigError(RuntimeError):
    pass


class Settings(BaseSettings):
    """Runtime settings read from the environment and an optional ``.env``."""

    bot_token: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices(ENV_BOT_TOKEN, "bot_token"),
    )
    debug: bool = False
    # the misspelled name is what existing deployments export
    max_log_length: int = Field(
        default=DEFAULT_MAX_LOG_LENGTH,
        gt=0,
        validation_alias=AliasChoices(
            ENV_MAX_LOG_LENGTH, "MAX_LENGTH_MESSAGE_API", "max_log_length"
        ),
    )
    poll_timeout_s: int = Field(
        default=DEFAULT_POLL_TIMEOUT_S,
        ge=0,
        validation_alias=AliasChoices("POLL_TIMEOUT", "poll_timeout_s"),
    )
    thread_fallback: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def token(self) -> str:
        return self.bot_token.get_secret_value().strip()


def load_settings(**overrides: object) -> Settings:
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc


def require_token(settings: Settings) -> str:
    token = settings.token
    if not token:
        raise ConfigError(
            f"Missing bot token. Set the {ENV_BOT_TOKEN} environment variable "
            "or add it to .env."
        )
    return token
