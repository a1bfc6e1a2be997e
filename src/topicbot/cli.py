from __future__ import annotations

from functools import partial

import anyio
import typer

from . import __version__
from .config import ConfigError, Settings, load_settings, require_token
from .logging import get_logger, setup_logging
from .loop import run_main_loop, verify_identity
from .telegram.api_models import BotUser
from .telegram.client import TIMEOUT_MARGIN_S, TelegramClient

logger = get_logger(__name__)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


def _exit_config_error(exc: ConfigError) -> typer.Exit:
    typer.echo(f"error: {exc}", err=True)
    return typer.Exit(code=1)


def _load(debug: bool | None) -> Settings:
    overrides: dict[str, object] = {}
    if debug is not None:
        overrides["debug"] = debug
    settings = load_settings(**overrides)
    require_token(settings)
    return settings


def build_client(settings: Settings) -> TelegramClient:
    return TelegramClient(
        settings.token,
        timeout_s=settings.poll_timeout_s + TIMEOUT_MARGIN_S,
        max_log_length=settings.max_log_length,
    )


async def _whoami(settings: Settings) -> BotUser:
    bot = build_client(settings)
    try:
        return await verify_identity(bot)
    finally:
        await bot.close()


async def _serve(settings: Settings) -> None:
    bot = build_client(settings)
    try:
        me = await verify_identity(bot)
        logger.info("startup.ready", username=me.username)
        await run_main_loop(bot, settings, bot_username=me.username)
    finally:
        await bot.close()


def run(debug: bool | None) -> None:
    try:
        settings = _load(debug)
    except ConfigError as e:
        raise _exit_config_error(e) from e
    setup_logging(debug=settings.debug)
    logger.info("startup.config", debug=settings.debug)
    try:
        anyio.run(partial(_serve, settings))
    except ConfigError as e:
        raise _exit_config_error(e) from e
    except KeyboardInterrupt:
        logger.info("shutdown.interrupted")
        raise typer.Exit(code=130) from None


def whoami(
    debug: bool | None = typer.Option(
        None,
        "--debug/--no-debug",
        help="Log Telegram requests and responses.",
    ),
) -> None:
    """Check the bot token and print the bot identity."""
    try:
        settings = _load(debug)
        setup_logging(debug=settings.debug)
        me = anyio.run(partial(_whoami, settings))
    except ConfigError as e:
        raise _exit_config_error(e) from e
    typer.echo(f"@{me.username or me.first_name} ({me.id})")


def app_main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        help="Show the version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    debug: bool | None = typer.Option(
        None,
        "--debug/--no-debug",
        help="Log Telegram requests and responses (overrides DEBUG).",
    ),
) -> None:
    """Reply to Telegram messages in the topic they were sent from."""
    if ctx.invoked_subcommand is None:
        run(debug)
        raise typer.Exit()


def create_app() -> typer.Typer:
    app = typer.Typer(
        add_completion=False,
        invoke_without_command=True,
        help="Topic-aware Telegram reply bot.",
    )
    app.command(name="whoami")(whoami)
    app.callback()(app_main)
    return app


def main() -> None:
    app = create_app()
    app()


if __name__ == "__main__":
    main()
