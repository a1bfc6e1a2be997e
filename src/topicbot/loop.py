from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field

import anyio

from .config import ConfigError, Settings
from .handlers import ReplyOptions, handle_update
from .logging import get_logger
from .telegram.api_models import BotUser, Update, decode_update
from .telegram.client import BotClient, TelegramRetryAfter

logger = get_logger(__name__)

__all__ = ["Backoff", "poll_updates", "run_main_loop", "verify_identity"]

ALLOWED_UPDATES = ["message"]


@dataclass(slots=True)
class Backoff:
    """Bounded exponential delay between failed fetches."""

    initial_s: float = 1.0
    max_s: float = 30.0
    factor: float = 2.0
    _current: float = field(default=0.0, init=False, repr=False)

    def next_delay(self) -> float:
        if self._current <= 0:
            self._current = self.initial_s
        else:
            self._current = min(self._current * self.factor, self.max_s)
        return self._current

    def reset(self) -> None:
        self._current = 0.0


async def poll_updates(
    bot: BotClient,
    *,
    offset: int | None = None,
    timeout_s: int = 60,
    backoff: Backoff | None = None,
    sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
) -> AsyncIterator[Update]:
    """Yield updates forever, advancing the cursor once each one is handled."""
    backoff = backoff or Backoff()
    while True:
        try:
            updates = await bot.get_updates(
                offset=offset,
                timeout_s=timeout_s,
                allowed_updates=ALLOWED_UPDATES,
            )
        except TelegramRetryAfter as exc:
            logger.info("loop.get_updates.rate_limited", retry_after=exc.retry_after)
            await sleep(exc.retry_after)
            continue
        if updates is None:
            delay = backoff.next_delay()
            logger.warning("loop.get_updates.failed", offset=offset, retry_in=delay)
            await sleep(delay)
            continue
        backoff.reset()
        for raw in updates:
            update = decode_update(raw) if isinstance(raw, dict) else None
            if update is None:
                logger.warning("loop.update.undecodable", update=raw)
                update_id = raw.get("update_id") if isinstance(raw, dict) else None
                if isinstance(update_id, int):
                    offset = max(offset or 0, update_id + 1)
                continue
            yield update
            offset = max(offset or 0, update.update_id + 1)


async def verify_identity(bot: BotClient) -> BotUser:
    me = await bot.get_me()
    if me is None:
        raise ConfigError("Failed to verify the bot token with getMe.")
    logger.info("startup.identity", bot_id=me.id, username=me.username)
    return me


async def run_main_loop(
    bot: BotClient,
    settings: Settings,
    *,
    bot_username: str | None = None,
    sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
) -> None:
    options = ReplyOptions.from_settings(settings, bot_username=bot_username)
    logger.info(
        "loop.started",
        max_log_length=settings.max_log_length,
        poll_timeout_s=settings.poll_timeout_s,
    )
    async for update in poll_updates(
        bot, timeout_s=settings.poll_timeout_s, sleep=sleep
    ):
        await handle_update(bot, update, options)
