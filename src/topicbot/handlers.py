from __future__ import annotations

import enum
from dataclasses import dataclass

from .config import Settings
from .files import analyze_document, analyze_photo, largest_photo
from .logging import get_logger
from .render import (
    render_document,
    render_echo,
    render_features,
    render_help,
    render_info,
    render_other,
    render_photo,
    render_start,
)
from .telegram.api_models import Message, Update
from .telegram.client import PARSE_MODE_HTML, BotClient, TelegramRetryAfter

logger = get_logger(__name__)


class Route(enum.Enum):
    PHOTO = "photo"
    DOCUMENT = "document"
    OTHER = "other"
    START = "start"
    HELP = "help"
    FEATURES = "features"
    INFO = "info"
    ECHO = "echo"
    IGNORE = "ignore"


COMMAND_ROUTES: dict[str, Route] = {
    "/start": Route.START,
    "/help": Route.HELP,
    "/features": Route.FEATURES,
    "/info": Route.INFO,
    "/infoMessage": Route.ECHO,
}


@dataclass(frozen=True, slots=True)
class ReplyOptions:
    max_log_length: int
    thread_fallback: bool = False
    bot_username: str | None = None

    @classmethod
    def from_settings(
        cls, settings: Settings, *, bot_username: str | None = None
    ) -> ReplyOptions:
        return cls(
            max_log_length=settings.max_log_length,
            thread_fallback=settings.thread_fallback,
            bot_username=bot_username,
        )


def parse_command(text: str) -> tuple[str, str | None] | None:
    """Split the leading command token of ``text`` into command and mention.

    ``/start@topic_bot now`` gives ``("/start", "topic_bot")``; a bare
    ``/start`` has no mention.
    """
    stripped = text.strip()
    if not stripped.startswith("/"):
        return None
    token = stripped.split(maxsplit=1)[0]
    command, _, mention = token.partition("@")
    return command, mention or None


def is_addressed_to_bot(mention: str | None, bot_username: str | None) -> bool:
    if mention is None or bot_username is None:
        return True
    return mention.lower() == bot_username.lower()


def classify(message: Message, *, bot_username: str | None = None) -> Route:
    # photos may carry a caption that looks like a command, so media wins
    if message.photo:
        return Route.PHOTO
    if message.document is not None and message.document.file_id:
        return Route.DOCUMENT
    if not message.text:
        return Route.OTHER
    parsed = parse_command(message.text)
    if parsed is None:
        return Route.ECHO
    command, mention = parsed
    # /start@other_bot in a group belongs to another bot
    if not is_addressed_to_bot(mention, bot_username):
        return Route.IGNORE
    return COMMAND_ROUTES.get(command, Route.ECHO)


def render_reply(route: Route, message: Message, *, max_log_length: int) -> str:
    match route:
        case Route.PHOTO:
            photo = largest_photo(message.photo)
            assert photo is not None
            return render_photo(message, analyze_photo(photo))
        case Route.DOCUMENT:
            assert message.document is not None
            return render_document(message, analyze_document(message.document))
        case Route.OTHER:
            return render_other()
        case Route.START:
            return render_start(message, max_log_length=max_log_length)
        case Route.HELP:
            return render_help(max_log_length=max_log_length)
        case Route.FEATURES:
            return render_features(max_log_length=max_log_length)
        case Route.INFO:
            return render_info(message, max_log_length=max_log_length)
        case Route.ECHO:
            return render_echo(message, max_log_length=max_log_length)
        case Route.IGNORE:
            raise ValueError("ignored messages have no reply")


async def _send_once(
    bot: BotClient, chat_id: int, thread_id: int | None, text: str
) -> bool:
    try:
        sent = await bot.send_message(
            chat_id=chat_id,
            text=text,
            message_thread_id=thread_id or None,
            parse_mode=PARSE_MODE_HTML,
        )
    except TelegramRetryAfter as exc:
        logger.warning(
            "send.rate_limited",
            chat_id=chat_id,
            thread_id=thread_id,
            retry_after=exc.retry_after,
        )
        return False
    return sent is not None


async def send_reply(
    bot: BotClient,
    chat_id: int,
    thread_id: int | None,
    text: str,
    *,
    thread_fallback: bool = False,
) -> bool:
    """Send ``text`` as HTML into ``thread_id`` of ``chat_id``.

    A zero or missing ``thread_id`` targets the main chat. With
    ``thread_fallback`` a failed threaded send is repeated once without the
    thread so the reply is not lost when the topic is gone.
    """
    if thread_id:
        logger.info("send.topic", chat_id=chat_id, thread_id=thread_id)
    else:
        logger.info("send.main_chat", chat_id=chat_id)
    if await _send_once(bot, chat_id, thread_id, text):
        logger.info("send.ok", chat_id=chat_id, thread_id=thread_id)
        return True
    logger.error("send.failed", chat_id=chat_id, thread_id=thread_id)
    if not thread_id or not thread_fallback:
        return False
    logger.info("send.fallback", chat_id=chat_id, thread_id=thread_id)
    if await _send_once(bot, chat_id, None, text):
        logger.info("send.ok", chat_id=chat_id, thread_id=None)
        return True
    logger.error("send.fallback_failed", chat_id=chat_id)
    return False


def _log_message(message: Message, route: Route) -> None:
    sender = message.from_
    logger.info(
        "handler.message",
        route=route.value,
        first_name=sender.first_name if sender is not None else None,
        username=sender.username if sender is not None else None,
        chat_id=message.chat.id,
        chat_type=message.chat.type,
        chat_title=message.chat.title,
        thread_id=message.message_thread_id or 0,
        photo_variants=len(message.photo) if message.photo else None,
        file_name=message.document.file_name if message.document else None,
        text=message.text,
    )


async def handle_message(
    bot: BotClient, message: Message, options: ReplyOptions
) -> bool:
    route = classify(message, bot_username=options.bot_username)
    _log_message(message, route)
    if route is Route.IGNORE:
        return False
    text = render_reply(route, message, max_log_length=options.max_log_length)
    return await send_reply(
        bot,
        message.chat.id,
        message.message_thread_id,
        text,
        thread_fallback=options.thread_fallback,
    )


async def handle_update(bot: BotClient, update: Update, options: ReplyOptions) -> bool:
    if update.message is None:
        logger.debug("handler.no_message", update_id=update.update_id)
        return False
    return await handle_message(bot, update.message, options)
