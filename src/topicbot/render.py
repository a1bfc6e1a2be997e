"""HTML reply templates.

Every value that originates from a user (names, message text, captions,
chat titles, file names) goes through :func:`html.escape` before it is
interpolated, since replies are sent with ``parse_mode=HTML``.
"""

from __future__ import annotations

from html import escape

from .files import FileAnalysis
from .telegram.api_models import Chat, Message

NO_CAPTION = "<i>no caption</i>"
UNTITLED = "Untitled"

CHAT_TYPE_LABELS = {
    "private": "💬 Private chat",
    "group": "👥 Group",
    "supergroup": "🌟 Supergroup",
    "channel": "📢 Channel",
}
UNKNOWN_CHAT_TYPE = "Unknown"


def _esc(value: str | None) -> str:
    return escape(value or "")


def _first_name(message: Message) -> str:
    return _esc(message.from_.first_name if message.from_ is not None else None)


def _username(message: Message) -> str:
    return _esc(message.from_.username if message.from_ is not None else None)


def _user_id(message: Message) -> int:
    return message.from_.id if message.from_ is not None else 0


def thread_id_of(message: Message) -> int:
    return message.message_thread_id or 0


def caption_text(caption: str | None) -> str:
    if not caption:
        return NO_CAPTION
    return escape(caption)


def chat_title(chat: Chat) -> str:
    if chat.title:
        return escape(chat.title)
    return UNTITLED


def chat_type_label(chat_type: str) -> str:
    return CHAT_TYPE_LABELS.get(chat_type, UNKNOWN_CHAT_TYPE)


def topic_status(thread_id: int | None) -> str:
    if thread_id:
        return f"✅ Yes (ID: {thread_id})"
    return "❌ No (main chat)"


def render_start(message: Message, *, max_log_length: int) -> str:
    name = _first_name(message)
    return (
        f"🎉 <b>Welcome, {name}!</b>\n"
        "\n"
        "🤖 <b>I am a Telegram bot that answers right where you wrote to me</b>\n"
        "\n"
        "✨ <b>Commands:</b>\n"
        "• /start - show this message\n"
        "• /help - get help\n"
        "• /features - what the bot can do\n"
        "• /info - information about this chat\n"
        "\n"
        "🛠️ <b>What I can do:</b>\n"
        "✅ Reply inside the same topic\n"
        "✅ Work in groups and private chats\n"
        "✅ Inspect photos and documents\n"
        "✅ Detect JPG images\n"
        "✅ Show detailed message information\n"
        "✅ Configurable API log output\n"
        "\n"
        "⚙️ <b>Configuration:</b>\n"
        f"• Max API log length: <b>{max_log_length} characters</b>\n"
        "\n"
        "📊 <b>About this message:</b>\n"
        f"• 👤 Your name: <b>{name}</b>\n"
        f"• 🆔 Your ID: <code>{_user_id(message)}</code>\n"
        f"• 💬 Chat ID: <code>{message.chat.id}</code>\n"
        f"• 🏷️ Topic ID: <code>{thread_id_of(message)}</code>"
    )


def render_help(*, max_log_length: int) -> str:
    return (
        "🆘 <b>Bot help</b>\n"
        "\n"
        "📚 <b>Available commands:</b>\n"
        "• /start - start working with the bot\n"
        "• /help - show this help\n"
        "• /features - what the bot can do\n"
        "• /info - information about the current chat\n"
        "\n"
        "⚙️ <b>Settings:</b>\n"
        f"• Max API log length: <b>{max_log_length} characters</b>"
    )


def render_features(*, max_log_length: int) -> str:
    return (
        "🚀 <b>Bot features</b>\n"
        "\n"
        "🔧 <b>Technical:</b>\n"
        "• <b>Topic-aware replies</b> - answers land in the topic they came from\n"
        "• <b>File checks</b> - photos and documents are checked for JPG\n"
        f"• <b>Configurable API output</b> - max log length: <b>{max_log_length} characters</b>\n"
        "\n"
        "⚙️ <b>Configuration:</b>\n"
        f"• MAX_LENGTH_MESSEGE_API - max API log length (current value: {max_log_length})"
    )


def render_info(message: Message, *, max_log_length: int) -> str:
    chat = message.chat
    return (
        "ℹ️ <b>Chat information</b>\n"
        "\n"
        "📋 <b>General:</b>\n"
        f"• 💬 Chat type: <b>{chat_type_label(chat.type)}</b>\n"
        f"• 🏷️ Title: <b>{chat_title(chat)}</b>\n"
        f"• 🆔 Chat ID: <code>{chat.id}</code>\n"
        f"• 🏷️ Topic: {topic_status(message.message_thread_id)}\n"
        "\n"
        "🔧 <b>Technical:</b>\n"
        f"• Max API log length: <b>{max_log_length} characters</b>"
    )


def render_echo(message: Message, *, max_log_length: int) -> str:
    return (
        "✅ <b>Message received!</b>\n"
        "\n"
        "📝 <b>Your message:</b>\n"
        f"<code>{_esc(message.text)}</code>\n"
        "\n"
        f"👤 <b>From:</b> <b>{_first_name(message)}</b> (@{_username(message)})\n"
        "\n"
        "📊 <b>Technical:</b>\n"
        f"• 💬 Chat ID: <code>{message.chat.id}</code>\n"
        f"• 🏷️ Topic ID: <code>{thread_id_of(message)}</code>\n"
        f"• 📏 Max API length: <b>{max_log_length} characters</b>\n"
        "\n"
        "🎯 <i>This reply was sent to the same topic!</i>"
    )


def render_photo(message: Message, analysis: FileAnalysis) -> str:
    return (
        "📸 <b>Photo received!</b>\n"
        "\n"
        "🖼️ <b>Photo details:</b>\n"
        f"• 📏 Dimensions: <b>{analysis.dimensions}</b>\n"
        f"• 💾 Size: <b>{analysis.size_kb}</b>\n"
        f"• 🏷️ Type: <b>{analysis.file_type}</b>\n"
        "\n"
        f"📝 <b>Caption:</b> {caption_text(message.caption)}\n"
        "\n"
        "🎯 <i>Photo processed successfully!</i>"
    )


def render_document(message: Message, analysis: FileAnalysis) -> str:
    document = message.document
    file_name = document.file_name if document is not None else None
    mime_type = document.mime_type if document is not None else None
    if analysis.is_jpeg:
        status = "✅ <b>This is a JPG image!</b>"
    else:
        status = "❌ <b>This is not a JPG image</b>"
    return (
        "📎 <b>Document received!</b>\n"
        "\n"
        "📋 <b>File details:</b>\n"
        f"• 📝 Name: <code>{_esc(file_name)}</code>\n"
        f"• 🏷️ MIME type: <b>{_esc(mime_type)}</b>\n"
        f"• 💾 Size: <b>{analysis.size_kb}</b>\n"
        "\n"
        f"📝 <b>Caption:</b> {caption_text(message.caption)}\n"
        "\n"
        f"{status}\n"
        "\n"
        "🎯 <i>Document checked for JPG format!</i>"
    )


def render_other() -> str:
    return (
        "🔮 <b>Received a message of another type!</b>\n"
        "\n"
        "💡 <b>What I can check:</b>\n"
        "• 📸 Photos (always reported as JPG)\n"
        "• 📎 Documents (checked for JPG format)\n"
        "• 💬 Text messages"
    )
