"""Telegram Bot API client and wire types."""

from .api_models import BotUser, Chat, Document, Message, PhotoSize, Update, User
from .client import TelegramClient, TelegramRetryAfter

__all__ = [
    "BotUser",
    "Chat",
    "Document",
    "Message",
    "PhotoSize",
    "TelegramClient",
    "TelegramRetryAfter",
    "Update",
    "User",
]
