from __future__ import annotations

from typing import Any

import msgspec

__all__ = [
    "BotUser",
    "Chat",
    "Document",
    "Message",
    "PhotoSize",
    "Update",
    "User",
    "decode_update",
]


class User(msgspec.Struct, forbid_unknown_fields=False):
    id: int = 0
    is_bot: bool | None = None
    first_name: str | None = None
    username: str | None = None


class Chat(msgspec.Struct, forbid_unknown_fields=False):
    id: int
    type: str
    title: str | None = None


class PhotoSize(msgspec.Struct, forbid_unknown_fields=False):
    file_id: str = ""
    width: int = 0
    height: int = 0
    file_unique_id: str | None = None
    file_size: int | None = None


class Document(msgspec.Struct, forbid_unknown_fields=False):
    # an empty file_id means the document is unusable
    file_id: str = ""
    file_unique_id: str | None = None
    file_name: str | None = None
    mime_type: str | None = None
    file_size: int | None = None


class Message(msgspec.Struct, forbid_unknown_fields=False):
    chat: Chat
    message_id: int = 0
    from_: User | None = msgspec.field(default=None, name="from")
    text: str | None = None
    message_thread_id: int | None = None
    photo: list[PhotoSize] | None = None
    document: Document | None = None
    caption: str | None = None


class Update(msgspec.Struct, forbid_unknown_fields=False):
    update_id: int
    message: Message | None = None


class BotUser(msgspec.Struct, forbid_unknown_fields=False):
    id: int
    is_bot: bool
    first_name: str
    username: str | None = None


def decode_update(payload: dict[str, Any]) -> Update | None:
    try:
        return msgspec.convert(payload, type=Update)
    except msgspec.ValidationError:
        return None
