from __future__ import annotations

import re
from typing import Any, Protocol

import httpx
import msgspec

from ..logging import get_logger, truncate_for_log
from .api_models import BotUser

logger = get_logger(__name__)

PARSE_MODE_HTML = "HTML"
_DEFAULT_MAX_LOG_LENGTH = 200
TIMEOUT_MARGIN_S = 30.0


class TelegramRetryAfter(Exception):
    def __init__(self, retry_after: float, description: str | None = None) -> None:
        super().__init__(description or f"retry after {retry_after}")
        self.retry_after = float(retry_after)
        self.description = description


class BotClient(Protocol):
    async def close(self) -> None: ...

    async def get_updates(
        self,
        offset: int | None,
        timeout_s: int = 60,
        allowed_updates: list[str] | None = None,
    ) -> list[dict] | None: ...

    async def send_message(
        self,
        chat_id: int,
        text: str,
        message_thread_id: int | None = None,
        parse_mode: str | None = None,
    ) -> dict | None: ...

    async def get_me(self) -> BotUser | None: ...


_RETRY_AFTER_RE = re.compile(r"retry after (\d+)", re.IGNORECASE)


def retry_after_from_payload(payload: dict[str, Any]) -> float | None:
    params = payload.get("parameters")
    if isinstance(params, dict):
        retry_after = params.get("retry_after")
        if isinstance(retry_after, (int, float)):
            return float(retry_after)
    description = payload.get("description")
    if isinstance(description, str):
        return _retry_after_from_description(description)
    return None


def _retry_after_from_description(description: str) -> float | None:
    match = _RETRY_AFTER_RE.search(description)
    if not match:
        return None
    return float(match.group(1))


def _retry_after_from_response(resp: httpx.Response) -> float | None:
    try:
        payload = resp.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        retry_after = retry_after_from_payload(payload)
        if retry_after is not None:
            return retry_after
    return _retry_after_from_description(resp.text)


class TelegramClient:
    def __init__(
        self,
        token: str,
        timeout_s: float = 60 + TIMEOUT_MARGIN_S,
        client: httpx.AsyncClient | None = None,
        *,
        max_log_length: int = _DEFAULT_MAX_LOG_LENGTH,
    ) -> None:
        if not token:
            raise ValueError("Telegram token is empty")
        self._base = f"https://api.telegram.org/bot{token}"
        self._client = client or httpx.AsyncClient(timeout=timeout_s)
        self._owns_client = client is None
        self._max_log_length = max_log_length

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _post(self, method: str, json_data: dict[str, Any]) -> Any | None:
        logger.debug("telegram.request", method=method, payload=json_data)
        try:
            resp = await self._client.post(f"{self._base}/{method}", json=json_data)
        except httpx.HTTPError as e:
            logger.error(
                "telegram.network_error",
                method=method,
                error=str(e),
                error_type=e.__class__.__name__,
            )
            return None

        body = resp.text
        if body:
            logger.debug(
                "telegram.response",
                method=method,
                status=resp.status_code,
                length=len(body),
                max_length=self._max_log_length,
                body=truncate_for_log(body, self._max_log_length),
            )

        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            if resp.status_code == 429:
                retry_after = _retry_after_from_response(resp)
                if retry_after is not None:
                    logger.info(
                        "telegram.rate_limited",
                        method=method,
                        status=resp.status_code,
                        retry_after=retry_after,
                    )
                    raise TelegramRetryAfter(retry_after) from e
            logger.error(
                "telegram.http_error",
                method=method,
                status=resp.status_code,
                body=truncate_for_log(body, self._max_log_length),
            )
            return None

        try:
            payload = resp.json()
        except ValueError as e:
            logger.error(
                "telegram.bad_response",
                method=method,
                status=resp.status_code,
                error=str(e),
                error_type=e.__class__.__name__,
                body=truncate_for_log(body, self._max_log_length),
            )
            return None

        return self._parse_envelope(method=method, payload=payload)

    def _parse_envelope(self, *, method: str, payload: Any) -> Any | None:
        if not isinstance(payload, dict):
            logger.error("telegram.invalid_payload", method=method, payload=payload)
            return None

        if not payload.get("ok"):
            retry_after = retry_after_from_payload(payload)
            if retry_after is not None and payload.get("error_code") == 429:
                logger.info(
                    "telegram.rate_limited",
                    method=method,
                    retry_after=retry_after,
                )
                raise TelegramRetryAfter(retry_after)
            logger.error(
                "telegram.api_error",
                method=method,
                error_code=payload.get("error_code"),
                description=payload.get("description"),
            )
            return None

        return payload.get("result")

    async def get_updates(
        self,
        offset: int | None,
        timeout_s: int = 60,
        allowed_updates: list[str] | None = None,
    ) -> list[dict] | None:
        params: dict[str, Any] = {"timeout": timeout_s}
        if offset is not None:
            params["offset"] = offset
        if allowed_updates is not None:
            params["allowed_updates"] = allowed_updates
        result = await self._post("getUpdates", params)
        if result is None:
            return None
        if not isinstance(result, list):
            logger.error("telegram.invalid_result", method="getUpdates", result=result)
            return None
        return result

    async def send_message(
        self,
        chat_id: int,
        text: str,
        message_thread_id: int | None = None,
        parse_mode: str | None = None,
    ) -> dict | None:
        params: dict[str, Any] = {
            "chat_id": chat_id,
            "text": text,
        }
        # thread 0 is the main chat; Telegram expects the field to be absent
        if message_thread_id:
            params["message_thread_id"] = message_thread_id
        if parse_mode is not None:
            params["parse_mode"] = parse_mode
        result = await self._post("sendMessage", params)
        return result if isinstance(result, dict) else None

    async def get_me(self) -> BotUser | None:
        result = await self._post("getMe", {})
        if not isinstance(result, dict):
            return None
        try:
            return msgspec.convert(result, type=BotUser)
        except msgspec.ValidationError as e:
            logger.error("telegram.bad_identity", error=str(e), result=result)
            return None
