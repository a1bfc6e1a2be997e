import pytest

from topicbot.config import ConfigError, Settings
from topicbot.loop import Backoff, poll_updates, run_main_loop, verify_identity
from topicbot.telegram.api_models import BotUser
from topicbot.telegram.client import TelegramRetryAfter
from tests.telegram_fakes import FakeBot, StopPolling, raw_update


class _Sleeps:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def test_backoff_doubles_and_caps() -> None:
    backoff = Backoff(initial_s=1.0, max_s=5.0)
    assert [backoff.next_delay() for _ in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]
    backoff.reset()
    assert backoff.next_delay() == 1.0


@pytest.mark.anyio
async def test_cursor_advances_past_each_update() -> None:
    bot = FakeBot([[raw_update(5), raw_update(6)], [raw_update(9)]])
    seen: list[int] = []
    with pytest.raises(StopPolling):
        async for update in poll_updates(bot, sleep=_Sleeps()):
            seen.append(update.update_id)
    assert seen == [5, 6, 9]
    assert bot.offsets == [None, 7, 10]


@pytest.mark.anyio
async def test_cursor_never_decreases() -> None:
    bot = FakeBot([[raw_update(8), raw_update(3)], []])
    with pytest.raises(StopPolling):
        async for _ in poll_updates(bot, offset=2, sleep=_Sleeps()):
            pass
    assert bot.offsets == [2, 9, 9]


@pytest.mark.anyio
async def test_failed_fetch_keeps_cursor_and_backs_off() -> None:
    sleeps = _Sleeps()
    bot = FakeBot([None, None, [raw_update(1)], None])
    with pytest.raises(StopPolling):
        async for _ in poll_updates(bot, offset=4, sleep=sleeps):
            pass
    assert bot.offsets == [4, 4, 4, 4, 4]
    assert sleeps.delays == [1.0, 2.0, 1.0]


@pytest.mark.anyio
async def test_rate_limit_waits_advised_delay() -> None:
    sleeps = _Sleeps()
    bot = FakeBot([TelegramRetryAfter(3)])
    with pytest.raises(StopPolling):
        async for _ in poll_updates(bot, sleep=sleeps):
            pass
    assert sleeps.delays == [3.0]
    assert bot.offsets == [None, None]


@pytest.mark.anyio
async def test_undecodable_update_is_skipped() -> None:
    bad = {"update_id": 9, "message": {"message_id": "nope"}}
    bot = FakeBot([[bad, raw_update(10)]])
    seen: list[int] = []
    with pytest.raises(StopPolling):
        async for update in poll_updates(bot, sleep=_Sleeps()):
            seen.append(update.update_id)
    assert seen == [10]
    assert bot.offsets == [None, 11]


@pytest.mark.anyio
async def test_verify_identity() -> None:
    me = BotUser(id=42, is_bot=True, first_name="Topic", username="topic_bot")
    assert await verify_identity(FakeBot(me=me)) is me
    with pytest.raises(ConfigError, match="getMe"):
        await verify_identity(FakeBot())


@pytest.mark.anyio
async def test_start_command_end_to_end(settings: Settings) -> None:
    bot = FakeBot([[raw_update(5, text="/start", first_name="Ann")]])
    with pytest.raises(StopPolling):
        await run_main_loop(bot, settings, sleep=_Sleeps())
    assert len(bot.sent) == 1
    [call] = bot.sent
    assert call["chat_id"] == 1
    assert "Ann" in call["text"]
    assert call["message_thread_id"] is None
    assert call["parse_mode"] == "HTML"
    assert bot.offsets == [None, 6]


@pytest.mark.anyio
async def test_start_without_message_or_sender_ids(settings: Settings) -> None:
    update = {
        "update_id": 5,
        "message": {
            "chat": {"id": 1, "type": "private"},
            "text": "/start",
            "from": {"first_name": "Ann"},
        },
    }
    bot = FakeBot([[update]])
    with pytest.raises(StopPolling):
        await run_main_loop(bot, settings, sleep=_Sleeps())
    assert len(bot.sent) == 1
    [call] = bot.sent
    assert call["chat_id"] == 1
    assert "Ann" in call["text"]
    assert call["message_thread_id"] is None
    assert bot.offsets == [None, 6]


@pytest.mark.anyio
async def test_commands_for_other_bots_are_skipped(settings: Settings) -> None:
    bot = FakeBot(
        [
            [
                raw_update(1, text="/start@other_bot", chat_id=-5, chat_type="group"),
                raw_update(2, text="/start@topic_bot", chat_id=-5, chat_type="group"),
            ]
        ]
    )
    with pytest.raises(StopPolling):
        await run_main_loop(bot, settings, bot_username="topic_bot", sleep=_Sleeps())
    assert len(bot.sent) == 1
    assert "Welcome" in bot.sent[0]["text"]
    assert bot.offsets == [None, 3]
