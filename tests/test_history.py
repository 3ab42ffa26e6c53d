from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import discord
import pytest

from tldr_bot.history import (
    channel_page_fetcher,
    collect_messages,
    fetch_messages,
    format_messages_for_summary,
    is_text_channel,
    to_message,
)
from tldr_bot.models import Message
from tldr_bot.time_range import parse_time_range
from tests.helpers import NOW, FakeHistory, make_message, make_text_channel


def _newest_first(count):
    return [make_message(i) for i in range(count)]


@pytest.mark.asyncio
async def test_stops_at_cutoff():
    history = FakeHistory(_newest_first(250))
    cutoff = NOW - timedelta(minutes=120, seconds=30)

    messages, capped = await collect_messages(history, cutoff)

    assert len(messages) == 121
    assert capped is False
    assert history.calls == [None, str(1_000_000 - 99)]


@pytest.mark.asyncio
async def test_stops_at_cap():
    history = FakeHistory(_newest_first(1500))
    cutoff = NOW - timedelta(days=30)

    messages, capped = await collect_messages(history, cutoff)

    assert len(messages) == 1000
    assert capped is True
    assert messages[0].id == str(1_000_000 - 999)
    assert messages[-1].id == str(1_000_000)
    assert len(history.calls) == 10


@pytest.mark.asyncio
async def test_reaching_cap_exactly_reports_capped():
    history = FakeHistory(_newest_first(5), page_size=2)

    messages, capped = await collect_messages(history, NOW - timedelta(days=1), max_messages=5)

    assert len(messages) == 5
    assert capped is True


@pytest.mark.asyncio
async def test_stops_when_history_exhausted():
    history = FakeHistory(_newest_first(30))

    messages, capped = await collect_messages(history, NOW - timedelta(days=1))

    assert len(messages) == 30
    assert capped is False
    assert history.calls == [None, str(1_000_000 - 29)]


@pytest.mark.asyncio
async def test_empty_channel():
    history = FakeHistory([])

    messages, capped = await collect_messages(history, NOW - timedelta(days=1))

    assert messages == []
    assert capped is False


@pytest.mark.asyncio
@pytest.mark.parametrize("count,minutes", [(250, 120.5), (1500, 10_000), (30, 10_000)])
async def test_result_is_oldest_first(count, minutes):
    history = FakeHistory(_newest_first(count))

    messages, _ = await collect_messages(history, NOW - timedelta(minutes=minutes))

    timestamps = [m.timestamp for m in messages]
    assert timestamps == sorted(timestamps)
    assert len(set(timestamps)) == len(timestamps)


@pytest.mark.asyncio
async def test_fetch_errors_propagate():
    async def broken(before_id):
        raise RuntimeError("gateway down")

    with pytest.raises(RuntimeError, match="gateway down"):
        await collect_messages(broken, NOW)


def _discord_message(msg_id, created_at, attachments=(), embeds=0):
    msg = MagicMock()
    msg.id = msg_id
    msg.content = f"content {msg_id}"
    msg.author.display_name = "Bob"
    msg.author.id = 7
    msg.created_at = created_at
    msg.attachments = [MagicMock(filename=name) for name in attachments]
    msg.embeds = [object()] * embeds
    return msg


def test_to_message_normalizes_fields():
    created = datetime(2024, 1, 1, tzinfo=timezone.utc)
    raw = _discord_message(55, created, attachments=["cat.png", None], embeds=2)

    msg = to_message(raw)

    assert msg == Message(
        id="55",
        content="content 55",
        author_name="Bob",
        author_id="7",
        timestamp=created,
        attachments=("cat.png", "attachment"),
        embeds=2,
    )


@pytest.mark.asyncio
async def test_channel_page_fetcher_passes_cursor():
    created = datetime.now(timezone.utc)
    seen = []

    def history(limit, before):
        seen.append((limit, before))

        async def pages():
            for msg_id in (3, 2):
                yield _discord_message(msg_id, created)

        return pages()

    channel = make_text_channel()
    channel.history = history

    fetch_page = channel_page_fetcher(channel)
    first = await fetch_page(None)
    await fetch_page(first[-1].id)

    assert [m.id for m in first] == ["3", "2"]
    assert seen[0] == (100, None)
    assert seen[1][0] == 100
    assert isinstance(seen[1][1], discord.Object)
    assert seen[1][1].id == 2


@pytest.mark.asyncio
async def test_fetch_messages_uses_now_minus_duration():
    now = datetime.now(timezone.utc)
    raw = [
        _discord_message(10, now - timedelta(minutes=1)),
        _discord_message(9, now - timedelta(minutes=30)),
        _discord_message(8, now - timedelta(hours=2)),
    ]

    def history(limit, before):
        async def pages():
            if before is None:
                for msg in raw:
                    yield msg

        return pages()

    channel = make_text_channel()
    channel.history = history

    messages, capped = await fetch_messages(channel, 60 * 60 * 1000)

    assert [m.id for m in messages] == ["9", "10"]
    assert capped is False


@pytest.mark.asyncio
@pytest.mark.parametrize("token", ["200000w", "99999999999999w"])
async def test_fetch_messages_huge_range_is_bounded_by_cap(token):
    now = datetime.now(timezone.utc)
    raw = [_discord_message(100 - i, now - timedelta(days=365 * i)) for i in range(5)]

    def history(limit, before):
        async def pages():
            if before is None:
                for msg in raw:
                    yield msg

        return pages()

    channel = make_text_channel()
    channel.history = history

    messages, capped = await fetch_messages(channel, parse_time_range(token).duration_ms, max_messages=3)

    assert [m.id for m in messages] == ["98", "99", "100"]
    assert capped is True


def test_is_text_channel():
    assert is_text_channel(make_text_channel())
    assert not is_text_channel(make_text_channel(channel_type=discord.ChannelType.news))
    assert not is_text_channel(MagicMock(spec=discord.VoiceChannel))
    assert not is_text_channel(None)


def test_format_messages_for_summary():
    ts = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
    messages = [
        Message("1", "hi all", "alice", "1", ts),
        Message("2", "look", "bob", "2", ts, attachments=("a.png", "b.png"), embeds=1),
        Message("3", "one", "carol", "3", ts, attachments=("a.png",), embeds=3),
    ]

    assert format_messages_for_summary(messages) == (
        "[2024-01-02T03:04:05.678Z] alice: hi all\n"
        "[2024-01-02T03:04:05.678Z] bob: look [2 attachments] [1 embed]\n"
        "[2024-01-02T03:04:05.678Z] carol: one [1 attachment] [3 embeds]"
    )


def test_format_converts_to_utc():
    ts = datetime(2024, 1, 2, 5, 0, tzinfo=timezone(timedelta(hours=2)))
    text = format_messages_for_summary([Message("1", "x", "a", "1", ts)])
    assert text == "[2024-01-02T03:00:00.000Z] a: x"


def test_format_empty():
    assert format_messages_for_summary([]) == ""
