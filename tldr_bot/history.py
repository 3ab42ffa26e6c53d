"""Reading channel history and formatting it for Claude."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional

import discord

from . import config
from .models import FetchResult, Message

log = logging.getLogger("tldr-bot.history")

PageFetcher = Callable[[Optional[str]], Awaitable[list[Message]]]


def to_message(msg: discord.Message) -> Message:
    """Normalize a discord.py message into our immutable Message."""
    return Message(
        id=str(msg.id),
        content=msg.content or "",
        author_name=msg.author.display_name,
        author_id=str(msg.author.id),
        timestamp=msg.created_at,
        attachments=tuple(a.filename or "attachment" for a in msg.attachments),
        embeds=len(msg.embeds),
    )


def channel_page_fetcher(
    channel: discord.TextChannel,
    page_size: int = config.MESSAGES_PER_FETCH,
) -> PageFetcher:
    """Wrap a text channel as ``fetch_page(before_id)``, newest first."""

    async def fetch_page(before_id: Optional[str]) -> list[Message]:
        before = discord.Object(id=int(before_id)) if before_id else None
        return [
            to_message(msg)
            async for msg in channel.history(limit=page_size, before=before)
        ]

    return fetch_page


async def collect_messages(
    fetch_page: PageFetcher,
    cutoff: datetime,
    max_messages: int = config.MAX_MESSAGES,
) -> FetchResult:
    """Walk history backward until the cutoff, the cap, or the first empty page.

    Pages are requested one at a time; each cursor is the oldest id of the
    page before it. The result is oldest first.
    """
    collected: list[Message] = []
    before_id: Optional[str] = None

    while True:
        page = await fetch_page(before_id)
        if not page:
            break

        for msg in page:
            if msg.timestamp < cutoff:
                return FetchResult(collected[::-1], False)
            collected.append(msg)
            if len(collected) >= max_messages:
                return FetchResult(collected[::-1], True)

        before_id = page[-1].id

    return FetchResult(collected[::-1], False)


async def fetch_messages(
    channel: discord.TextChannel,
    since_ms: int,
    max_messages: int = config.MAX_MESSAGES,
) -> FetchResult:
    """Fetch the messages posted in *channel* during the last *since_ms*."""
    try:
        cutoff = datetime.now(timezone.utc) - timedelta(milliseconds=since_ms)
    except OverflowError:
        # Range reaches past year 1; only the cap bounds this fetch.
        cutoff = datetime.min.replace(tzinfo=timezone.utc)
    result = await collect_messages(channel_page_fetcher(channel), cutoff, max_messages)
    log.info(
        f"#{channel.name}: fetched {len(result.messages)} messages"
        f"{' (capped)' if result.capped else ''}"
    )
    return result


def is_text_channel(channel) -> bool:
    """Plain guild text channels only; announcement channels are excluded."""
    return (
        isinstance(channel, discord.TextChannel)
        and getattr(channel, "type", None) is discord.ChannelType.text
    )


def _iso_timestamp(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count > 1 else ''}"


def format_messages_for_summary(messages: list[Message]) -> str:
    """Render messages as ``[timestamp] author: content`` lines."""
    lines = []
    for msg in messages:
        line = f"[{_iso_timestamp(msg.timestamp)}] {msg.author_name}: {msg.content}"
        if msg.attachments:
            line += f" [{_plural(len(msg.attachments), 'attachment')}]"
        if msg.embeds > 0:
            line += f" [{_plural(msg.embeds, 'embed')}]"
        lines.append(line)
    return "\n".join(lines)
