"""Builders for messages, fake history pages and fake interactions."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import discord

from tldr_bot.models import Message

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_message(index, minutes_ago=None, now=NOW, content=None, author="alice",
                 attachments=(), embeds=0):
    """Message number *index*; higher index means older and smaller id."""
    if minutes_ago is None:
        minutes_ago = index
    return Message(
        id=str(1_000_000 - index),
        content=content if content is not None else f"message {index}",
        author_name=author,
        author_id="1",
        timestamp=now - timedelta(minutes=minutes_ago),
        attachments=tuple(attachments),
        embeds=embeds,
    )


class FakeHistory:
    """Serves newest-first pages of a fixed message list by ``before`` id."""

    def __init__(self, messages, page_size=100):
        self.messages = messages
        self.page_size = page_size
        self.calls = []

    async def __call__(self, before_id):
        self.calls.append(before_id)
        start = 0
        if before_id is not None:
            start = next(i for i, m in enumerate(self.messages) if m.id == before_id) + 1
        return self.messages[start:start + self.page_size]


def make_text_channel(name="general", server="Test Server", channel_type=discord.ChannelType.text):
    channel = MagicMock(spec=discord.TextChannel)
    channel.name = name
    channel.type = channel_type
    channel.guild.name = server
    return channel


def make_interaction(channel=None, guild=True, user_id=42):
    interaction = MagicMock()
    interaction.response.send_message = AsyncMock()
    interaction.response.defer = AsyncMock()
    interaction.edit_original_response = AsyncMock()
    interaction.followup.send = AsyncMock()
    interaction.user.id = user_id
    interaction.user.send = AsyncMock()
    interaction.channel = channel if channel is not None else make_text_channel()
    interaction.guild = interaction.channel.guild if guild else None
    return interaction
