"""
/tldr command flow.

    parse range -> check channel -> defer -> fetch history -> summarize
    -> retain messages -> DM summary with topic buttons -> confirm

Topic buttons stay live for FOLLOWUP_MINUTES. Each press is handled on its
own; a failed expansion only affects that press.
"""

import logging
from typing import Optional

import discord

from . import config
from .history import fetch_messages, is_text_channel
from .models import (
    ParsedRange,
    RetentionEntry,
    SummarizeRequest,
    SummaryResult,
    Topic,
    TopicDetailRequest,
)
from .retention import RetentionStore, TopicSubscription, make_summary_id
from .summarizer import Summarizer
from .time_range import parse_time_range

log = logging.getLogger("tldr-bot.tldr")

SERVER_ONLY_MESSAGE = "This command can only be used in a server channel."
TEXT_ONLY_MESSAGE = "This command can only be used in text channels."
SENT_MESSAGE = "Summary sent to your DMs! Check your messages."
DM_CLOSED_MESSAGE = (
    "I couldn't send you a DM. Please allow direct messages from server "
    "members and try again."
)
GENERIC_FAILURE_MESSAGE = "Something went wrong generating the summary. Please try again later."
TOPIC_NOT_FOUND_MESSAGE = "Topic not found."
TOPIC_FAILURE_MESSAGE = "Failed to get topic details. Please try again."
BUTTONS_EXPIRED_MESSAGE = "These buttons have expired. Run /tldr again for a fresh summary."
SUMMARY_EVICTED_MESSAGE = "This summary is no longer cached. Run /tldr again for a fresh summary."

TOPIC_ID_PREFIX = "topic:"
BUTTON_LABEL_LIMIT = 80
CUSTOM_ID_LIMIT = 100
RULE = "━" * 27


def parse_max_range(token: str) -> Optional[ParsedRange]:
    """Parse the MAX_RANGE setting. Empty means unlimited."""
    if not token:
        return None
    parsed = parse_time_range(token)
    if not parsed.success:
        raise ValueError(f"MAX_RANGE={token!r} is not a valid range: {parsed.error}")
    return parsed


def split_message(content: str, limit: int = config.DISCORD_MESSAGE_LIMIT) -> list[str]:
    """Split text into Discord-sized chunks, preferring paragraph breaks."""
    if len(content) <= limit:
        return [content]

    soft_limit = limit - 100
    chunks = []
    current = ""
    for paragraph in content.split("\n\n"):
        while len(paragraph) > soft_limit:
            if current.strip():
                chunks.append(current.strip())
                current = ""
            chunks.append(paragraph[:soft_limit])
            paragraph = paragraph[soft_limit:]
        if len(current) + len(paragraph) + 2 > soft_limit:
            if current.strip():
                chunks.append(current.strip())
            current = ""
        current += paragraph + "\n\n"
    if current.strip():
        chunks.append(current.strip())
    return chunks


def build_summary_message(
    summary: SummaryResult,
    channel_name: str,
    server_name: str,
    capped: bool,
    max_messages: int = config.MAX_MESSAGES,
) -> str:
    msg = f"{RULE}\n"
    msg += f"📋 **TLDR for #{channel_name}** ({server_name})\n"
    msg += f"Last {summary.time_range} • {summary.message_count} messages"
    if capped:
        msg += f" (capped at {max_messages})"
    msg += f"\n{RULE}\n\n"

    msg += f"**Summary:** {summary.overview}\n\n"

    if summary.highlights:
        msg += "**Highlights:**\n"
        for highlight in summary.highlights:
            msg += f"• {highlight}\n"
        msg += "\n"

    if summary.topics:
        msg += "**Topics:** Click a button below for more details.\n"

    return msg


def topic_id_from_custom_id(custom_id: str) -> str:
    return custom_id.removeprefix(TOPIC_ID_PREFIX)


def _button_label(topic: Topic) -> str:
    return f"{topic.emoji} {topic.label}"[:BUTTON_LABEL_LIMIT]


class TopicButtonsView(discord.ui.View):
    """Up to five topic buttons under a DM'd summary."""

    def __init__(self, handler: "TldrHandler", subscription: TopicSubscription):
        super().__init__(timeout=subscription.seconds_left())
        self.handler = handler
        self.subscription = subscription
        self.message: Optional[discord.Message] = None

        seen = set()
        for topic in subscription.topics[: config.MAX_TOPIC_BUTTONS]:
            custom_id = f"{TOPIC_ID_PREFIX}{topic.id}"
            if topic.id in seen or len(custom_id) > CUSTOM_ID_LIMIT:
                log.warning(f"Skipping button for topic id {topic.id!r}")
                continue
            seen.add(topic.id)
            button = discord.ui.Button(
                label=_button_label(topic),
                style=discord.ButtonStyle.secondary,
                custom_id=custom_id,
            )
            button.callback = self._on_press
            self.add_item(button)

    async def _on_press(self, interaction: discord.Interaction):
        await self.handler.handle_topic_button(interaction, self.subscription)

    async def on_timeout(self):
        self.subscription.unsubscribe()
        if self.message is None:
            return
        for item in self.children:
            item.disabled = True
        try:
            await self.message.edit(view=self)
        except discord.HTTPException as e:
            log.warning(f"Could not disable expired topic buttons: {e}")


class TldrHandler:
    """Runs /tldr requests and their topic follow-ups."""

    def __init__(
        self,
        summarizer: Summarizer,
        store: RetentionStore,
        max_range: Optional[ParsedRange] = None,
        max_messages: int = config.MAX_MESSAGES,
        followup_minutes: int = config.FOLLOWUP_MINUTES,
    ):
        self.summarizer = summarizer
        self.store = store
        self.max_range = max_range
        self.max_messages = max_messages
        self.followup_minutes = followup_minutes

    async def handle_command(self, interaction: discord.Interaction, range_input: str):
        parsed = parse_time_range(range_input)
        if not parsed.success:
            await interaction.response.send_message(parsed.error, ephemeral=True)
            return

        if self.max_range is not None and parsed.duration_ms > self.max_range.duration_ms:
            await interaction.response.send_message(
                f"Range too long. The maximum is {self.max_range.label}.", ephemeral=True
            )
            return

        channel = interaction.channel
        if interaction.guild is None or channel is None or getattr(channel, "guild", None) is None:
            await interaction.response.send_message(SERVER_ONLY_MESSAGE, ephemeral=True)
            return
        if not is_text_channel(channel):
            await interaction.response.send_message(TEXT_ONLY_MESSAGE, ephemeral=True)
            return

        channel_name = channel.name
        server_name = channel.guild.name

        # Acknowledge before the slow part; Discord expects a response within 3s.
        await interaction.response.defer(ephemeral=True, thinking=True)

        try:
            messages, capped = await fetch_messages(channel, parsed.duration_ms, self.max_messages)
            if not messages:
                await interaction.edit_original_response(
                    content=f"No messages found in #{channel_name} in the last {parsed.label}."
                )
                return

            summary = await self.summarizer.summarize(
                SummarizeRequest(
                    messages=messages,
                    channel_name=channel_name,
                    server_name=server_name,
                    time_range=parsed.label,
                )
            )

            summary_id = make_summary_id(interaction.user.id)
            self.store.put(summary_id, RetentionEntry(messages=messages, channel_name=channel_name))

            try:
                await self.deliver_summary(
                    interaction.user, summary_id, summary, channel_name, server_name, capped
                )
            except discord.Forbidden:
                log.warning(f"DMs closed for user {interaction.user.id}")
                await interaction.edit_original_response(content=DM_CLOSED_MESSAGE)
                return

            await interaction.edit_original_response(content=SENT_MESSAGE)
        except Exception:
            log.exception(f"Error in tldr command for #{channel_name}")
            await interaction.edit_original_response(content=GENERIC_FAILURE_MESSAGE)

    async def deliver_summary(
        self,
        user: discord.abc.User,
        summary_id: str,
        summary: SummaryResult,
        channel_name: str,
        server_name: str,
        capped: bool,
    ) -> Optional[TopicSubscription]:
        """DM the summary; buttons go on the last chunk when there are topics."""
        content = build_summary_message(summary, channel_name, server_name, capped, self.max_messages)
        chunks = split_message(content)
        for chunk in chunks[:-1]:
            await user.send(chunk)

        if not summary.topics:
            await user.send(chunks[-1])
            log.info(f"Summary {summary_id} delivered without topics")
            return None

        subscription = TopicSubscription.open(summary_id, summary.topics, self.followup_minutes)
        view = TopicButtonsView(self, subscription)
        view.message = await user.send(chunks[-1], view=view)
        log.info(f"Summary {summary_id} delivered with {len(view.children)} topic buttons")
        return subscription

    async def handle_topic_button(
        self, interaction: discord.Interaction, subscription: TopicSubscription
    ):
        if not subscription.is_active():
            await interaction.response.send_message(BUTTONS_EXPIRED_MESSAGE, ephemeral=True)
            return

        topic_id = topic_id_from_custom_id((interaction.data or {}).get("custom_id", ""))
        topic = subscription.resolve(topic_id)
        if topic is None:
            await interaction.response.send_message(TOPIC_NOT_FOUND_MESSAGE, ephemeral=True)
            return

        entry = self.store.get(subscription.summary_id)
        if entry is None:
            await interaction.response.send_message(SUMMARY_EVICTED_MESSAGE, ephemeral=True)
            return

        await interaction.response.defer(thinking=True)

        try:
            detail = await self.summarizer.topic_detail(
                TopicDetailRequest(topic=topic, messages=entry.messages, channel_name=entry.channel_name)
            )
            chunks = split_message(f"**{topic.emoji} {topic.label}**\n\n{detail}")
            await interaction.edit_original_response(content=chunks[0])
            for chunk in chunks[1:]:
                await interaction.followup.send(chunk)
        except Exception:
            log.exception(f"Error getting topic detail for {topic.id!r}")
            await interaction.edit_original_response(content=TOPIC_FAILURE_MESSAGE)
