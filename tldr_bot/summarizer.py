"""Claude prompts and response handling for channel summaries."""

import json
import logging
from typing import NamedTuple, Optional

from anthropic import AsyncAnthropic

from . import config
from .history import format_messages_for_summary
from .models import SummarizeRequest, SummaryResult, Topic, TopicDetailRequest

log = logging.getLogger("tldr-bot.summarizer")

NO_SUMMARY_FALLBACK = "No summary available"
UNPARSEABLE_OVERVIEW = (
    "Unable to parse summary. The conversation may have been too short or empty."
)
DEFAULT_TOPIC_EMOJI = "💬"

SUMMARY_SYSTEM_PROMPT = """You summarize Discord chat for someone who missed it.

Respond with ONLY a single valid JSON object in exactly this format:
{
  "overview": "1-2 sentence summary of the main discussion",
  "highlights": ["Important point 1", "Important point 2", "Important point 3"],
  "topics": [
    {"id": "unique-id", "emoji": "🎮", "label": "Short Label", "summary": "2-3 sentence detail about this topic"}
  ]
}

Rules:
- The overview captures the essence of the conversation.
- Highlights are the most important or actionable items: links shared, decisions made, questions asked.
- Topics are distinct discussion threads, 2-5 of them.
- Each topic has a unique id, a fitting emoji, a short label (2-3 words) and a brief summary.
- Be concise but informative.
- If nothing noteworthy happened, say so in the overview and keep highlights and topics minimal."""

TOPIC_DETAIL_SYSTEM_PROMPT = """You expand one topic from a Discord chat summary.

Given the topic and the original messages, explain in more detail what was discussed.

Keep it to 2-3 paragraphs. Mention specific usernames and what they said when relevant.
Quote notable messages directly when helpful."""


def build_summary_prompt(request: SummarizeRequest) -> str:
    formatted = format_messages_for_summary(request.messages)
    return (
        f"Summarize the following Discord chat from #{request.channel_name} "
        f'in "{request.server_name}" over the last {request.time_range}.\n\n'
        f"{len(request.messages)} messages:\n\n"
        f"{formatted}"
    )


def build_topic_detail_prompt(request: TopicDetailRequest) -> str:
    formatted = format_messages_for_summary(request.messages)
    return (
        f"Topic: {request.topic.label}\n"
        f"Brief summary: {request.topic.summary}\n\n"
        f"Original messages from #{request.channel_name}:\n"
        f"{formatted}\n\n"
        f"Provide more detail about this topic."
    )


class SummaryDecode(NamedTuple):
    ok: bool
    summary: SummaryResult
    error: Optional[str] = None


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def _field(obj, key: str):
    """Read *key* like a property access: absent on non-objects, an error on null."""
    if obj is None:
        raise TypeError(f"cannot read {key!r} of null")
    if isinstance(obj, dict):
        return obj.get(key)
    return None


def _decode_topic(raw, index: int) -> Topic:
    return Topic(
        id=_field(raw, "id") or f"topic-{index}",
        emoji=_field(raw, "emoji") or DEFAULT_TOPIC_EMOJI,
        label=_field(raw, "label") or f"Topic {index + 1}",
        summary=_field(raw, "summary") or "",
    )


def _decode_topics(raw_topics) -> list[Topic]:
    if not raw_topics:
        return []
    if not isinstance(raw_topics, list):
        raise TypeError(f"topics is a {type(raw_topics).__name__}, not a list")
    return [_decode_topic(raw, i) for i, raw in enumerate(raw_topics)]


def decode_summary(text: str, message_count: int, time_range: str) -> SummaryDecode:
    """Decode Claude's JSON reply. Never raises.

    Missing or falsy fields get defaults; values are not type-checked.
    Invalid JSON, a ``null`` document or topic, or a ``topics`` value that is
    not a list yields ``ok=False`` with a placeholder overview.
    ``message_count`` and ``time_range`` always come from the caller, never
    from the model.
    """
    try:
        parsed = json.loads(text, parse_constant=_reject_constant)
        summary = SummaryResult(
            overview=_field(parsed, "overview") or NO_SUMMARY_FALLBACK,
            highlights=_field(parsed, "highlights") or [],
            topics=_decode_topics(_field(parsed, "topics")),
            message_count=message_count,
            time_range=time_range,
        )
    except Exception as e:
        return SummaryDecode(
            ok=False,
            summary=SummaryResult(
                overview=UNPARSEABLE_OVERVIEW,
                highlights=[],
                topics=[],
                message_count=message_count,
                time_range=time_range,
            ),
            error=f"{type(e).__name__}: {e}",
        )
    return SummaryDecode(ok=True, summary=summary)


def parse_summary_response(text: str, message_count: int, time_range: str) -> SummaryResult:
    return decode_summary(text, message_count, time_range).summary


def _extract_text(response) -> str:
    """Extract text from a Claude response that may contain non-text blocks."""
    parts = []
    for block in response.content:
        if hasattr(block, "text"):
            parts.append(block.text)
    return "\n\n".join(parts) if parts else ""


class Summarizer:
    """Runs the two Claude calls: the channel summary and a topic deep-dive."""

    def __init__(
        self,
        client: Optional[AsyncAnthropic] = None,
        model: str = config.CLAUDE_MODEL,
        summary_max_tokens: int = config.SUMMARY_MAX_TOKENS,
        detail_max_tokens: int = config.DETAIL_MAX_TOKENS,
    ):
        self.client = client or AsyncAnthropic(api_key=config.ANTHROPIC_API_KEY)
        self.model = model
        self.summary_max_tokens = summary_max_tokens
        self.detail_max_tokens = detail_max_tokens

    async def _complete(self, system: str, prompt: str, max_tokens: int) -> str:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            system=system,
            messages=[{"role": "user", "content": prompt}],
        )
        text = _extract_text(response)
        if not text:
            raise RuntimeError("Claude returned no text content")
        return text

    async def summarize(self, request: SummarizeRequest) -> SummaryResult:
        prompt = build_summary_prompt(request)
        log.info(f"Sending {len(prompt)} chars to Claude ({self.model}) for #{request.channel_name}")
        text = await self._complete(SUMMARY_SYSTEM_PROMPT, prompt, self.summary_max_tokens)

        decoded = decode_summary(text, len(request.messages), request.time_range)
        if not decoded.ok:
            log.warning(f"Could not decode summary JSON ({decoded.error}); using fallback")
        return decoded.summary

    async def topic_detail(self, request: TopicDetailRequest) -> str:
        prompt = build_topic_detail_prompt(request)
        log.info(f"Expanding topic {request.topic.id!r} ({len(prompt)} chars)")
        return await self._complete(TOPIC_DETAIL_SYSTEM_PROMPT, prompt, self.detail_max_tokens)

