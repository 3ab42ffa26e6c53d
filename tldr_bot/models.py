"""Data shapes shared by the retriever, summarizer and command handlers."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import NamedTuple, Optional


@dataclass(frozen=True)
class Message:
    """A channel message, normalized at fetch time."""

    id: str
    content: str
    author_name: str
    author_id: str
    timestamp: datetime
    attachments: tuple[str, ...] = ()
    embeds: int = 0


class RangeError(str, Enum):
    INVALID_FORMAT = "InvalidFormat"
    NON_POSITIVE_DURATION = "NonPositiveDuration"


@dataclass(frozen=True)
class ParsedRange:
    success: bool
    duration_ms: int = 0
    label: str = ""
    error: str = ""
    error_kind: Optional[RangeError] = None

    @classmethod
    def ok(cls, duration_ms: int, label: str) -> "ParsedRange":
        return cls(success=True, duration_ms=duration_ms, label=label)

    @classmethod
    def failure(cls, kind: RangeError, error: str) -> "ParsedRange":
        return cls(success=False, error=error, error_kind=kind)


@dataclass(frozen=True)
class Topic:
    id: str
    emoji: str
    label: str
    summary: str


@dataclass
class SummaryResult:
    overview: str
    highlights: list = field(default_factory=list)
    topics: list[Topic] = field(default_factory=list)
    message_count: int = 0
    time_range: str = ""


@dataclass(frozen=True)
class SummarizeRequest:
    messages: list[Message]
    channel_name: str
    server_name: str
    time_range: str


@dataclass(frozen=True)
class TopicDetailRequest:
    topic: Topic
    messages: list[Message]
    channel_name: str


@dataclass(frozen=True)
class RetentionEntry:
    """Messages a delivered summary was built from, kept for topic follow-ups."""

    messages: list[Message]
    channel_name: str


class FetchResult(NamedTuple):
    messages: list[Message]
    capped: bool
