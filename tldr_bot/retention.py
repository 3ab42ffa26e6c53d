"""
Short-lived state behind the topic buttons.

A delivered summary registers its source messages in a ``RetentionStore`` and
hands a ``TopicSubscription`` to the button view. Both live in memory only.
"""

import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from . import config
from .models import RetentionEntry, Topic


class RetentionStore:
    """Bounded table of recent summaries, evicting the oldest insert first."""

    def __init__(self, limit: int = config.RETENTION_LIMIT):
        self.limit = max(1, int(limit))
        self._lock = threading.Lock()
        self._entries: "OrderedDict[str, RetentionEntry]" = OrderedDict()

    def put(self, key: str, entry: RetentionEntry) -> None:
        with self._lock:
            self._entries[key] = entry
            while len(self._entries) > self.limit:
                self._entries.popitem(last=False)

    def get(self, key: str) -> Optional[RetentionEntry]:
        with self._lock:
            return self._entries.get(key)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries


def make_summary_id(requester_id: int, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"{requester_id}-{int(now.timestamp() * 1000)}"


@dataclass
class TopicSubscription:
    """Follow-up buttons for one delivered summary, valid until ``expires_at``."""

    summary_id: str
    topics: list[Topic]
    expires_at: datetime
    active: bool = field(default=True)

    @classmethod
    def open(
        cls,
        summary_id: str,
        topics: list[Topic],
        minutes: int = config.FOLLOWUP_MINUTES,
        now: Optional[datetime] = None,
    ) -> "TopicSubscription":
        now = now or datetime.now(timezone.utc)
        return cls(summary_id, list(topics), now + timedelta(minutes=minutes))

    def is_active(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return self.active and now < self.expires_at

    def seconds_left(self, now: Optional[datetime] = None) -> float:
        now = now or datetime.now(timezone.utc)
        return max(0.0, (self.expires_at - now).total_seconds())

    def resolve(self, topic_id: str) -> Optional[Topic]:
        for topic in self.topics:
            if topic.id == topic_id:
                return topic
        return None

    def unsubscribe(self) -> None:
        self.active = False
