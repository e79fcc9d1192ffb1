"""Ring buffer of the most recent raw webhook payloads, kept for debugging."""

from __future__ import annotations

import copy
from collections import deque
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from alerthub.config import settings
from alerthub.ingestion.extractor import synthesize_id
from alerthub.timeutil import utcnow


class RawWebhookEntry(BaseModel):
    id: str = Field(default_factory=lambda: synthesize_id("raw"))
    timestamp: datetime = Field(default_factory=utcnow)
    raw_payload: Any = None
    headers: dict[str, str] = {}


class RawWebhookLog:
    def __init__(self, max_entries: int | None = None) -> None:
        self._entries: deque[RawWebhookEntry] = deque(
            maxlen=settings.max_raw_webhooks if max_entries is None else max_entries
        )

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, payload, headers: dict[str, str] | None = None, entry_id: str | None = None) -> RawWebhookEntry:
        entry = RawWebhookEntry(raw_payload=copy.deepcopy(payload), headers=headers or {})
        if entry_id:
            entry.id = entry_id
        self._entries.appendleft(entry)
        return entry

    def recent(self, limit: int = 10) -> list[RawWebhookEntry]:
        return list(self._entries)[:limit]

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count
