"""Reading the JSON session store."""

from __future__ import annotations

import json
import time
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from pathlib import Path


class SessionStoreError(Exception):
    """The session store exists but cannot be read."""


class SessionEntry(BaseModel):
    """One entry of ``sessions.json``, keyed by session key."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    key: str = ""
    session_id: str | None = None
    updated_at: int | None = None
    """Milliseconds since the epoch."""
    channel: str | None = None
    model: str | None = None
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def age_minutes(self, now_ms: int | None = None) -> float | None:
        if self.updated_at is None:
            return None
        now_ms = int(time.time() * 1000) if now_ms is None else now_ms
        return max(0, now_ms - self.updated_at) / 60_000


def load_session_store(path: Path) -> list[SessionEntry]:
    """Return the sessions stored at ``path``, most recently updated first.

    A missing file is an empty store.
    """
    if not path.exists():
        return []
    try:
        raw = json.loads(path.read_text(encoding="utf-8") or "{}")
    except (OSError, json.JSONDecodeError) as e:
        msg = f"Cannot read session store {path}: {e}"
        raise SessionStoreError(msg) from e
    if not isinstance(raw, dict):
        msg = f"Session store {path} must contain a JSON object"
        raise SessionStoreError(msg)

    entries = []
    for key, value in raw.items():
        if not isinstance(value, dict):
            continue
        try:
            entries.append(SessionEntry.model_validate({**value, "key": key}))
        except ValidationError as e:
            msg = f"Invalid session entry {key!r} in {path}: {e}"
            raise SessionStoreError(msg) from e
    entries.sort(key=lambda entry: entry.updated_at or 0, reverse=True)
    return entries


def filter_active(
    entries: list[SessionEntry],
    active_minutes: int,
    now_ms: int | None = None,
) -> list[SessionEntry]:
    """Keep sessions updated within the last ``active_minutes`` minutes."""
    kept = []
    for entry in entries:
        age = entry.age_minutes(now_ms)
        if age is not None and age <= active_minutes:
            kept.append(entry)
    return kept
