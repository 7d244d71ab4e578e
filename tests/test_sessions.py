"""Tests for reading the session store."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from clawdbot.sessions import SessionStoreError, filter_active, load_session_store

if TYPE_CHECKING:
    from pathlib import Path


def test_missing_store(tmp_path: Path) -> None:
    assert load_session_store(tmp_path / "nope.json") == []


def test_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "sessions.json"
    path.write_text("")
    assert load_session_store(path) == []


def test_entries_sorted_and_camel_case(tmp_path: Path) -> None:
    path = tmp_path / "sessions.json"
    path.write_text(
        json.dumps(
            {
                "old": {"updatedAt": 10, "inputTokens": 1, "outputTokens": 2},
                "new": {"updatedAt": 20, "sessionId": "s-2", "channel": "telegram"},
                "never": {},
                "junk": "skipped",
            },
        ),
    )
    entries = load_session_store(path)
    assert [e.key for e in entries] == ["new", "old", "never"]
    assert entries[0].session_id == "s-2"
    assert entries[0].channel == "telegram"
    assert entries[1].total_tokens == 3


def test_not_an_object(tmp_path: Path) -> None:
    path = tmp_path / "sessions.json"
    path.write_text("[]")
    with pytest.raises(SessionStoreError, match="must contain a JSON object"):
        load_session_store(path)


def test_invalid_entry(tmp_path: Path) -> None:
    path = tmp_path / "sessions.json"
    path.write_text(json.dumps({"bad": {"updatedAt": "yesterday"}}))
    with pytest.raises(SessionStoreError, match="Invalid session entry 'bad'"):
        load_session_store(path)


def test_filter_active(tmp_path: Path) -> None:
    path = tmp_path / "sessions.json"
    now_ms = 10 * 60_000
    path.write_text(
        json.dumps(
            {
                "fresh": {"updatedAt": now_ms - 60_000},
                "edge": {"updatedAt": now_ms - 5 * 60_000},
                "stale": {"updatedAt": now_ms - 6 * 60_000},
                "unknown": {},
            },
        ),
    )
    kept = filter_active(load_session_store(path), 5, now_ms=now_ms)
    assert [e.key for e in kept] == ["fresh", "edge"]
