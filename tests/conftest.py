"""Shared test fixtures and configuration."""

from __future__ import annotations

import contextlib
import io
import logging
from typing import TYPE_CHECKING

import pytest
from rich.console import Console

from clawdbot.context import CommandContext

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Set default timeout for all tests."""
    for item in items:
        with contextlib.suppress(AttributeError):
            item.add_marker(pytest.mark.timeout(3))


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point the state directory at a temp dir and clear clawdbot env toggles."""
    state_dir = tmp_path / "state"
    monkeypatch.setenv("CLAWDBOT_STATE_DIR", str(state_dir))
    monkeypatch.delenv("CLAWDBOT_CONFIG_PATH", raising=False)
    monkeypatch.delenv("CLAWDBOT_DISABLE_ROUTE_FIRST", raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("setproctitle.setproctitle", lambda title: None)
    yield state_dir
    logging.getLogger().handlers.clear()


@pytest.fixture
def state_dir(isolated_env: Path) -> Path:
    """The per-test state directory (not created)."""
    return isolated_env


@pytest.fixture
def write_config(state_dir: Path) -> Callable[[str], Path]:
    """Write ``clawdbot.toml`` into the state directory."""

    def _write(content: str) -> Path:
        state_dir.mkdir(parents=True, exist_ok=True)
        path = state_dir / "clawdbot.toml"
        path.write_text(content)
        return path

    return _write


@pytest.fixture
def make_context() -> Callable[..., CommandContext]:
    """Build a CommandContext for a list of user arguments."""

    def _make(*args: str) -> CommandContext:
        return CommandContext(argv=["python", "clawdbot", *args])

    return _make


@pytest.fixture
def mock_console() -> Console:
    """Provide a console that writes to a StringIO for testing."""
    return Console(file=io.StringIO(), width=80, force_terminal=True)
