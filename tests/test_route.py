"""Tests for route-first dispatch."""

from __future__ import annotations

from contextlib import ExitStack
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from clawdbot.commands.agents import AgentsListCommand
from clawdbot.commands.health import HealthCommand
from clawdbot.commands.memory import MemoryStatusCommand
from clawdbot.commands.sessions import SessionsCommand
from clawdbot.commands.status import StatusCommand
from clawdbot.context import CommandContext
from clawdbot.route import (
    find_route,
    parse_health,
    parse_memory_status,
    parse_sessions,
    parse_status,
    try_route_cli,
)

if TYPE_CHECKING:
    from collections.abc import Iterator


def _argv(*args: str) -> list[str]:
    return ["python", "clawdbot", *args]


@pytest.fixture
def handlers() -> Iterator[dict[str, MagicMock]]:
    """Patch every fast-path handler and the readiness/plugin steps."""
    names = [
        "health_command",
        "status_command",
        "sessions_command",
        "agents_list_command",
        "run_memory_status",
        "ensure_config_ready",
    ]
    with ExitStack() as stack:
        mocks = {
            name: stack.enter_context(patch(f"clawdbot.route.{name}", new=AsyncMock()))
            for name in names
        }
        mocks["ensure_plugin_registry_loaded"] = stack.enter_context(
            patch("clawdbot.route.ensure_plugin_registry_loaded"),
        )
        yield mocks


async def _route(*args: str) -> tuple[bool, CommandContext]:
    context = CommandContext(argv=_argv(*args))
    return await try_route_cli(context.argv, context), context


@pytest.mark.asyncio
async def test_agents_list_fast_path(handlers: dict[str, MagicMock]) -> None:
    """agents list is handled with parsed flags and migrates state."""
    handled, context = await _route("agents", "list", "--json")
    assert handled is True
    handlers["agents_list_command"].assert_awaited_once_with(
        AgentsListCommand(json=True, bindings=False),
        context,
    )
    handlers["ensure_config_ready"].assert_awaited_once_with(context, migrate_state=True)
    handlers["ensure_plugin_registry_loaded"].assert_not_called()


@pytest.mark.asyncio
async def test_memory_status_does_not_migrate(handlers: dict[str, MagicMock]) -> None:
    handled, context = await _route("memory", "status", "--agent", "ops", "--index")
    assert handled is True
    handlers["ensure_config_ready"].assert_awaited_once_with(context, migrate_state=False)
    handlers["run_memory_status"].assert_awaited_once_with(
        MemoryStatusCommand(agent="ops", index=True),
        context,
    )


@pytest.mark.asyncio
async def test_status_flags(handlers: dict[str, MagicMock]) -> None:
    handled, context = await _route("status", "--deep", "--usage", "--debug", "--timeout=2500")
    assert handled is True
    handlers["status_command"].assert_awaited_once_with(
        StatusCommand(deep=True, usage=True, verbose=True, timeout_ms=2500),
        context,
    )
    handlers["ensure_plugin_registry_loaded"].assert_called_once_with(context)


@pytest.mark.asyncio
async def test_health_fast_path(handlers: dict[str, MagicMock]) -> None:
    handled, context = await _route("health", "--json", "--timeout", "500")
    assert handled is True
    handlers["health_command"].assert_awaited_once_with(
        HealthCommand(json=True, timeout_ms=500),
        context,
    )


@pytest.mark.asyncio
async def test_sessions_fast_path(handlers: dict[str, MagicMock]) -> None:
    handled, context = await _route("sessions", "--store", "/tmp/s.json", "--active=30")
    assert handled is True
    handlers["sessions_command"].assert_awaited_once_with(
        SessionsCommand(store="/tmp/s.json", active="30"),
        context,
    )


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "args",
    [
        ("status", "--timeout"),
        ("status", "--timeout", "--json"),
        ("status", "--timeout", "soon"),
        ("health", "--timeout", "0"),
        ("sessions", "--store"),
        ("sessions", "--active", "--json"),
        ("sessions", "--active", "abc"),
        ("sessions", "--active=0"),
        ("status", "--timeout", "\u00b2"),
        ("memory", "status", "--agent"),
    ],
)
async def test_unusable_flag_values_fall_back(
    handlers: dict[str, MagicMock],
    args: tuple[str, ...],
) -> None:
    handled, _ = await _route(*args)
    assert handled is False
    for name in ("health_command", "status_command", "sessions_command", "run_memory_status"):
        handlers[name].assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "args",
    [
        ("frobnicate",),
        ("agents",),
        ("agents", "add"),
        ("memory", "index"),
        ("memory", "search", "notes"),
        ("doctor",),
        (),
        ("--json",),
    ],
)
async def test_unknown_commands_fall_back(
    handlers: dict[str, MagicMock],
    args: tuple[str, ...],
) -> None:
    handled, _ = await _route(*args)
    assert handled is False
    handlers["ensure_config_ready"].assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize("args", [("--help",), ("status", "-h"), ("agents", "list", "-V")])
async def test_help_and_version_fall_back(
    handlers: dict[str, MagicMock],
    args: tuple[str, ...],
) -> None:
    handled, _ = await _route(*args)
    assert handled is False
    handlers["ensure_config_ready"].assert_not_awaited()


@pytest.mark.asyncio
async def test_help_after_terminator_is_data(handlers: dict[str, MagicMock]) -> None:
    handled, _ = await _route("status", "--", "--help")
    assert handled is True
    handlers["status_command"].assert_awaited_once()


@pytest.mark.asyncio
@pytest.mark.parametrize("value", ["1", "true", "YES"])
async def test_disabled_by_env(
    handlers: dict[str, MagicMock],
    monkeypatch: pytest.MonkeyPatch,
    value: str,
) -> None:
    monkeypatch.setenv("CLAWDBOT_DISABLE_ROUTE_FIRST", value)
    handled, _ = await _route("status")
    assert handled is False
    handlers["status_command"].assert_not_awaited()


@pytest.mark.asyncio
async def test_falsy_env_keeps_fast_path(
    handlers: dict[str, MagicMock],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("CLAWDBOT_DISABLE_ROUTE_FIRST", "0")
    handled, _ = await _route("status")
    assert handled is True


@pytest.mark.asyncio
async def test_steps_run_in_order() -> None:
    """Banner, config readiness, plugins, then the handler."""
    calls: list[str] = []
    with (
        patch("clawdbot.route.emit_cli_banner", side_effect=lambda *a, **k: calls.append("banner")),
        patch(
            "clawdbot.route.ensure_config_ready",
            new=AsyncMock(side_effect=lambda *a, **k: calls.append("config")),
        ),
        patch(
            "clawdbot.route.ensure_plugin_registry_loaded",
            side_effect=lambda *a: calls.append("plugins"),
        ),
        patch(
            "clawdbot.route.health_command",
            new=AsyncMock(side_effect=lambda *a: calls.append("handler")),
        ),
    ):
        handled, _ = await _route("health")
    assert handled is True
    assert calls == ["banner", "config", "plugins", "handler"]


class TestParsers:
    """The flag parsers on their own."""

    def test_health_defaults(self) -> None:
        assert parse_health(_argv("health")) == HealthCommand()

    def test_status_all(self) -> None:
        parsed = parse_status(_argv("status", "--all", "--json"))
        assert parsed == StatusCommand(json=True, all=True)

    def test_sessions_empty_store_value(self) -> None:
        assert parse_sessions(_argv("sessions", "--store=")) == SessionsCommand(store="")

    def test_memory_status_defaults(self) -> None:
        assert parse_memory_status(_argv("memory", "status")) == MemoryStatusCommand()

    def test_flag_after_terminator_ignored(self) -> None:
        parsed = parse_memory_status(_argv("memory", "status", "--", "--agent"))
        assert parsed == MemoryStatusCommand()

    def test_find_route_ignores_extra_segments(self) -> None:
        assert find_route(_argv("health", "extra")) is not None
        assert find_route(_argv("agents", "remove")) is None
