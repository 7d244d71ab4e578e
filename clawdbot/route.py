"""Route-first dispatch: run a few frequent commands without building the full CLI.

`try_route_cli` inspects the raw argv and, for ``health``, ``status``,
``sessions``, ``agents list`` and ``memory status``, parses the flags itself and
calls the handler directly. Anything it cannot interpret with certainty,
including a value flag with no usable value, falls through to the Typer app.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from clawdbot import __version__
from clawdbot.argv import (
    MISSING,
    get_command_path,
    get_flag_value,
    has_flag,
    has_help_or_version,
    parse_positive_int,
)
from clawdbot.banner import emit_cli_banner
from clawdbot.commands.agents import AgentsListCommand, agents_list_command
from clawdbot.commands.health import HealthCommand, health_command
from clawdbot.commands.memory import MemoryStatusCommand, run_memory_status
from clawdbot.commands.sessions import SessionsCommand, sessions_command
from clawdbot.commands.status import StatusCommand, status_command
from clawdbot.config_guard import ensure_config_ready
from clawdbot.constants import ENV_DISABLE_ROUTE_FIRST
from clawdbot.core.utils import is_truthy_env_value
from clawdbot.plugins import ensure_plugin_registry_loaded

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from clawdbot.context import CommandContext

logger = logging.getLogger(__name__)

ParsedCommand = (
    HealthCommand | StatusCommand | SessionsCommand | AgentsListCommand | MemoryStatusCommand
)


def _is_verbose(argv: Sequence[str]) -> bool:
    return has_flag(argv, "--verbose") or has_flag(argv, "--debug")


def _parse_timeout(argv: Sequence[str]) -> tuple[bool, int | None]:
    """Return ``(usable, timeout_ms)`` for the ``--timeout`` flag."""
    value = get_flag_value(argv, "--timeout")
    if value is MISSING:
        return True, None
    if value is None:
        return False, None
    timeout_ms = parse_positive_int(value)
    return timeout_ms is not None, timeout_ms


def parse_health(argv: Sequence[str]) -> HealthCommand | None:
    usable, timeout_ms = _parse_timeout(argv)
    if not usable:
        return None
    return HealthCommand(
        json=has_flag(argv, "--json"),
        verbose=_is_verbose(argv),
        timeout_ms=timeout_ms,
    )


def parse_status(argv: Sequence[str]) -> StatusCommand | None:
    usable, timeout_ms = _parse_timeout(argv)
    if not usable:
        return None
    return StatusCommand(
        json=has_flag(argv, "--json"),
        deep=has_flag(argv, "--deep"),
        all=has_flag(argv, "--all"),
        usage=has_flag(argv, "--usage"),
        verbose=_is_verbose(argv),
        timeout_ms=timeout_ms,
    )


def parse_sessions(argv: Sequence[str]) -> SessionsCommand | None:
    store = get_flag_value(argv, "--store")
    if store is None:
        return None
    active = get_flag_value(argv, "--active")
    if active is None or (active is not MISSING and parse_positive_int(active) is None):
        return None
    return SessionsCommand(
        json=has_flag(argv, "--json"),
        verbose=has_flag(argv, "--verbose"),
        store=None if store is MISSING else store,
        active=None if active is MISSING else active,
    )


def parse_agents_list(argv: Sequence[str]) -> AgentsListCommand:
    return AgentsListCommand(json=has_flag(argv, "--json"), bindings=has_flag(argv, "--bindings"))


def parse_memory_status(argv: Sequence[str]) -> MemoryStatusCommand | None:
    agent = get_flag_value(argv, "--agent")
    if agent is None:
        return None
    return MemoryStatusCommand(
        agent=None if agent is MISSING else agent,
        json=has_flag(argv, "--json"),
        deep=has_flag(argv, "--deep"),
        index=has_flag(argv, "--index"),
        verbose=has_flag(argv, "--verbose"),
    )


@dataclass(frozen=True)
class Route:
    """A fast path: how to parse its flags and what to prepare first."""

    parse: Callable[[Sequence[str]], ParsedCommand | None]
    migrate_state: bool = False
    load_plugins: bool = False


ROUTES: dict[tuple[str, str | None], Route] = {
    ("health", None): Route(parse_health, load_plugins=True),
    ("status", None): Route(parse_status, load_plugins=True),
    ("sessions", None): Route(parse_sessions),
    ("agents", "list"): Route(parse_agents_list, migrate_state=True),
    ("memory", "status"): Route(parse_memory_status),
}


def find_route(argv: Sequence[str]) -> Route | None:
    """Match the command path against the fast-path table."""
    path = get_command_path(argv, 2)
    if not path:
        return None
    primary = path[0]
    secondary = path[1] if len(path) > 1 else None
    return ROUTES.get((primary, secondary)) or ROUTES.get((primary, None))


async def run_parsed_command(command: ParsedCommand, context: CommandContext) -> None:
    """Invoke the handler for a parsed fast-path command."""
    match command:
        case HealthCommand():
            await health_command(command, context)
        case StatusCommand():
            await status_command(command, context)
        case SessionsCommand():
            await sessions_command(command, context)
        case AgentsListCommand():
            await agents_list_command(command, context)
        case MemoryStatusCommand():
            await run_memory_status(command, context)


async def try_route_cli(argv: Sequence[str], context: CommandContext) -> bool:
    """Handle ``argv`` on a fast path if possible.

    Returns True when the invocation was fully handled and False when the
    caller must run the full command tree.
    """
    if is_truthy_env_value(os.environ.get(ENV_DISABLE_ROUTE_FIRST)):
        logger.debug("Route-first dispatch disabled via %s", ENV_DISABLE_ROUTE_FIRST)
        return False
    if has_help_or_version(argv):
        return False

    route = find_route(argv)
    if route is None:
        return False

    emit_cli_banner(__version__, context, argv=argv)
    await ensure_config_ready(context, migrate_state=route.migrate_state)
    if route.load_plugins:
        ensure_plugin_registry_loaded(context)

    command = route.parse(argv)
    if command is None:
        logger.debug("Route-first could not parse %s, using the full parser", list(argv[2:]))
        return False

    await run_parsed_command(command, context)
    return True
