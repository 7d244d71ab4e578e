"""``health``: readiness checks for config, state, agents and memory."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

from rich.markup import escape

from clawdbot.config import resolve_agent_ids, resolve_agent_workspace, resolve_state_dir
from clawdbot.config_guard import ensure_config_ready
from clawdbot.constants import DEFAULT_HEALTH_TIMEOUT_MS
from clawdbot.core.utils import console, format_error_message
from clawdbot.memory import get_memory_search_manager

if TYPE_CHECKING:
    from clawdbot.config import ClawdbotConfig
    from clawdbot.context import CommandContext
    from clawdbot.plugins import PluginRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HealthCommand:
    """``health``."""

    json: bool = False
    verbose: bool = False
    timeout_ms: int | None = None


@dataclass
class HealthCheck:
    """Outcome of one check."""

    name: str
    ok: bool
    detail: str


def _check_config(context: CommandContext) -> HealthCheck:
    if context.config_path is None:
        return HealthCheck("config", ok=True, detail="no config file, using defaults")
    return HealthCheck("config", ok=True, detail=str(context.config_path))


def _check_state_dir() -> HealthCheck:
    state_dir = resolve_state_dir()
    if not state_dir.exists():
        return HealthCheck("state", ok=False, detail=f"{state_dir} is missing")
    if not os.access(state_dir, os.W_OK):
        return HealthCheck("state", ok=False, detail=f"{state_dir} is not writable")
    return HealthCheck("state", ok=True, detail=str(state_dir))


def _check_workspace(cfg: ClawdbotConfig, agent_id: str) -> HealthCheck:
    workspace = resolve_agent_workspace(cfg, agent_id)
    name = f"workspace:{agent_id}"
    if workspace.is_dir():
        return HealthCheck(name, ok=True, detail=str(workspace))
    return HealthCheck(name, ok=False, detail=f"{workspace} is missing")


def _check_plugins(registry: PluginRegistry) -> HealthCheck:
    if registry.failed:
        names = ", ".join(f"{p.name} ({p.error})" for p in registry.failed)
        return HealthCheck("plugins", ok=False, detail=f"failed to load: {names}")
    return HealthCheck("plugins", ok=True, detail=f"{len(registry.loaded)} loaded")


async def _check_memory(cfg: ClawdbotConfig, agent_id: str, timeout_s: float) -> HealthCheck:
    name = f"memory:{agent_id}"
    result = await get_memory_search_manager(cfg, agent_id)
    if result.manager is None:
        # Not an error: memory search is optional.
        return HealthCheck(name, ok=True, detail=result.error or "disabled")
    manager = result.manager
    try:
        available = await asyncio.wait_for(manager.probe_vector_availability(), timeout_s)
    except TimeoutError:
        return HealthCheck(name, ok=False, detail=f"probe timed out after {timeout_s:g}s")
    except Exception as e:
        return HealthCheck(name, ok=False, detail=format_error_message(e))
    finally:
        try:
            await manager.close()
        except Exception as e:
            logger.warning("Memory manager close failed for %s: %s", agent_id, e)
    return HealthCheck(name, ok=True, detail="vector ready" if available else "vector unavailable")


async def collect_health(
    context: CommandContext,
    cfg: ClawdbotConfig,
    *,
    timeout_ms: int | None = None,
) -> list[HealthCheck]:
    """Run every health check in order."""
    timeout_s = (timeout_ms or DEFAULT_HEALTH_TIMEOUT_MS) / 1000
    checks = [_check_config(context), _check_state_dir()]
    if context.plugins is not None:
        checks.append(_check_plugins(context.plugins))
    for agent_id in resolve_agent_ids(cfg):
        checks.append(_check_workspace(cfg, agent_id))
        checks.append(await _check_memory(cfg, agent_id, timeout_s))
    return checks


def print_health(checks: list[HealthCheck]) -> None:
    for check in checks:
        mark = "[bold green]✓[/bold green]" if check.ok else "[bold red]✗[/bold red]"
        console.print(
            f"{mark} [cyan]{escape(check.name)}[/cyan] [dim]{escape(check.detail)}[/dim]",
            soft_wrap=True,
        )


async def health_command(opts: HealthCommand, context: CommandContext) -> None:
    """Report whether clawdbot is ready to run."""
    cfg = await ensure_config_ready(context, migrate_state=False)
    context.set_verbose(opts.verbose)
    checks = await collect_health(context, cfg, timeout_ms=opts.timeout_ms)
    ok = all(check.ok for check in checks)
    if not ok:
        context.fail()

    if opts.json:
        print(json.dumps({"ok": ok, "checks": [asdict(c) for c in checks]}, indent=2))
        return
    print_health(checks)
    if ok:
        console.print("[bold green]Healthy[/bold green]")
    else:
        console.print("[bold red]Unhealthy[/bold red] [dim](run `clawdbot doctor`)[/dim]")
