"""``status``: an overview of the local clawdbot installation."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.table import Table

from clawdbot import __version__
from clawdbot.commands.health import collect_health, print_health
from clawdbot.config import (
    resolve_agent_ids,
    resolve_default_agent_id,
    resolve_session_store_path,
    resolve_state_dir,
)
from clawdbot.config_guard import ensure_config_ready
from clawdbot.core.utils import console
from clawdbot.sessions import SessionStoreError, load_session_store

if TYPE_CHECKING:
    from clawdbot.config import ClawdbotConfig
    from clawdbot.context import CommandContext


@dataclass(frozen=True)
class StatusCommand:
    """``status``."""

    json: bool = False
    deep: bool = False
    all: bool = False
    usage: bool = False
    verbose: bool = False
    timeout_ms: int | None = None


def _agent_summary(cfg: ClawdbotConfig, agent_id: str, *, usage: bool) -> dict[str, Any]:
    store_path = resolve_session_store_path(cfg, agent_id)
    summary: dict[str, Any] = {"id": agent_id, "sessions": 0, "store": store_path.as_posix()}
    try:
        entries = load_session_store(store_path)
    except SessionStoreError as e:
        summary["error"] = str(e)
        return summary
    summary["sessions"] = len(entries)
    summary["last_updated"] = entries[0].updated_at if entries else None
    if usage:
        summary["input_tokens"] = sum(entry.input_tokens for entry in entries)
        summary["output_tokens"] = sum(entry.output_tokens for entry in entries)
    return summary


def build_status(
    context: CommandContext,
    cfg: ClawdbotConfig,
    *,
    all_agents: bool,
    usage: bool,
) -> dict[str, Any]:
    """Collect the status overview as plain data."""
    default_id = resolve_default_agent_id(cfg)
    agent_ids = resolve_agent_ids(cfg) if all_agents else [default_id]
    plugins = context.plugins
    return {
        "version": __version__,
        "config_path": context.config_path.as_posix() if context.config_path else None,
        "state_dir": resolve_state_dir().as_posix(),
        "default_agent": default_id,
        "agent_count": len(resolve_agent_ids(cfg)),
        "memory_enabled": cfg.memory.enabled and bool(cfg.memory.manager),
        "plugins": [p.name for p in plugins.loaded] if plugins else [],
        "agents": [_agent_summary(cfg, agent_id, usage=usage) for agent_id in agent_ids],
    }


def _print_status(data: dict[str, Any], *, usage: bool) -> None:
    console.print(f"[bold]ClawdBot[/bold] [dim]{escape(data['version'])}[/dim]")
    rows = [
        ("Config", data["config_path"] or "defaults"),
        ("State", data["state_dir"]),
        ("Default agent", data["default_agent"]),
        ("Agents", str(data["agent_count"])),
        ("Memory search", "enabled" if data["memory_enabled"] else "disabled"),
        ("Plugins", ", ".join(data["plugins"]) or "none"),
    ]
    for label, value in rows:
        console.print(f"[dim]{label}:[/dim] [cyan]{escape(value)}[/cyan]", soft_wrap=True)

    table = Table(title="Sessions")
    table.add_column("Agent", style="cyan")
    table.add_column("Sessions", justify="right")
    if usage:
        table.add_column("Input tokens", justify="right")
        table.add_column("Output tokens", justify="right")
    for agent in data["agents"]:
        count = str(agent["sessions"]) if "error" not in agent else "[red]error[/red]"
        row = [escape(agent["id"]), count]
        if usage:
            row.extend([str(agent.get("input_tokens", 0)), str(agent.get("output_tokens", 0))])
        table.add_row(*row)
    console.print(table)


async def status_command(opts: StatusCommand, context: CommandContext) -> None:
    """Print the status overview, optionally with the health checks."""
    cfg = await ensure_config_ready(context, migrate_state=False)
    context.set_verbose(opts.verbose)
    data = build_status(context, cfg, all_agents=opts.all, usage=opts.usage)
    checks = await collect_health(context, cfg, timeout_ms=opts.timeout_ms) if opts.deep else None
    if checks is not None and not all(check.ok for check in checks):
        context.fail()

    if opts.json:
        if checks is not None:
            data["health"] = [asdict(check) for check in checks]
        print(json.dumps(data, indent=2))
        return

    _print_status(data, usage=opts.usage)
    if checks is not None:
        console.print()
        console.print("[bold]Health[/bold]")
        print_health(checks)
