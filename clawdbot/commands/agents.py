"""``agents list``."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.table import Table

from clawdbot.config import resolve_agent_ids, resolve_agent_workspace, resolve_default_agent_id
from clawdbot.config_guard import ensure_config_ready
from clawdbot.core.utils import console

if TYPE_CHECKING:
    from clawdbot.config import ClawdbotConfig
    from clawdbot.context import CommandContext


@dataclass(frozen=True)
class AgentsListCommand:
    """``agents list``."""

    json: bool = False
    bindings: bool = False


def describe_agents(cfg: ClawdbotConfig, *, include_bindings: bool) -> list[dict[str, Any]]:
    """Summarize every configured agent (or the implicit default one)."""
    default_id = resolve_default_agent_id(cfg)
    names = {entry.id: entry.name for entry in cfg.agents.entries}
    summaries = []
    for agent_id in resolve_agent_ids(cfg):
        summary: dict[str, Any] = {
            "id": agent_id,
            "name": names.get(agent_id),
            "workspace": resolve_agent_workspace(cfg, agent_id).as_posix(),
            "default": agent_id == default_id,
        }
        if include_bindings:
            summary["bindings"] = [
                binding.describe() for binding in cfg.bindings if binding.agent_id == agent_id
            ]
        summaries.append(summary)
    return summaries


async def agents_list_command(opts: AgentsListCommand, context: CommandContext) -> None:
    """Print the configured agents."""
    cfg = await ensure_config_ready(context, migrate_state=True)
    agents = describe_agents(cfg, include_bindings=opts.bindings)

    if opts.json:
        print(json.dumps({"agents": agents}, indent=2))
        return

    table = Table(title="Agents")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Workspace", style="dim", overflow="fold")
    if opts.bindings:
        table.add_column("Bindings", style="yellow", overflow="fold")

    for agent in agents:
        agent_id = escape(agent["id"])
        if agent["default"]:
            agent_id = f"[bold]{agent_id}[/bold] [green](default)[/green]"
        row = [agent_id, escape(agent["name"] or "-"), escape(agent["workspace"])]
        if opts.bindings:
            row.append(escape(", ".join(agent["bindings"])) or "[dim]none[/dim]")
        table.add_row(*row)
    console.print(table)
