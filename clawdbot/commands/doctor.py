"""``doctor``: repair what can be repaired and report the rest."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from rich.markup import escape

from clawdbot.commands.health import collect_health, print_health
from clawdbot.config import resolve_agent_ids, resolve_agent_workspace, resolve_state_dir
from clawdbot.config_guard import ensure_config_ready
from clawdbot.core.utils import console
from clawdbot.plugins import ensure_plugin_registry_loaded

if TYPE_CHECKING:
    from clawdbot.context import CommandContext


@dataclass(frozen=True)
class DoctorCommand:
    """``doctor``."""

    fix: bool = True


async def doctor_command(opts: DoctorCommand, context: CommandContext) -> None:
    """Check the installation, creating missing directories when ``fix`` is set."""
    cfg = await ensure_config_ready(context, migrate_state=opts.fix)
    ensure_plugin_registry_loaded(context)

    for path in context.migrated_paths:
        console.print(f"[green]Migrated[/green] {escape(str(path))}", soft_wrap=True)

    if opts.fix:
        directories = [resolve_state_dir()]
        directories += [
            resolve_agent_workspace(cfg, agent_id) for agent_id in resolve_agent_ids(cfg)
        ]
        for directory in directories:
            if not directory.exists():
                directory.mkdir(parents=True, exist_ok=True)
                console.print(f"[green]Created[/green] {escape(str(directory))}", soft_wrap=True)

    checks = await collect_health(context, cfg)
    print_health(checks)
    if all(check.ok for check in checks):
        console.print("[bold green]No problems found[/bold green]")
    else:
        context.fail()
