"""``sessions``: list the conversation sessions of the default agent."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from rich.markup import escape
from rich.table import Table

from clawdbot.argv import parse_positive_int
from clawdbot.config import resolve_default_agent_id, resolve_session_store_path
from clawdbot.config_guard import ensure_config_ready
from clawdbot.core.utils import console, err_console
from clawdbot.sessions import SessionStoreError, filter_active, load_session_store

if TYPE_CHECKING:
    from clawdbot.context import CommandContext
    from clawdbot.sessions import SessionEntry


@dataclass(frozen=True)
class SessionsCommand:
    """``sessions``; ``active`` is a number of minutes."""

    json: bool = False
    verbose: bool = False
    store: str | None = None
    active: str | None = None


def _format_updated(entry: SessionEntry) -> str:
    if entry.updated_at is None:
        return "-"
    moment = datetime.fromtimestamp(entry.updated_at / 1000, tz=UTC).astimezone()
    return moment.strftime("%Y-%m-%d %H:%M")


async def sessions_command(opts: SessionsCommand, context: CommandContext) -> None:
    """List sessions from the session store, newest first."""
    cfg = await ensure_config_ready(context, migrate_state=False)
    context.set_verbose(opts.verbose)
    agent_id = resolve_default_agent_id(cfg)
    store_path = resolve_session_store_path(cfg, agent_id, opts.store)

    active_minutes = None
    if opts.active is not None:
        active_minutes = parse_positive_int(opts.active)
        if active_minutes is None:
            err_console.print("[bold red]Error:[/bold red] --active must be a positive integer")
            context.fail()
            return

    try:
        entries = load_session_store(store_path)
    except SessionStoreError as e:
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        context.fail()
        return
    if active_minutes is not None:
        entries = filter_active(entries, active_minutes)

    if opts.json:
        data = {
            "path": store_path.as_posix(),
            "count": len(entries),
            "active_minutes": active_minutes,
            "sessions": [entry.model_dump(mode="json") for entry in entries],
        }
        print(json.dumps(data, indent=2))
        return

    console.print(f"[dim]Session store:[/dim] {escape(str(store_path))}", soft_wrap=True)
    if active_minutes is not None:
        console.print(f"[dim]Active within:[/dim] {active_minutes} minute(s)")
    if not entries:
        console.print("[dim]No sessions found[/dim]")
        return

    table = Table(title=f"Sessions ({len(entries)})")
    table.add_column("Key", style="cyan", overflow="fold")
    table.add_column("Updated", style="green")
    table.add_column("Model", style="magenta")
    table.add_column("Tokens", justify="right")
    if opts.verbose:
        table.add_column("Session ID", style="dim", overflow="fold")
    for entry in entries:
        row = [
            escape(entry.key),
            _format_updated(entry),
            escape(entry.model or "-"),
            str(entry.total_tokens),
        ]
        if opts.verbose:
            row.append(escape(entry.session_id or "-"))
        table.add_row(*row)
    console.print(table)
