"""Process title helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

import setproctitle

from clawdbot.constants import PROGRAM_NAME

if TYPE_CHECKING:
    import click


def set_process_title(name: str) -> str:
    """Set the OS-visible process title to ``clawdbot-<name>`` and return it."""
    title = f"{PROGRAM_NAME}-{name}"
    setproctitle.setproctitle(title)
    return title


def top_level_command_name(ctx: click.Context) -> str | None:
    """Return the name of the top-level command a context belongs to.

    Walks up the Click context chain until the parent is the root program.
    When called on the root context itself, the invoked subcommand is used.
    """
    current = ctx
    while current.parent is not None and current.parent.parent is not None:
        current = current.parent
    if current.parent is None:
        return current.invoked_subcommand
    name = current.info_name or (current.command.name if current.command else None)
    if not name or name == PROGRAM_NAME:
        return None
    return name
