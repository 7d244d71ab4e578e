"""Startup banner."""

from __future__ import annotations

from typing import TYPE_CHECKING

from clawdbot.argv import has_flag
from clawdbot.core.utils import err_console

if TYPE_CHECKING:
    from collections.abc import Sequence

    from clawdbot.context import CommandContext


def format_banner(version: str) -> str:
    return f"🦞 [bold]ClawdBot[/bold] [dim]{version}[/dim]"


def emit_cli_banner(
    version: str,
    context: CommandContext,
    *,
    argv: Sequence[str] | None = None,
) -> bool:
    """Print the banner once per invocation.

    Skipped when stderr is not a terminal or when the output is JSON.
    Returns True if the banner was printed.
    """
    if context.banner_emitted:
        return False
    argv = context.argv if argv is None else argv
    if has_flag(argv, "--json") or not err_console.is_terminal:
        return False
    context.banner_emitted = True
    err_console.print(format_banner(version))
    err_console.print()
    return True
