"""Per-invocation state threaded through dispatch and command handlers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from clawdbot.core.utils import setup_logging

if TYPE_CHECKING:
    from pathlib import Path

    from clawdbot.config import ClawdbotConfig
    from clawdbot.plugins import PluginRegistry


@dataclass
class CommandContext:
    """Everything a single CLI invocation shares between its stages.

    One instance is created per process in `clawdbot.cli.run` and handed to
    the route-first dispatcher or, as ``ctx.obj``, to the Typer command tree.
    """

    argv: list[str]
    verbose: bool = False
    exit_code: int = 0
    process_title: str | None = None
    banner_emitted: bool = False
    config: ClawdbotConfig | None = None
    config_path: Path | None = None
    state_migrated: bool = False
    migrated_paths: list[Path] = field(default_factory=list)
    plugins: PluginRegistry | None = None

    def set_verbose(self, verbose: bool) -> None:
        """Record verbosity and raise logging to DEBUG when enabled."""
        self.verbose = verbose
        if verbose:
            setup_logging(verbose=True)

    def fail(self, code: int = 1) -> None:
        """Record a reported failure without interrupting the command."""
        self.exit_code = code
