"""Make sure the configuration is loadable before a command touches it."""

from __future__ import annotations

import logging
import shutil
import tomllib
from typing import TYPE_CHECKING

import typer
from pydantic import ValidationError
from rich.markup import escape

from clawdbot.config import (
    load_config,
    resolve_config_path,
    resolve_default_agent_id,
    resolve_sessions_dir,
    resolve_state_dir,
)
from clawdbot.core.utils import err_console

if TYPE_CHECKING:
    from pathlib import Path

    from clawdbot.config import ClawdbotConfig
    from clawdbot.context import CommandContext

logger = logging.getLogger(__name__)


def _format_validation_issues(exc: ValidationError) -> list[str]:
    issues = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "<root>"
        issues.append(f"{location}: {error['msg']}")
    return issues


def migrate_legacy_state(cfg: ClawdbotConfig, state_dir: Path | None = None) -> list[Path]:
    """Move session files from ``<state>/sessions`` into the default agent.

    Files that already exist at the destination are left in place.
    Returns the destination paths of the moved files.
    """
    state_dir = state_dir or resolve_state_dir()
    legacy_dir = state_dir / "sessions"
    if not legacy_dir.is_dir():
        return []

    target_dir = resolve_sessions_dir(resolve_default_agent_id(cfg), state_dir)
    moved: list[Path] = []
    for source in sorted(legacy_dir.iterdir()):
        destination = target_dir / source.name
        if destination.exists():
            logger.debug("Skipping %s, %s already exists", source, destination)
            continue
        target_dir.mkdir(parents=True, exist_ok=True)
        shutil.move(str(source), destination)
        moved.append(destination)

    if not any(legacy_dir.iterdir()):
        legacy_dir.rmdir()
    if moved:
        logger.info("Migrated %d legacy session file(s) to %s", len(moved), target_dir)
    return moved


async def ensure_config_ready(context: CommandContext, *, migrate_state: bool) -> ClawdbotConfig:
    """Load and validate the config once, optionally migrating legacy state.

    Prints the problems and exits with status 1 when the file is invalid.
    """
    if context.config is None:
        config_path = resolve_config_path()
        try:
            context.config = load_config(str(config_path) if config_path else None)
        except tomllib.TOMLDecodeError as e:
            location = escape(str(config_path))
            err_console.print(f"[bold red]Config invalid:[/bold red] {location}: {escape(str(e))}")
            raise typer.Exit(1) from e
        except ValidationError as e:
            err_console.print(f"[bold red]Config invalid:[/bold red] {escape(str(config_path))}")
            for issue in _format_validation_issues(e):
                err_console.print(f"  [red]-[/red] {escape(issue)}")
            err_console.print("[dim]Run `clawdbot doctor` to inspect the configuration.[/dim]")
            raise typer.Exit(1) from e
        context.config_path = config_path
        logger.debug("Loaded config from %s", config_path or "<defaults>")

    if migrate_state and not context.state_migrated:
        context.migrated_paths = migrate_legacy_state(context.config)
        context.state_migrated = True

    return context.config
