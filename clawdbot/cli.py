"""The clawdbot command tree and process entry point."""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING, Annotated

import click
import typer

from clawdbot import __version__
from clawdbot.argv import (
    build_parse_argv,
    get_command_path,
    has_help_or_version,
    is_read_only_command,
)
from clawdbot.banner import emit_cli_banner
from clawdbot.commands.doctor import DoctorCommand, doctor_command
from clawdbot.commands.health import HealthCommand, health_command
from clawdbot.commands.sessions import SessionsCommand, sessions_command
from clawdbot.commands.status import StatusCommand, status_command
from clawdbot.config_guard import ensure_config_ready
from clawdbot.constants import PROGRAM_NAME
from clawdbot.context import CommandContext
from clawdbot.core.process import set_process_title, top_level_command_name
from clawdbot.core.utils import console, setup_logging
from clawdbot.plugins import ensure_plugin_registry_loaded
from clawdbot.route import try_route_cli

if TYPE_CHECKING:
    from collections.abc import Coroutine
    from typing import Any

app = typer.Typer(
    name=PROGRAM_NAME,
    help="Manage clawdbot agents, sessions and memory from the command line.",
    add_completion=True,
    rich_markup_mode="markdown",
)

# --- Shared options ---
JSON_OUTPUT = typer.Option("--json", help="Print JSON.")
VERBOSE = typer.Option("--verbose", "--debug", help="Verbose logging.")
TIMEOUT_MS = typer.Option("--timeout", min=1, help="Timeout in milliseconds.")


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"{PROGRAM_NAME} {__version__}")
        raise typer.Exit


def get_command_context(ctx: click.Context) -> CommandContext:
    """Return the invocation context created by `run` or the root callback."""
    context = ctx.find_object(CommandContext)
    if context is None:
        context = CommandContext(argv=build_parse_argv(PROGRAM_NAME, raw_args=sys.argv))
        ctx.find_root().obj = context
    return context


def run_command(ctx: click.Context, handler: Coroutine[Any, Any, None]) -> None:
    """Run an async handler and exit with the failure code it recorded."""
    context = get_command_context(ctx)
    asyncio.run(handler)
    if context.exit_code:
        raise typer.Exit(context.exit_code)


def pre_action(ctx: typer.Context, context: CommandContext) -> None:
    """Prepare the process before any subcommand body runs."""
    name = top_level_command_name(ctx)
    if name:
        context.process_title = set_process_title(name)
    emit_cli_banner(__version__, context)
    argv = context.argv
    if has_help_or_version(argv):
        return
    path = get_command_path(argv, 2)
    if path and path[0] == "doctor":
        return
    asyncio.run(ensure_config_ready(context, migrate_state=not is_read_only_command(argv)))


def _runs_action(ctx: typer.Context, argv: list[str]) -> bool:
    """Return False when the subcommand is a group invoked without one of its commands."""
    command = ctx.command.get_command(ctx, ctx.invoked_subcommand)
    return not isinstance(command, click.Group) or len(get_command_path(argv, 2)) > 1


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Annotated[  # noqa: ARG001
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=_version_callback,
            is_eager=True,
            help="Show the version and exit.",
        ),
    ] = False,
) -> None:
    """Manage clawdbot agents, sessions and memory."""
    if ctx.invoked_subcommand is None:
        console.print("[bold red]No command specified.[/bold red]")
        console.print("[bold yellow]Running --help for your convenience.[/bold yellow]")
        console.print(ctx.get_help())
        raise typer.Exit
    context = get_command_context(ctx)
    if _runs_action(ctx, context.argv):
        pre_action(ctx, context)


@app.command("health")
def health(
    ctx: typer.Context,
    json_output: Annotated[bool, JSON_OUTPUT] = False,
    verbose: Annotated[bool, VERBOSE] = False,
    timeout: Annotated[int | None, TIMEOUT_MS] = None,
) -> None:
    """Check configuration, state, agent workspaces and memory search."""
    context = get_command_context(ctx)
    ensure_plugin_registry_loaded(context)
    opts = HealthCommand(json=json_output, verbose=verbose, timeout_ms=timeout)
    run_command(ctx, health_command(opts, context))


@app.command("status")
def status(
    ctx: typer.Context,
    json_output: Annotated[bool, JSON_OUTPUT] = False,
    deep: Annotated[bool, typer.Option("--deep", help="Also run the health checks.")] = False,
    all_agents: Annotated[bool, typer.Option("--all", help="Show every agent.")] = False,
    usage: Annotated[bool, typer.Option("--usage", help="Show token usage.")] = False,
    verbose: Annotated[bool, VERBOSE] = False,
    timeout: Annotated[int | None, TIMEOUT_MS] = None,
) -> None:
    """Show an overview of agents, sessions and plugins."""
    context = get_command_context(ctx)
    ensure_plugin_registry_loaded(context)
    opts = StatusCommand(
        json=json_output,
        deep=deep,
        all=all_agents,
        usage=usage,
        verbose=verbose,
        timeout_ms=timeout,
    )
    run_command(ctx, status_command(opts, context))


@app.command("sessions")
def sessions(
    ctx: typer.Context,
    json_output: Annotated[bool, JSON_OUTPUT] = False,
    verbose: Annotated[bool, typer.Option("--verbose", help="Verbose logging.")] = False,
    store: Annotated[
        str | None,
        typer.Option("--store", help="Path to the session store (default: the default agent's)."),
    ] = None,
    active: Annotated[
        int | None,
        typer.Option("--active", min=1, help="Only sessions updated in the last N minutes."),
    ] = None,
) -> None:
    """List conversation sessions."""
    opts = SessionsCommand(
        json=json_output,
        verbose=verbose,
        store=store,
        active=str(active) if active is not None else None,
    )
    run_command(ctx, sessions_command(opts, get_command_context(ctx)))


@app.command("doctor")
def doctor(
    ctx: typer.Context,
    fix: Annotated[
        bool,
        typer.Option("--fix/--no-fix", help="Migrate state and create missing directories."),
    ] = True,
) -> None:
    """Diagnose the installation and repair what can be repaired."""
    run_command(ctx, doctor_command(DoctorCommand(fix=fix), get_command_context(ctx)))


def run() -> None:
    """Process entry point: try the fast path, then the full command tree."""
    import dotenv  # noqa: PLC0415

    dotenv.load_dotenv()
    setup_logging()
    argv = build_parse_argv(PROGRAM_NAME, raw_args=sys.argv)
    context = CommandContext(argv=argv)
    try:
        handled = asyncio.run(try_route_cli(argv, context))
    except (typer.Exit, click.exceptions.Exit) as e:
        sys.exit(e.exit_code)
    if handled:
        sys.exit(context.exit_code)
    app(args=argv[2:], prog_name=PROGRAM_NAME, obj=context)


# Import commands from other modules to register them
from clawdbot import agents_cli, memory_cli  # noqa: E402, F401
