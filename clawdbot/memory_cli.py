"""Memory search CLI commands."""

from __future__ import annotations

from typing import Annotated

import typer

from clawdbot.cli import JSON_OUTPUT, app, get_command_context, run_command
from clawdbot.commands.memory import (
    MemoryIndexCommand,
    MemorySearchCommand,
    MemoryStatusCommand,
    run_memory_index,
    run_memory_search,
    run_memory_status,
)

memory_app = typer.Typer(
    name="memory",
    help="Memory search tools.\n\nDocs: https://docs.clawd.bot/cli/memory",
    no_args_is_help=True,
)

app.add_typer(memory_app, name="memory")

AGENT = typer.Option("--agent", help="Agent id (default: default agent).")
VERBOSE = typer.Option("--verbose", help="Verbose logging.")


@memory_app.command("status")
def status(
    ctx: typer.Context,
    agent: Annotated[str | None, AGENT] = None,
    json_output: Annotated[bool, JSON_OUTPUT] = False,
    deep: Annotated[
        bool,
        typer.Option("--deep", help="Probe embedding provider availability."),
    ] = False,
    index: Annotated[
        bool,
        typer.Option("--index", help="Reindex if dirty (implies --deep)."),
    ] = False,
    verbose: Annotated[bool, VERBOSE] = False,
) -> None:
    """Show memory search index status."""
    opts = MemoryStatusCommand(
        agent=agent,
        json=json_output,
        deep=deep,
        index=index,
        verbose=verbose,
    )
    run_command(ctx, run_memory_status(opts, get_command_context(ctx)))


@memory_app.command("index")
def index(
    ctx: typer.Context,
    agent: Annotated[str | None, AGENT] = None,
    force: Annotated[bool, typer.Option("--force", help="Force full reindex.")] = False,
    verbose: Annotated[bool, VERBOSE] = False,
) -> None:
    """Reindex memory files."""
    opts = MemoryIndexCommand(agent=agent, force=force, verbose=verbose)
    run_command(ctx, run_memory_index(opts, get_command_context(ctx)))


@memory_app.command("search")
def search(
    ctx: typer.Context,
    query: Annotated[str, typer.Argument(help="Search query.")],
    agent: Annotated[str | None, AGENT] = None,
    max_results: Annotated[
        int | None,
        typer.Option("--max-results", min=1, help="Max results."),
    ] = None,
    min_score: Annotated[float | None, typer.Option("--min-score", help="Minimum score.")] = None,
    json_output: Annotated[bool, JSON_OUTPUT] = False,
) -> None:
    """Search memory files."""
    opts = MemorySearchCommand(
        query=query,
        agent=agent,
        max_results=max_results,
        min_score=min_score,
        json=json_output,
    )
    run_command(ctx, run_memory_search(opts, get_command_context(ctx)))
