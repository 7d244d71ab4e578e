"""Agent management CLI commands."""

from __future__ import annotations

from typing import Annotated

import typer

from clawdbot.cli import JSON_OUTPUT, app, get_command_context, run_command
from clawdbot.commands.agents import AgentsListCommand, agents_list_command

agents_app = typer.Typer(
    name="agents",
    help="Inspect configured agents.",
    no_args_is_help=True,
)

app.add_typer(agents_app, name="agents")


@agents_app.command("list")
def list_agents(
    ctx: typer.Context,
    json_output: Annotated[bool, JSON_OUTPUT] = False,
    bindings: Annotated[
        bool,
        typer.Option("--bindings", help="Show the routing bindings of each agent."),
    ] = False,
) -> None:
    """List configured agents."""
    opts = AgentsListCommand(json=json_output, bindings=bindings)
    run_command(ctx, agents_list_command(opts, get_command_context(ctx)))
