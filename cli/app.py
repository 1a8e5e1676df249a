from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_intersection, render_snapshot


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for inspecting the traffic counts service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:3001).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each HTTP request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("health")
def health_command(ctx: typer.Context) -> None:
    """Check that the service is up."""
    state = _get_state(ctx)
    message = state.client.health()
    typer.secho(message, fg=typer.colors.GREEN)


@app.command("snapshot")
def snapshot_command(ctx: typer.Context) -> None:
    """Summarize the latest published snapshot."""
    state = _get_state(ctx)
    render_snapshot(state.client.get_snapshot())


@app.command("intersection")
def intersection_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Intersection name as listed by the snapshot command."),
) -> None:
    """Show per-day slot counts and totals for one intersection."""
    state = _get_state(ctx)
    snapshot = state.client.get_snapshot()
    entry = snapshot.get(name)
    if entry is None:
        typer.secho(f"Intersection {name!r} is not in the snapshot.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    render_intersection(name, entry)
