from __future__ import annotations

from typing import Any, Dict, Iterable

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _total(days: Dict[str, Any]) -> int:
    return sum(sum(counts) for counts in days.values())


def render_snapshot(snapshot: Dict[str, Any]) -> None:
    echo_heading("Intersections")
    if not snapshot:
        typer.echo("No data published yet.")
        return
    for name, entry in snapshot.items():
        days = entry.get("data") or {}
        typer.echo(f"  - {name}: {len(days)} day(s), {_total(days)} vehicles")


def render_intersection(name: str, entry: Dict[str, Any]) -> None:
    echo_heading(name)
    echo_key_values([("location", entry.get("location"))])

    days = entry.get("data") or {}
    typer.echo()
    echo_heading("Days")
    if not days:
        typer.echo("No counts recorded.")
        return
    last_day = list(days)[-1]
    for day, counts in days.items():
        # Only the most recent day is still filling up.
        marker = " (partial)" if day == last_day else ""
        typer.echo(f"  - {day}: {len(counts)} slots, {sum(counts)} vehicles{marker}")
