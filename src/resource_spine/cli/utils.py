"""
CLI utility helpers: argument parsing, output formatting and connections.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from resource_spine.core.connection import Connection, open_connection
from resource_spine.core.errors import SpineError
from resource_spine.core.settings import DatabaseBackend, StoreSettings, get_settings

console = Console()
err_console = Console(stderr=True)


# ── Argument parsing ─────────────────────────────────────────────────────


def parse_value(text: str) -> Any:
    """``null`` → None; JSON objects/arrays are parsed; anything else stays text."""
    if text == "null":
        return None
    if text[:1] in ("{", "["):
        try:
            return json.loads(text)
        except ValueError as e:
            raise typer.BadParameter(f"invalid JSON value: {text}") from e
    return text


def parse_assignments(pairs: list[str] | None) -> dict[str, Any]:
    """Turn ``["name=Hall", "floor=2"]`` into an attribute map."""
    attributes: dict[str, Any] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected key=value, got {pair!r}")
        attributes[key] = parse_value(value)
    return attributes


# ── Connection helper ────────────────────────────────────────────────────


def resolve_settings(database: str | None = None) -> StoreSettings:
    """Configured settings; ``--database PATH`` switches to that SQLite file."""
    settings = get_settings()
    if database:
        settings = settings.model_copy(
            update={"database_backend": DatabaseBackend.SQLITE, "database_path": database}
        )
    return settings


def make_connection(database: str | None = None, *, demo: bool = False) -> Connection:
    """Open a connection for one CLI command."""
    return open_connection(resolve_settings(database), demo=demo or None)


@contextmanager
def cli_errors() -> Iterator[None]:
    """Render :class:`SpineError` as a one-line message and exit 1."""
    try:
        yield
    except SpineError as e:
        err_console.print(f"[bold red]Error[/bold red] ({e.__class__.__name__}): {e.message}")
        context = e.context.to_dict()
        if context:
            err_console.print(f"[dim]{json.dumps(context, default=str)}[/dim]")
        raise typer.Exit(code=1) from e


# ── Output helpers ───────────────────────────────────────────────────────


def output_rows(rows: list[dict[str, Any]], *, as_json: bool = False, title: str = "") -> None:
    """Render rows as a Rich table (or JSON)."""
    if as_json:
        console.print_json(json.dumps(rows, default=str))
        return
    if not rows:
        console.print("[dim]No rows.[/dim]")
        return
    _print_table(rows, title=title)


def output_row(row: dict[str, Any], *, as_json: bool = False, title: str = "") -> None:
    """Render a single row as key-value pairs (or JSON)."""
    if as_json:
        console.print_json(json.dumps(row, default=str))
        return
    _print_dict(row, title=title)


# ── Private helpers ──────────────────────────────────────────────────────


def _print_table(rows: list[dict[str, Any]], *, title: str = "") -> None:
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in rows[0]:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*(_cell(v) for v in row.values()))
    console.print(table)


def _print_dict(data: dict[str, Any], *, title: str = "") -> None:
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {_cell(v)}")


def _cell(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return "null" if value is None else str(value)
