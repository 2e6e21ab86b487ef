"""
Root Typer application for the resource-spine CLI.

Every command opens one connection, runs one operation and closes the
connection (committing its transaction) before printing.
"""

from __future__ import annotations

import json

import typer
from typer import Typer

from resource_spine.cli.utils import (
    cli_errors,
    console,
    make_connection,
    output_row,
    output_rows,
    parse_assignments,
    parse_value,
    resolve_settings,
)
from resource_spine.core.logging import configure_logging
from resource_spine.core.settings import get_settings

app = Typer(
    name="resource-spine",
    help="resource-spine: CRUD, converged attributes and locks over MySQL or SQLite.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from resource_spine import __version__

        typer.echo(f"resource-spine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    log_level: str | None = typer.Option(
        None, "--log-level", help="Log level for stderr logs (default WARNING)."
    ),
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """resource-spine CLI: read and write resources from the terminal."""
    settings = get_settings()
    # An explicitly configured level wins over the quiet CLI default
    if log_level is None:
        log_level = settings.log_level if "log_level" in settings.model_fields_set else "WARNING"
    configure_logging(
        level=log_level,
        json_format=settings.log_format == "json",
        to_stderr=True,
    )


# ── Commands ─────────────────────────────────────────────────────────────


@app.command()
def read(
    resource: str = typer.Argument(..., help="Resource (table) name"),
    where: list[str] | None = typer.Argument(None, help="Filters as key=value"),
    column: list[str] | None = typer.Option(None, "--column", "-c", help="Columns to return"),
    database: str | None = typer.Option(None, "--database", "-d", help="SQLite file path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Read rows matching every key=value filter."""
    with cli_errors():
        attributes = parse_assignments(where)
        with make_connection(database) as conn:
            rows = conn.read(resource, attributes, column)
    output_rows(rows, as_json=json_out, title=resource)


@app.command()
def create(
    resource: str = typer.Argument(..., help="Resource (table) name"),
    values: list[str] | None = typer.Argument(None, help="Attributes as key=value"),
    database: str | None = typer.Option(None, "--database", "-d", help="SQLite file path"),
    demo: bool = typer.Option(False, "--demo", help="Simulate without persisting"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Insert one row and print it as stored."""
    with cli_errors():
        attributes = parse_assignments(values)
        with make_connection(database, demo=demo) as conn:
            row = conn.create(resource, attributes)
    output_row(row, as_json=json_out, title=f"Created {resource}")


@app.command()
def update(
    resource: str = typer.Argument(..., help="Resource (table) name"),
    values: list[str] = typer.Argument(..., help="Attributes as key=value, including <table>_id"),
    database: str | None = typer.Option(None, "--database", "-d", help="SQLite file path"),
    demo: bool = typer.Option(False, "--demo", help="Simulate without persisting"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Update one row by primary key and print it as stored."""
    with cli_errors():
        attributes = parse_assignments(values)
        with make_connection(database, demo=demo) as conn:
            row = conn.update(resource, attributes)
    output_row(row, as_json=json_out, title=f"Updated {resource}")


@app.command()
def delete(
    resource: str = typer.Argument(..., help="Resource (table) name"),
    id_: str = typer.Argument(..., metavar="ID", help="Primary key value"),
    database: str | None = typer.Option(None, "--database", "-d", help="SQLite file path"),
    demo: bool = typer.Option(False, "--demo", help="Count instead of deleting"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Delete one row by primary key and print the affected row count."""
    with cli_errors():
        with make_connection(database, demo=demo) as conn:
            count = conn.delete(resource, parse_value(id_))
    if json_out:
        console.print_json(json.dumps({"deleted": count, "demo": demo}))
    else:
        verb = "Would delete" if demo else "Deleted"
        console.print(f"{verb} [bold]{count}[/bold] row(s) from {resource}")


@app.command()
def settings(
    database: str | None = typer.Option(None, "--database", "-d", help="SQLite file path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show the resolved settings (password masked)."""
    resolved = resolve_settings(database).model_dump(mode="json")
    if resolved.get("database_password"):
        resolved["database_password"] = "***"
    output_row(resolved, as_json=json_out, title="Settings")
