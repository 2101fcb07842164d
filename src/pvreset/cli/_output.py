"""Output formatting helpers for the CLI."""

from __future__ import annotations

import json
from typing import Any

import typer
import yaml


def _cell(value: Any) -> str:
    if value is None or value == "":
        return "-"
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


def print_rows(rows: list[dict[str, Any]], columns: list[str], *, json_mode: bool = False) -> None:
    """Print one line per record, or the rows as a JSON array.

    JSON keeps the raw values; text mode shows booleans as yes/no and blanks as ``-``.
    """
    if json_mode:
        typer.echo(json.dumps([{c: row.get(c) for c in columns} for row in rows], indent=2))
        return

    cells = [[_cell(row.get(c)) for c in columns] for row in rows]
    widths = [max([len(c)] + [len(r[i]) for r in cells]) for i, c in enumerate(columns)]
    typer.echo("  ".join(c.upper().ljust(w) for c, w in zip(columns, widths)).rstrip())
    for r in cells:
        typer.echo("  ".join(v.ljust(w) for v, w in zip(r, widths)).rstrip())


def print_json(data: dict[str, Any]) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))


def format_document(data: dict[str, Any], fmt: str) -> str:
    """Render a nested mapping as YAML or JSON."""
    if fmt == "yaml":
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
    return json.dumps(data, indent=2, default=str)


def print_error(msg: str, *, key: str | None = None) -> None:
    """Print an error to stderr, naming the record it concerns when known."""
    where = f" [{key}]" if key else ""
    typer.echo(f"Error{where}: {msg}", err=True)
