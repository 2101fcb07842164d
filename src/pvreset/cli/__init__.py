"""pvreset CLI: reset Terminating PersistentVolumes in a kine SQLite datastore."""

from __future__ import annotations

import logging

import typer

from pvreset.cli import info, list_cmd, repair, show
from pvreset.config import DEFAULT_TABLE, is_identifier

app = typer.Typer(
    name="pvreset",
    help="Reset Terminating PersistentVolumes back to their previous status.",
    no_args_is_help=True,
)


class _State:
    """Global CLI state shared across subcommands."""

    db: str = "state.db"
    table: str = DEFAULT_TABLE
    json_output: bool = False


state = _State()


def _version_callback(value: bool) -> None:
    if value:
        try:
            from importlib.metadata import version

            v = version("pvreset")
        except Exception:
            v = "unknown"
        typer.echo(f"pvreset {v}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    db: str = typer.Option(
        "state.db",
        "--db",
        envvar="PVRESET_DB",
        help="SQLite datastore file (k3s keeps it at /var/lib/rancher/k3s/server/db/state.db)",
    ),
    table: str = typer.Option(
        DEFAULT_TABLE, "--table", envvar="PVRESET_TABLE", help="Key/value table name"
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output when supported"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every skip/repair decision"),
    version: bool = typer.Option(
        False, "--version", help="Show version", is_eager=True, callback=_version_callback
    ),
) -> None:
    """Global options for all pvreset commands."""
    if not is_identifier(table):
        raise typer.BadParameter(f"not a plain SQL identifier: {table!r}", param_hint="--table")

    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    state.db = db
    state.table = table
    state.json_output = json_output
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


app.command(name="repair")(repair.repair_cmd)
app.command(name="list")(list_cmd.list_cmd)
app.command(name="show")(show.show_cmd)
app.command(name="info")(info.info_cmd)


def main() -> None:
    """Entry point for the pvreset CLI."""
    app()
