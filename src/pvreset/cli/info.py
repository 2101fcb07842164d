"""pvreset info: show datastore location and how many keys a selector matches."""

from __future__ import annotations

import os
from typing import Any, Optional

import typer

from pvreset.cli import _exitcodes as ec
from pvreset.cli._output import print_error, print_json
from pvreset.cli._storage import open_store_or_exit, resolve_config
from pvreset.errors import StorageBackendError


def info_cmd(
    selector: Optional[str] = typer.Option(
        None, "--selector", help="SQL LIKE pattern to count [env: PVRESET_SELECTOR]"
    ),
) -> None:
    """Show datastore status."""
    from pvreset.cli import state

    selector = resolve_config(selector=selector).selector
    store = open_store_or_exit()
    try:
        data: dict[str, Any] = store.storage_info()
        data["selector"] = selector
        data["matching_keys"] = store.count(selector)
    except StorageBackendError as e:
        print_error(str(e))
        raise typer.Exit(ec.DATABASE_ERROR)
    finally:
        store.close()

    if os.path.exists(data["db_path"]):
        data["file_size_bytes"] = os.path.getsize(data["db_path"])

    if state.json_output:
        print_json(data)
        return

    typer.echo(f"Backend: {data['backend']}")
    typer.echo(f"Database: {data['db_path']}")
    if "file_size_bytes" in data:
        typer.echo(f"File size: {int(data['file_size_bytes']):,} bytes")
    typer.echo(f"Table: {data['table']}")
    typer.echo(f"Keys matching '{selector}': {data['matching_keys']}")
