"""pvreset list: show matching volumes and whether they are stuck in Terminating."""

from __future__ import annotations

from typing import Any, Optional

import typer

from pvreset.cli import _exitcodes as ec
from pvreset.cli._objects import summarize
from pvreset.cli._output import print_error, print_rows
from pvreset.cli._storage import open_store_or_exit, resolve_config
from pvreset.codec import EnvelopeCodec
from pvreset.errors import CodecError, StorageBackendError
from pvreset.schema import persistent_volume_descriptor

COLUMNS = ["key", "name", "phase", "terminating", "deletion_timestamp", "grace_period_s", "error"]


def list_cmd(
    selector: Optional[str] = typer.Option(
        None,
        "--selector",
        help="SQL LIKE pattern selecting the keys to scan [env: PVRESET_SELECTOR]",
    ),
    terminating: bool = typer.Option(
        False, "--terminating", help="Only show volumes with a deletion timestamp"
    ),
) -> None:
    """List volumes matching the selector. Never writes."""
    from pvreset.cli import state

    config = resolve_config(selector=selector)
    codec = EnvelopeCodec(persistent_volume_descriptor())
    store = open_store_or_exit()
    rows: list[dict[str, Any]] = []
    try:
        for record in store.scan(config.selector):
            row: dict[str, Any] = dict.fromkeys(COLUMNS)
            row["key"] = record.key
            try:
                row.update(summarize(codec.decode(record.value).obj))
            except CodecError as e:
                # Listing is read-only, so a corrupt record is reported, not fatal.
                row["error"] = str(e)
            if terminating and row["terminating"] is not True:
                continue
            rows.append(row)
    except StorageBackendError as e:
        print_error(str(e))
        raise typer.Exit(ec.DATABASE_ERROR)
    finally:
        store.close()

    if not rows and not state.json_output:
        typer.echo("No matching volumes.")
        return
    print_rows(rows, COLUMNS, json_mode=state.json_output)
