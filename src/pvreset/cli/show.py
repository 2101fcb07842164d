"""pvreset show: print one decoded object."""

from __future__ import annotations

import typer

from pvreset.cli import _exitcodes as ec
from pvreset.cli._objects import to_document
from pvreset.cli._output import format_document, print_error
from pvreset.cli._storage import open_store_or_exit
from pvreset.codec import EnvelopeCodec
from pvreset.errors import CodecError, StorageBackendError
from pvreset.schema import persistent_volume_descriptor


def show_cmd(
    key: str = typer.Argument(..., help="Exact key, e.g. /registry/persistentvolumes/pv-1"),
    fmt: str = typer.Option("yaml", "--format", help="Output format: yaml or json"),
) -> None:
    """Decode and print the object stored under KEY."""
    from pvreset.cli import state

    if state.json_output:
        fmt = "json"
    if fmt not in ("yaml", "json"):
        print_error(f"Unsupported format '{fmt}' (expected yaml or json)")
        raise typer.Exit(ec.USAGE_ERROR)

    store = open_store_or_exit()
    try:
        value = store.get(key)
    except StorageBackendError as e:
        print_error(str(e))
        raise typer.Exit(ec.DATABASE_ERROR)
    finally:
        store.close()

    if value is None:
        print_error(f"Key not found: {key}")
        raise typer.Exit(ec.GENERAL_ERROR)

    try:
        decoded = EnvelopeCodec(persistent_volume_descriptor()).decode(value)
    except CodecError as e:
        print_error(str(e))
        raise typer.Exit(ec.CORRUPT_RECORD)

    typer.echo(format_document(to_document(decoded), fmt).rstrip("\n"))
