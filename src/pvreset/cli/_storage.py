"""CLI helpers for building the run configuration and opening the datastore."""

from __future__ import annotations

import dataclasses
from typing import Any

import typer

from pvreset.cli import _exitcodes as ec
from pvreset.cli._output import print_error
from pvreset.config import RepairConfig, config_from_env
from pvreset.errors import ConfigError, StorageBackendError
from pvreset.store import KineStore, open_store


def resolve_db() -> tuple[str, str]:
    """Return (db_path, table) from CLI state."""
    from pvreset.cli import state

    return state.db, state.table


def resolve_config(**overrides: Any) -> RepairConfig:
    """Build a validated config: PVRESET_* defaults, then global and command options.

    Options left as None fall through to the environment. Exits with USAGE_ERROR
    on an invalid combination.
    """
    _, table = resolve_db()
    given = {k: v for k, v in overrides.items() if v is not None}
    try:
        return dataclasses.replace(config_from_env(), table=table, **given).validate()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)


def open_store_or_exit() -> KineStore:
    """Open the selected datastore, exiting with DATABASE_ERROR on failure."""
    db_path, table = resolve_db()
    try:
        return open_store(db_path, table=table)
    except StorageBackendError as e:
        print_error(f"Cannot open datastore: {e.detail}")
        raise typer.Exit(ec.DATABASE_ERROR)
