"""Shared fixtures for CLI tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from pvreset.cli import app
from tests.conftest import PV_PREFIX, pv_envelope, seed_kine

if TYPE_CHECKING:
    from click.testing import Result


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_db(tmp_path):
    """A datastore laid out the way k3s stores PersistentVolumes."""
    db_path = str(tmp_path / "state.db")
    seed_kine(
        db_path,
        [
            (PV_PREFIX + "pv-bound", pv_envelope("pv-bound")),
            (PV_PREFIX + "pv-stuck", pv_envelope("pv-stuck", terminating=True, grace=30)),
            ("/registry/persistentvolumeclaims/default/data", b"k8s\x00\x0a\xff"),
        ],
    )
    return db_path


def invoke(runner: CliRunner, args: list[str], db_path: str | None = None) -> "Result":
    """Invoke CLI with --db injected before the subcommand."""
    if db_path:
        args = ["--db", db_path] + args
    return runner.invoke(app, args, catch_exceptions=False)
