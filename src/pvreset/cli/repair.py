"""pvreset repair: reset Terminating PersistentVolumes back to their previous status."""

from __future__ import annotations

from typing import Optional

import typer

from pvreset.cli import _exitcodes as ec
from pvreset.cli._output import print_error, print_json, print_rows
from pvreset.cli._storage import open_store_or_exit, resolve_config
from pvreset.errors import (
    CodecError,
    DeadlineExceededError,
    EncodingError,
    PvResetError,
    StorageBackendError,
    StoreWriteError,
)
from pvreset.pipeline import RepairPipeline, RepairReport
from pvreset.schema import persistent_volume_descriptor

PV_KEY_PREFIX = "/registry/persistentvolumes/"
REPORT_COLUMNS = ["key", "outcome", "detail"]


def repair_cmd(
    name: Optional[str] = typer.Argument(
        None, help="Reset only this PersistentVolume (overrides --selector)"
    ),
    selector: Optional[str] = typer.Option(
        None,
        "--selector",
        help="SQL LIKE pattern selecting the keys to scan [env: PVRESET_SELECTOR]",
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Overall deadline in seconds [env: PVRESET_TIMEOUT]"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Report what would change, write nothing"
    ),
    no_verify: bool = typer.Option(
        False, "--no-verify", help="Skip the byte-stability check before writing"
    ),
) -> None:
    """Clear deletionTimestamp/deletionGracePeriodSeconds on Terminating volumes."""
    from pvreset.cli import state

    config = resolve_config(
        selector=f"{PV_KEY_PREFIX}{name}" if name else selector,
        timeout_s=timeout,
        dry_run=dry_run,
        verify_round_trip=not no_verify,
    )

    store = open_store_or_exit()
    try:
        report = RepairPipeline(store, persistent_volume_descriptor(), config).run()
    except PvResetError as e:
        if e.report is not None:
            _print_report(e.report, state.json_output, error=str(e))
        elif state.json_output:
            print_json({"status": "error", "error": str(e)})
        if not state.json_output:
            print_error(str(e), key=e.key)
        raise typer.Exit(_exit_code(e))
    finally:
        store.close()

    _print_report(report, state.json_output)
    if name and not report.results:
        print_error(f"PersistentVolume '{name}' not found")
        raise typer.Exit(ec.GENERAL_ERROR)


def _exit_code(error: PvResetError) -> int:
    if isinstance(error, EncodingError):
        return ec.GENERAL_ERROR
    if isinstance(error, CodecError):
        return ec.CORRUPT_RECORD
    if isinstance(error, DeadlineExceededError):
        return ec.DEADLINE_EXCEEDED
    if isinstance(error, StoreWriteError):
        return ec.WRITE_ERROR
    if isinstance(error, StorageBackendError):
        return ec.DATABASE_ERROR
    return ec.GENERAL_ERROR


def _print_report(report: RepairReport, json_mode: bool, *, error: str | None = None) -> None:
    if json_mode:
        data = report.to_dict()
        data["status"] = "error" if error else "ok"
        if error:
            data["error"] = error
        print_json(data)
        return

    if report.results:
        rows = [
            {"key": r.key, "outcome": r.outcome.value, "detail": r.detail}
            for r in report.results
        ]
        print_rows(rows, REPORT_COLUMNS)
    verb = "Would reset" if report.dry_run else "Reset"
    typer.echo(
        f"{verb} {len(report.repaired)} volume(s), skipped {len(report.skipped)} "
        f"of {report.scanned} scanned."
    )
