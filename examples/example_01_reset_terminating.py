"""Example 01: Resetting a Terminating PersistentVolume.

This example walks through one repair pass end to end:
- Building PersistentVolume objects from the registered schema descriptor
- Encoding them into kine rows the way the apiserver stores them
- Listing which volumes are stuck in Terminating
- Running a dry run, then the real repair, then a second (no-op) run
"""

import logging
import os
import sqlite3

from pvreset import (
    DecodedObject,
    EnvelopeCodec,
    KineStore,
    RepairConfig,
    RepairPipeline,
    needs_repair,
    persistent_volume_descriptor,
)

DB_PATH = "tmp/example_state.db"
PREFIX = "/registry/persistentvolumes/"


def make_volume(descriptor, name, terminating):
    """Build a PersistentVolume with (optionally) the deletion marker set."""
    pv = descriptor.new_object()
    pv.metadata.name = name
    pv.metadata.uid = f"uid-{name}"
    pv.metadata.resource_version = "100"
    pv.metadata.creation_timestamp.seconds = 1_700_000_000
    pv.metadata.creation_timestamp.nanos = 0
    if terminating:
        pv.metadata.deletion_timestamp.seconds = 1_700_086_400
        pv.metadata.deletion_timestamp.nanos = 0
        pv.metadata.deletion_grace_period_seconds = 0
    pv.status.phase = "Bound"
    return pv


def seed(codec, descriptor):
    if os.path.exists(DB_PATH):
        os.remove(DB_PATH)
    os.makedirs(os.path.dirname(DB_PATH), exist_ok=True)
    conn = sqlite3.connect(DB_PATH)
    conn.execute(
        "CREATE TABLE kine (id INTEGER PRIMARY KEY AUTOINCREMENT, name INTEGER, value BLOB)"
    )
    for name, terminating in [("pv-logs", False), ("pv-db", True), ("pv-cache", True)]:
        obj = make_volume(descriptor, name, terminating)
        value = codec.encode(DecodedObject(gvk=descriptor.gvk, obj=obj))
        conn.execute("INSERT INTO kine (name, value) VALUES (?, ?)", (PREFIX + name, value))
    conn.commit()
    conn.close()


def show_status(store, codec):
    for record in store.scan(PREFIX + "%"):
        obj = codec.decode(record.value).obj
        state = "Terminating" if needs_repair(obj) else obj.status.phase
        print(f"  {record.key:45} {state}")


def main():
    """Run the reset example."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    print("=" * 80)
    print("EXAMPLE 01: RESET TERMINATING PERSISTENT VOLUMES")
    print("=" * 80)

    descriptor = persistent_volume_descriptor()
    codec = EnvelopeCodec(descriptor)
    seed(codec, descriptor)
    print(f"\n✓ Seeded {DB_PATH}")

    with KineStore(DB_PATH) as store:
        print("\nBefore:")
        show_status(store, codec)

        print("\nDry run:")
        report = RepairPipeline(store, descriptor, RepairConfig(dry_run=True)).run()
        print(f"  would reset: {report.repaired}")

        print("\nRepair:")
        report = RepairPipeline(store, descriptor, RepairConfig()).run()
        print(f"  reset: {report.repaired}")
        print(f"  skipped: {report.skipped}")

        print("\nSecond run (idempotent):")
        report = RepairPipeline(store, descriptor, RepairConfig()).run()
        print(f"  reset: {report.repaired}")

        print("\nAfter:")
        show_status(store, codec)


if __name__ == "__main__":
    main()
