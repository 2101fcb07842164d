"""Example 02: Fail-fast Error Handling.

This example shows how a run reports problems:
- A corrupt record aborts the run with MalformedEnvelopeError
- Repairs committed before the failure stay committed
- The partial report travels on the raised error
- Re-running after fixing the data finishes the job
"""

import os
import sqlite3

from pvreset import (
    DecodedObject,
    EnvelopeCodec,
    MalformedEnvelopeError,
    RepairConfig,
    RepairPipeline,
    open_store,
    persistent_volume_descriptor,
)

DB_PATH = "tmp/example_errors.db"
PREFIX = "/registry/persistentvolumes/"


def terminating_volume(codec, descriptor, name):
    pv = descriptor.new_object()
    pv.metadata.name = name
    pv.metadata.deletion_timestamp.seconds = 1_700_086_400
    pv.metadata.deletion_grace_period_seconds = 0
    return codec.encode(DecodedObject(gvk=descriptor.gvk, obj=pv))


def main():
    """Run the error handling example."""
    print("=" * 80)
    print("EXAMPLE 02: FAIL-FAST ERROR HANDLING")
    print("=" * 80)

    descriptor = persistent_volume_descriptor()
    codec = EnvelopeCodec(descriptor)

    if os.path.exists(DB_PATH):
        os.remove(DB_PATH)
    os.makedirs(os.path.dirname(DB_PATH), exist_ok=True)
    conn = sqlite3.connect(DB_PATH)
    conn.execute("CREATE TABLE kine (name INTEGER, value BLOB)")
    rows = [
        (PREFIX + "pv-1", terminating_volume(codec, descriptor, "pv-1")),
        (PREFIX + "pv-2", b"truncated write"),
        (PREFIX + "pv-3", terminating_volume(codec, descriptor, "pv-3")),
    ]
    conn.executemany("INSERT INTO kine VALUES (?, ?)", rows)
    conn.commit()

    store = open_store(DB_PATH)
    try:
        RepairPipeline(store, descriptor, RepairConfig()).run()
    except MalformedEnvelopeError as e:
        print(f"\n✗ Run aborted at {e.key}: {e}")
        print(f"  already reset: {e.report.repaired}")

    print("\nRemoving the corrupt record and retrying...")
    conn.execute("DELETE FROM kine WHERE name = ?", (PREFIX + "pv-2",))
    conn.commit()
    conn.close()

    report = RepairPipeline(store, descriptor, RepairConfig()).run()
    print(f"✓ reset: {report.repaired}, skipped: {report.skipped}")
    store.close()


if __name__ == "__main__":
    main()
