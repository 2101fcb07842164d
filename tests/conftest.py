"""Shared test fixtures for pvreset tests.

Envelopes are built here with a minimal protobuf wire writer that mirrors the
byte layout the Kubernetes Go serializer produces (every string and the
creation timestamp always emitted, optional fields omitted when unset). The
codec under test never produces these bytes itself.
"""

from __future__ import annotations

import sqlite3

import pytest

from pvreset.schema import persistent_volume_descriptor
from pvreset.store import KineStore

PV_PREFIX = "/registry/persistentvolumes/"
CREATED_AT = 1_700_000_000
DELETED_AT = 1_700_086_400

# --- Wire writer ---


def varint(n: int) -> bytes:
    n &= (1 << 64) - 1
    out = bytearray()
    while True:
        byte = n & 0x7F
        n >>= 7
        if n:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def int_field(number: int, value: int) -> bytes:
    return varint(number << 3) + varint(value)


def bytes_field(number: int, payload: bytes) -> bytes:
    return varint(number << 3 | 2) + varint(len(payload)) + payload


def str_field(number: int, value: str) -> bytes:
    return bytes_field(number, value.encode())


def time_msg(seconds: int, nanos: int = 0) -> bytes:
    return int_field(1, seconds) + int_field(2, nanos)


def object_meta(
    name: str,
    *,
    uid: str = "8c2b7e0e-1111-4c1e-9a1b-000000000001",
    resource_version: str = "",
    deleted_at: int | None = None,
    grace: int | None = None,
    labels: dict[str, str] | None = None,
    finalizers: list[str] | None = None,
) -> bytes:
    out = (
        str_field(1, name)
        + str_field(2, "")
        + str_field(3, "")
        + str_field(4, "")
        + str_field(5, uid)
        + str_field(6, resource_version)
        + int_field(7, 0)
        + bytes_field(8, time_msg(CREATED_AT))
    )
    if deleted_at is not None:
        out += bytes_field(9, time_msg(deleted_at))
    if grace is not None:
        out += int_field(10, grace)
    for k, v in sorted((labels or {}).items()):
        out += bytes_field(11, str_field(1, k) + str_field(2, v))
    for f in finalizers or []:
        out += str_field(14, f)
    return out


def pv_spec(capacity: str = "10Gi", host_path: str = "/data/pv") -> bytes:
    capacity_entry = str_field(1, "storage") + bytes_field(2, str_field(1, capacity))
    source = bytes_field(3, str_field(1, host_path) + str_field(2, ""))  # hostPath
    claim_ref = (
        str_field(1, "PersistentVolumeClaim") + str_field(2, "default") + str_field(3, "data")
    )
    return (
        bytes_field(1, capacity_entry)
        + bytes_field(2, source)
        + str_field(3, "ReadWriteOnce")
        + bytes_field(4, claim_ref)
        + str_field(5, "Delete")
        + str_field(6, "local-path")
        + str_field(8, "Filesystem")
    )


def pv_status(phase: str = "Bound", transitioned_at: int | None = None) -> bytes:
    out = str_field(1, phase) + str_field(2, "") + str_field(3, "")
    if transitioned_at is not None:
        out += bytes_field(4, time_msg(transitioned_at))
    return out


def persistent_volume(
    name: str,
    *,
    deleted_at: int | None = None,
    grace: int | None = None,
    labels: dict[str, str] | None = None,
    finalizers: list[str] | None = None,
    phase: str = "Bound",
) -> bytes:
    meta = object_meta(
        name,
        resource_version="1234",
        deleted_at=deleted_at,
        grace=grace,
        labels=labels,
        finalizers=finalizers,
    )
    return (
        bytes_field(1, meta)
        + bytes_field(2, pv_spec())
        + bytes_field(3, pv_status(phase, transitioned_at=CREATED_AT))
    )


def envelope(raw: bytes, api_version: str = "v1", kind: str = "PersistentVolume") -> bytes:
    type_meta = str_field(1, api_version) + str_field(2, kind)
    return (
        b"k8s\x00"
        + bytes_field(1, type_meta)
        + bytes_field(2, raw)
        + str_field(3, "")
        + str_field(4, "")
    )


def pv_envelope(name: str, *, terminating: bool = False, **kwargs) -> bytes:
    """A PersistentVolume envelope; terminating ones carry the deletion marker fields."""
    if terminating:
        kwargs.setdefault("deleted_at", DELETED_AT)
        kwargs.setdefault("grace", 0)
    kwargs.setdefault("finalizers", ["kubernetes.io/pv-protection"])
    kwargs.setdefault("labels", {"app": "db", "tier": "storage"})
    return envelope(persistent_volume(name, **kwargs))


# --- Datastore helpers ---

KINE_SCHEMA = """
CREATE TABLE IF NOT EXISTS kine (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name INTEGER,
    created INTEGER,
    deleted INTEGER,
    create_revision INTEGER,
    prev_revision INTEGER,
    lease INTEGER,
    value BLOB,
    old_value BLOB
);
CREATE INDEX IF NOT EXISTS kine_name_index ON kine (name);
"""


def seed_kine(db_path: str, rows: list[tuple[str, bytes]]) -> None:
    """Create a kine table and insert (name, value) rows in order."""
    conn = sqlite3.connect(db_path)
    try:
        conn.executescript(KINE_SCHEMA)
        for name, value in rows:
            conn.execute(
                "INSERT INTO kine (name, created, deleted, create_revision, prev_revision, "
                "lease, value, old_value) VALUES (?, 1, 0, 0, 0, 0, ?, NULL)",
                (name, value),
            )
        conn.commit()
    finally:
        conn.close()


def read_kine(db_path: str) -> dict[str, bytes]:
    """All (name -> value) pairs, read with a fresh connection."""
    conn = sqlite3.connect(db_path)
    try:
        return {name: bytes(value) for name, value in conn.execute("SELECT name, value FROM kine")}
    finally:
        conn.close()


# --- Fixtures ---


@pytest.fixture
def descriptor():
    return persistent_volume_descriptor()


@pytest.fixture
def tmp_db(tmp_path):
    """Create a temporary SQLite database path."""
    return str(tmp_path / "state.db")


@pytest.fixture
def pv_rows():
    """/pv/a healthy, /pv/b terminating, /pvc/c terminating but outside the /pv/% selector."""
    return [
        ("/pv/a", pv_envelope("a")),
        ("/pv/b", pv_envelope("b", terminating=True, grace=30)),
        ("/pvc/c", pv_envelope("c", terminating=True)),
    ]


@pytest.fixture
def seeded_db(tmp_db, pv_rows):
    seed_kine(tmp_db, pv_rows)
    return tmp_db


@pytest.fixture
def store(seeded_db):
    s = KineStore(seeded_db)
    yield s
    s.close()
