"""Tests for the kine store accessor."""

from __future__ import annotations

import sqlite3
import types

import pytest

from pvreset.errors import StorageBackendError, StoreWriteError
from pvreset.store import KineStore, Record, open_store
from tests.conftest import pv_envelope, read_kine, seed_kine


class TestScan:
    def test_selector_matches_prefix(self, store):
        assert [r.key for r in store.scan("/pv/%")] == ["/pv/a", "/pv/b"]

    def test_records_carry_bytes(self, store, pv_rows):
        records = list(store.scan("/pv/a"))
        assert records == [Record(key="/pv/a", value=pv_rows[0][1])]
        assert isinstance(records[0].value, bytes)

    def test_no_match(self, store):
        assert list(store.scan("/nothing/%")) == []

    def test_is_lazy(self, store):
        it = store.scan("%")
        assert isinstance(it, types.GeneratorType)
        assert next(it).key == "/pv/a"
        it.close()

    def test_abandoned_scan_does_not_block_writes(self, store, seeded_db):
        it = store.scan("/pv/%")
        next(it)
        store.update("/pv/b", b"new")
        it.close()
        assert read_kine(seeded_db)["/pv/b"] == b"new"

    def test_count(self, store):
        assert store.count("/pv/%") == 2
        assert store.count("%") == 3


class TestUpdate:
    def test_overwrites_value(self, store, seeded_db, pv_rows):
        assert store.update("/pv/b", b"patched") == 1
        contents = read_kine(seeded_db)
        assert contents["/pv/b"] == b"patched"
        assert contents["/pv/a"] == pv_rows[0][1]

    def test_visible_to_other_connections_immediately(self, store, seeded_db):
        store.update("/pv/a", b"x")
        assert read_kine(seeded_db)["/pv/a"] == b"x"

    def test_unknown_key_updates_nothing(self, store, seeded_db, pv_rows):
        assert store.update("/pv/missing", b"x") == 0
        assert read_kine(seeded_db) == dict(pv_rows)

    def test_all_revisions_of_a_key_are_overwritten(self, tmp_db):
        seed_kine(tmp_db, [("/pv/a", b"rev1"), ("/pv/a", b"rev2")])
        with KineStore(tmp_db) as s:
            assert s.update("/pv/a", b"fixed") == 2
        conn = sqlite3.connect(tmp_db)
        values = [bytes(v) for (v,) in conn.execute("SELECT value FROM kine")]
        conn.close()
        assert values == [b"fixed", b"fixed"]

    def test_failed_write_raises(self, store, seeded_db):
        conn = sqlite3.connect(seeded_db)
        conn.execute(
            "CREATE TRIGGER readonly BEFORE UPDATE ON kine "
            "BEGIN SELECT RAISE(ABORT, 'read-only datastore'); END"
        )
        conn.commit()
        conn.close()
        with pytest.raises(StoreWriteError) as exc_info:
            store.update("/pv/b", b"x")
        assert exc_info.value.name == "/pv/b"
        assert "read-only" in exc_info.value.detail


class TestGet:
    def test_get(self, store, pv_rows):
        assert store.get("/pv/b") == pv_rows[1][1]

    def test_get_missing(self, store):
        assert store.get("/pv/zzz") is None

    def test_get_latest_revision(self, tmp_db):
        seed_kine(tmp_db, [("/pv/a", b"rev1"), ("/pv/a", b"rev2")])
        with KineStore(tmp_db) as s:
            assert s.get("/pv/a") == b"rev2"


class TestOpen:
    def test_open_store(self, seeded_db):
        s = open_store(seeded_db)
        try:
            info = s.storage_info()
            assert info["backend"] == "sqlite"
            assert info["table"] == "kine"
            assert info["db_path"].endswith("state.db")
        finally:
            s.close()

    def test_missing_file(self, tmp_path):
        with pytest.raises(StorageBackendError, match="not found"):
            open_store(str(tmp_path / "missing.db"))

    def test_missing_table(self, tmp_db):
        sqlite3.connect(tmp_db).close()
        with pytest.raises(StorageBackendError, match="table 'kine' not found"):
            open_store(tmp_db)

    def test_invalid_table_name(self, seeded_db):
        with pytest.raises(StorageBackendError):
            KineStore(seeded_db, table="kine; DROP TABLE kine")

    def test_custom_table(self, tmp_db):
        conn = sqlite3.connect(tmp_db)
        conn.execute("CREATE TABLE etcd_kv (name TEXT, value BLOB)")
        conn.execute("INSERT INTO etcd_kv VALUES (?, ?)", ("/pv/a", pv_envelope("a")))
        conn.commit()
        conn.close()
        with open_store(tmp_db, table="etcd_kv") as s:
            assert [r.key for r in s.scan("/pv/%")] == ["/pv/a"]
