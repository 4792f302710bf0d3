import sqlite3
from contextlib import closing

import pytest

from sensordhs.compressed_store import (
    FULL_TABLE,
    RLE_TABLE,
    StorageError,
    format_timespec,
    initialize_full_storage,
    initialize_rle_storage,
    store_metadata,
    store_rle_metadata,
    store_rle_metadata_with_timespecs,
)
from sensordhs.timeutil import Timespec


class _Cursor:
    def __init__(self, conn):
        self._conn = conn

    def execute(self, query, params=None):
        if self._conn.fail:
            raise RuntimeError("statement failed")
        self._conn.statements.append((query, params))

    def close(self):
        pass


class _RecordingConnection:
    def __init__(self, fail=False):
        self.fail = fail
        self.statements = []
        self.commits = 0
        self.rollbacks = 0

    def cursor(self):
        return _Cursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1


@pytest.fixture
def db():
    with closing(sqlite3.connect(":memory:")) as conn:
        yield conn


def test_format_timespec_pads_nanoseconds():
    assert format_timespec(Timespec(5, 42)) == "5.000000042"


def test_format_timespec_round_trips_through_parts():
    ts = Timespec(1700000000, 123456789)
    sec, nsec = format_timespec(ts).split(".")
    assert (int(sec), int(nsec)) == (ts.sec, ts.nsec)
    assert len(nsec) == 9


def test_rle_storage_round_trip(db):
    initialize_rle_storage(db)
    initialize_rle_storage(db)
    store_rle_metadata(db, "2024-01-01 00:00:00", "2024-01-01 00:00:10", 3)
    rows = db.execute(f"SELECT start_time, end_time, run_length FROM {RLE_TABLE}").fetchall()
    assert rows == [("2024-01-01 00:00:00", "2024-01-01 00:00:10", 3)]


def test_rle_insert_without_table_raises(db):
    with pytest.raises(StorageError):
        store_rle_metadata(db, "a", "b", 1)


def test_full_storage_inserts_one_row(db):
    initialize_full_storage(db)
    store_metadata(db, Timespec(10, 20))
    assert db.execute(f"SELECT COUNT(*) FROM {FULL_TABLE}").fetchone() == (1,)


def test_full_insert_without_table_raises(db):
    with pytest.raises(StorageError):
        store_metadata(db, Timespec(1, 2))


def test_timespec_variant_passes_formatted_values():
    conn = _RecordingConnection()
    start, end = Timespec(1, 5), Timespec(2, 0)
    store_rle_metadata_with_timespecs(conn, start, end, 7)
    query, params = conn.statements[0]
    assert params == (format_timespec(start), format_timespec(end), "7")
    assert query.count("%s") == 3
    assert RLE_TABLE in query
    assert conn.commits == 1


def test_store_metadata_passes_formatted_timestamp():
    conn = _RecordingConnection()
    ts = Timespec(3, 4)
    store_metadata(conn, ts)
    assert conn.statements == [(conn.statements[0][0], (format_timespec(ts),))]
    assert FULL_TABLE in conn.statements[0][0]


def test_failure_rolls_back_and_raises():
    conn = _RecordingConnection(fail=True)
    with pytest.raises(StorageError):
        initialize_rle_storage(conn)
    assert conn.rollbacks == 1
    assert conn.commits == 0


def test_negative_run_length_rejected():
    conn = _RecordingConnection()
    with pytest.raises(ValueError):
        store_rle_metadata(conn, "a", "b", -1)
    assert conn.statements == []