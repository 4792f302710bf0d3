"""Storing metadata about runs of all-zero sensor data in a SQL database.

Functions take a DB-API 2.0 connection; the placeholder style follows the
driver's ``paramstyle`` (``format`` when it cannot be determined).
"""

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Sequence

from sensordhs.timeutil import Timespec

log = logging.getLogger(__name__)

RLE_TABLE = "ShaftPowerMetaDataRLEWhenZero"
FULL_TABLE = "FullMetaDataWhenZero"

_CREATE_RLE = (
    f"CREATE TABLE IF NOT EXISTS {RLE_TABLE} ("
    "id SERIAL PRIMARY KEY, "
    "start_time TIMESTAMP NOT NULL, "
    "end_time TIMESTAMP NOT NULL, "
    "run_length INT NOT NULL"
    ");"
)
_INSERT_RLE = f"INSERT INTO {RLE_TABLE} (start_time, end_time, run_length) values ({{}}, {{}}, {{}});"

_CREATE_FULL = (
    f"CREATE TABLE IF NOT EXISTS {FULL_TABLE}("
    "id SERIAL PRIMARY KEY, "
    "timestamp TIMESTAMP NOT NULL)"
)
_INSERT_FULL = f"INSERT INTO {FULL_TABLE} (timestamp) Values ({{}});"


class StorageError(Exception):
    """A statement against the metadata tables failed."""


def format_timespec(ts: Timespec) -> str:
    """Seconds and zero-padded nanoseconds, as in ``"12.000000034"``."""
    return f"{ts.sec}.{ts.nsec:09d}"


def _paramstyle(conn) -> str:
    module = inspect.getmodule(type(conn))
    return getattr(module, "paramstyle", "format")


def _bind(conn, query: str, values: Sequence[str]):
    style = _paramstyle(conn)
    count = len(values)
    if style == "qmark":
        marks, params = ["?"] * count, tuple(values)
    elif style == "format":
        marks, params = ["%s"] * count, tuple(values)
    elif style == "numeric":
        marks, params = [f":{i + 1}" for i in range(count)], tuple(values)
    elif style == "named":
        marks = [f":p{i}" for i in range(count)]
        params = {f"p{i}": value for i, value in enumerate(values)}
    elif style == "pyformat":
        marks = [f"%(p{i})s" for i in range(count)]
        params = {f"p{i}": value for i, value in enumerate(values)}
    else:
        raise StorageError(f"unsupported parameter style {style!r}")
    return query.format(*marks), params


def _execute(conn, query: str, params, what: str) -> None:
    try:
        cursor = conn.cursor()
        try:
            if params is None:
                cursor.execute(query)
            else:
                cursor.execute(query, params)
        finally:
            cursor.close()
        conn.commit()
    except Exception as exc:
        log.error("%s failed: %s", what, exc)
        with contextlib.suppress(Exception):
            conn.rollback()
        raise StorageError(f"{what} failed: {exc}") from exc
    log.info("%s succeeded.", what)


def _run_length_text(run_length: int) -> str:
    if isinstance(run_length, bool) or not isinstance(run_length, int):
        raise TypeError("run_length must be an integer")
    if run_length < 0:
        raise ValueError("run_length must not be negative")
    return str(run_length)


def initialize_rle_storage(conn) -> None:
    """Create the run-length table if it does not exist yet."""
    _execute(conn, _CREATE_RLE, None, f"Creating table {RLE_TABLE}")


def store_rle_metadata(conn, start: str, end: str, run_length: int) -> None:
    """Record a run of ``run_length`` zero blocks from ``start`` to ``end``."""
    query, params = _bind(conn, _INSERT_RLE, (start, end, _run_length_text(run_length)))
    _execute(conn, query, params, f"Insert into {RLE_TABLE}")


def store_rle_metadata_with_timespecs(
    conn, start: Timespec, end: Timespec, run_length: int
) -> None:
    """Record a run of zero blocks whose bounds are given as timestamps."""
    store_rle_metadata(conn, format_timespec(start), format_timespec(end), run_length)


def initialize_full_storage(conn) -> None:
    """Create the table of individual zero-block timestamps if it does not exist."""
    _execute(conn, _CREATE_FULL, None, f"Creating table {FULL_TABLE}")


def store_metadata(conn, timestamp: Timespec) -> None:
    """Record the timestamp of a single zero block."""
    query, params = _bind(conn, _INSERT_FULL, (format_timespec(timestamp),))
    _execute(conn, query, params, f"Insert into {FULL_TABLE}")