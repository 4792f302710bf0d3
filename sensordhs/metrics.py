"""Timestamped metric samples kept in a ring and persisted to a binary file."""

from __future__ import annotations

import enum
import logging
import os
import struct
import threading
from dataclasses import dataclass

from sensordhs.timeutil import Timespec, monotonic

log = logging.getLogger(__name__)

MAX_SAMPLES = 4194304
FLUSH_INTERVAL = 40960

# One record on disk: int value, padding, seconds, nanoseconds.
SAMPLE_STRUCT = struct.Struct("<i4xqq")

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1


class MetricType(enum.IntEnum):
    """What a metric measures."""

    OCCUPANCY = 0
    INPUT_THROUGHPUT = 1
    BUFFER_WRITE_THROUGHPUT = 2
    BUFFER_READ_THROUGHPUT = 3
    OUTPUT_THROUGHPUT = 4


@dataclass(frozen=True)
class MetricSample:
    """A recorded value and the monotonic time it was recorded at."""

    data: int
    timestamp: Timespec

    def pack(self) -> bytes:
        return SAMPLE_STRUCT.pack(self.data, self.timestamp.sec, self.timestamp.nsec)

    @classmethod
    def unpack(cls, record: bytes) -> MetricSample:
        data, sec, nsec = SAMPLE_STRUCT.unpack(record)
        return cls(data, Timespec(sec, nsec))


class Metric:
    """A ring of at most ``max_samples`` samples, written to ``path`` as they accumulate.

    Whenever the number of held samples reaches a multiple of
    ``flush_interval``, the samples not yet written are appended to the file.
    """

    def __init__(
        self,
        metric_type: MetricType,
        path: str | os.PathLike,
        *,
        max_samples: int = MAX_SAMPLES,
        flush_interval: int = FLUSH_INTERVAL,
    ) -> None:
        if max_samples <= 0:
            raise ValueError("max_samples must be positive")
        if flush_interval <= 0:
            raise ValueError("flush_interval must be positive")
        self.type = MetricType(metric_type)
        self.path = path
        self.max_samples = max_samples
        self.flush_interval = flush_interval
        self.head = 0
        self.tail = 0
        self.count = 0
        self.w_index = 0
        self._ring: list[MetricSample] = []
        self._lock = threading.RLock()
        self._file_lock = threading.Lock()
        self._file = open(path, "wb")

    def __enter__(self) -> Metric:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._file is None

    def add_sample(self, data: int) -> None:
        """Record ``data`` with the current monotonic time."""
        if not _INT32_MIN <= data <= _INT32_MAX:
            raise ValueError(f"sample value {data} does not fit in 32 bits")
        timestamp = monotonic()
        with self._lock:
            if self._file is None:
                raise ValueError("metric is closed")
            sample = MetricSample(int(data), timestamp)
            if len(self._ring) < self.max_samples:
                self._ring.append(sample)
            else:
                self._ring[self.tail] = sample

            self.tail = (self.tail + 1) % self.max_samples
            if self.count < self.max_samples:
                self.count += 1
            else:
                self.head = (self.head + 1) % self.max_samples

            if self.count % self.flush_interval == 0:
                self.write_to_file()

    def samples(self) -> list[MetricSample]:
        """The held samples, oldest first."""
        with self._lock:
            return self._ring[self.head:] + self._ring[: self.head]

    def write_to_file(self) -> int:
        """Append the samples not yet written and return how many were written."""
        with self._lock, self._file_lock:
            if self._file is None:
                raise ValueError("metric is closed")
            start, end = self.w_index, self.tail
            if start == end:
                return 0
            if end > start:
                pending = self._ring[start:end]
            else:
                pending = self._ring[start:] + self._ring[:end]
            self._file.write(b"".join(sample.pack() for sample in pending))
            self.w_index = end
            self._file.flush()
            return len(pending)

    def close(self) -> None:
        """Close the file and forget the held samples."""
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None
            self.head = 0
            self.tail = 0
            self.count = 0
            self._ring = []


def read_samples(path: str | os.PathLike) -> list[MetricSample]:
    """Read back the samples a Metric wrote to ``path``."""
    with open(path, "rb") as handle:
        raw = handle.read()
    if len(raw) % SAMPLE_STRUCT.size:
        raise ValueError(f"{path} does not hold a whole number of samples")
    return [
        MetricSample(data, Timespec(sec, nsec))
        for data, sec, nsec in SAMPLE_STRUCT.iter_unpack(raw)
    ]