"""A blocking, thread-safe byte ring buffer with optional metric recording."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from sensordhs.metrics import Metric
from sensordhs.timeutil import NS_PER_S, TIMEOUT_MAX, TIMEOUT_NONE

log = logging.getLogger(__name__)

MAX_DATA_LENGTH = 260


@dataclass(frozen=True)
class QueueItem:
    """A unit's payload tagged with the protocol it arrived on."""

    protocol: int
    unit_id: int
    data: bytes = b""

    def __post_init__(self) -> None:
        if len(self.data) > MAX_DATA_LENGTH:
            raise ValueError(
                f"item data is {len(self.data)} bytes; at most {MAX_DATA_LENGTH} allowed"
            )

    @property
    def data_length(self) -> int:
        return len(self.data)


class CircularBuffer:
    """Fixed-capacity byte ring; inserts wait for room and reads wait for data.

    Throughput and occupancy (in percent) are recorded in the given metrics.
    """

    def __init__(
        self,
        size: int,
        *,
        occupancy: Metric | None = None,
        write_throughput: Metric | None = None,
        read_throughput: Metric | None = None,
    ) -> None:
        if size <= 0:
            raise ValueError("buffer size must be greater than zero")
        self.capacity = size
        self._data = bytearray(size)
        self.head = 0
        self.tail = 0
        self.count = 0
        self._cond = threading.Condition(threading.Lock())
        self._occupancy = occupancy
        self._write_throughput = write_throughput
        self._read_throughput = read_throughput
        log.debug("Circular buffer initialized. Size: %d", size)

    def __len__(self) -> int:
        with self._cond:
            return self.count

    def is_full(self) -> bool:
        with self._cond:
            return self.count == self.capacity

    def is_empty(self) -> bool:
        with self._cond:
            return self.count == 0

    def _wait(self, predicate: Callable[[], bool], timeout: int, what: str) -> None:
        if predicate():
            return
        if timeout == TIMEOUT_NONE:
            raise BlockingIOError(f"buffer has no {what}")
        if timeout < 0:
            raise ValueError("timeout must not be negative")
        seconds = None if timeout == TIMEOUT_MAX else timeout / NS_PER_S
        if not self._cond.wait_for(predicate, seconds):
            raise TimeoutError(f"timed out waiting for {what}")

    def _record(self, throughput: Metric | None, size: int) -> None:
        if throughput is not None:
            throughput.add_sample(size)
        if self._occupancy is not None:
            self._occupancy.add_sample(self.count * 100 // self.capacity)

    def insert(self, data: bytes | bytearray | memoryview, timeout: int = TIMEOUT_MAX) -> int:
        """Append ``data``, waiting up to ``timeout`` nanoseconds for room.

        Returns the number of bytes inserted.
        """
        payload = bytes(data)
        size = len(payload)
        if size > self.capacity:
            raise ValueError(f"{size} bytes can never fit in a buffer of {self.capacity}")
        with self._cond:
            self._wait(lambda: self.capacity - self.count >= size, timeout, "room")
            first = min(size, self.capacity - self.head)
            self._data[self.head:self.head + first] = payload[:first]
            self._data[: size - first] = payload[first:]
            self.head = (self.head + size) % self.capacity
            self.count += size
            self._record(self._write_throughput, size)
            self._cond.notify_all()
        return size

    def read(self, size: int, timeout: int = TIMEOUT_MAX) -> bytes:
        """Remove and return ``size`` bytes, waiting up to ``timeout`` nanoseconds."""
        if size < 0:
            raise ValueError("size must not be negative")
        if size > self.capacity:
            raise ValueError(f"cannot read {size} bytes from a buffer of {self.capacity}")
        with self._cond:
            self._wait(lambda: self.count >= size, timeout, "data")
            first = min(size, self.capacity - self.tail)
            out = bytes(self._data[self.tail:self.tail + first]) + bytes(
                self._data[: size - first]
            )
            self.tail = (self.tail + size) % self.capacity
            self.count -= size
            self._record(self._read_throughput, size)
            self._cond.notify_all()
        return out