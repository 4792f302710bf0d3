"""A ring of fixed-size byte buffers handed between a writer and a reader thread."""

from __future__ import annotations

import logging
import threading

from sensordhs.thread import Semaphore
from sensordhs.timeutil import TIMEOUT_MAX

log = logging.getLogger(__name__)


class PipeBuffer:
    """A byte buffer with a fixed capacity that is filled by appending."""

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        self.capacity = capacity
        self._data = bytearray()

    def __len__(self) -> int:
        return len(self._data)

    @property
    def pos(self) -> int:
        """Number of bytes written so far."""
        return len(self._data)

    @property
    def data(self) -> bytes:
        """A copy of the bytes written so far."""
        return bytes(self._data)

    def push(self, data: bytes | bytearray | memoryview) -> int:
        """Append ``data`` and return the offset it was written at.

        Raises BufferError if it would not fit.
        """
        size = len(memoryview(data).cast("B"))
        if len(self._data) + size > self.capacity:
            raise BufferError(
                f"pushing {size} bytes would overflow buffer "
                f"({len(self._data)} of {self.capacity} used)"
            )
        offset = len(self._data)
        self._data += data
        return offset

    def clear(self) -> None:
        """Discard the contents."""
        self._data.clear()


class SensorDataPipe:
    """Buffers cycled between one writer and one reader.

    The writer fills ``current_write_buffer()`` and calls ``get_write_buffer()``
    to hand it over and move to the next, emptied buffer. The reader obtains
    filled buffers in order with ``get_read_buffer()``. At most
    ``buf_count - 1`` buffers are waiting to be read at any time.
    """

    def __init__(
        self,
        buf_count: int,
        buf_size: int,
        *,
        packet_size: int = 0,
        buffer_max_fill: int | None = None,
        item_max_count: int = 0,
    ) -> None:
        if buf_count < 2:
            raise ValueError("a pipe needs at least two buffers")
        if buf_size <= 0:
            raise ValueError("buffer size must be positive")
        self.buf_count = buf_count
        self.buf_size = buf_size
        self.packet_size = packet_size
        self.buffer_max_fill = buf_size if buffer_max_fill is None else buffer_max_fill
        self.item_max_count = item_max_count
        self.buffers: tuple[PipeBuffer, ...] = tuple(
            PipeBuffer(buf_size) for _ in range(buf_count)
        )
        self.write_buf_idx = 0
        self.read_buf_idx = 0
        self.full_buffers_count = 0
        self._state = threading.Lock()
        self._readable = Semaphore(0)
        self._writable = Semaphore(buf_count - 1)
        self._closed = False

    def __enter__(self) -> SensorDataPipe:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError("pipe is closed")

    def current_write_buffer(self) -> PipeBuffer:
        """The buffer the writer is currently filling."""
        with self._state:
            return self.buffers[self.write_buf_idx]

    def _advance_write(self, timeout: int) -> PipeBuffer:
        self._writable.wait(timeout)
        with self._state:
            next_idx = (self.write_buf_idx + 1) % self.buf_count
            self.write_buf_idx = next_idx
            self.full_buffers_count += 1
        self._readable.post()
        buffer = self.buffers[next_idx]
        buffer.clear()
        return buffer

    def get_write_buffer(self, timeout: int = TIMEOUT_MAX) -> PipeBuffer:
        """Hand the current buffer to the reader and return the next, emptied one.

        Blocks up to ``timeout`` nanoseconds for a free slot; raises
        TimeoutError (or BlockingIOError for a zero timeout) if none frees up.
        """
        self._check_open()
        return self._advance_write(timeout)

    def get_read_buffer(self, timeout: int = TIMEOUT_MAX) -> PipeBuffer:
        """Return the oldest filled buffer, blocking up to ``timeout`` nanoseconds."""
        self._check_open()
        self._readable.wait(timeout)
        with self._state:
            buffer = self.buffers[self.read_buf_idx]
            self.read_buf_idx = (self.read_buf_idx + 1) % self.buf_count
            self.full_buffers_count -= 1
        self._writable.post()
        return buffer

    def flush(self, timeout: int = TIMEOUT_MAX) -> bool:
        """Hand a partly filled write buffer to the reader.

        Returns False, doing nothing, when the current buffer is empty.
        """
        self._check_open()
        if self.current_write_buffer().pos == 0:
            return False
        self._advance_write(timeout)
        return True

    def close(self) -> None:
        """Close the pipe; further buffer exchanges raise ValueError."""
        self._closed = True