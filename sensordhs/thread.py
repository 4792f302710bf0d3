"""Synchronisation primitives with nanosecond timeouts and a thread stop control."""

from __future__ import annotations

import logging
import threading

from sensordhs.timeutil import NS_PER_S, TIMEOUT_MAX, TIMEOUT_NONE

log = logging.getLogger(__name__)


def _seconds(timeout: int) -> float | None:
    """Convert a nanosecond timeout to seconds; None means wait forever."""
    if timeout < 0:
        raise ValueError("timeout must not be negative")
    if timeout == TIMEOUT_MAX:
        return None
    return timeout / NS_PER_S


def _acquire(lock, timeout: int, what: str) -> None:
    """Acquire ``lock`` following the none / max / timed timeout rules."""
    if timeout == TIMEOUT_NONE:
        if not lock.acquire(blocking=False):
            raise BlockingIOError(f"{what} is not available")
        return
    seconds = _seconds(timeout)
    if seconds is None:
        lock.acquire()
    elif not lock.acquire(timeout=seconds):
        raise TimeoutError(f"timed out waiting for {what}")


class Semaphore:
    """Counting semaphore."""

    def __init__(self, initial_value: int = 0) -> None:
        if initial_value < 0:
            raise ValueError("initial value must not be negative")
        self._sem = threading.Semaphore(initial_value)

    def wait(self, timeout: int = TIMEOUT_MAX) -> None:
        """Decrement the semaphore, blocking up to ``timeout`` nanoseconds.

        Raises BlockingIOError for a non-blocking attempt that fails and
        TimeoutError when a timed wait expires.
        """
        _acquire(self._sem, timeout, "semaphore")

    def post(self) -> None:
        """Increment the semaphore."""
        self._sem.release()


class Mutex:
    """Non-recursive mutual-exclusion lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def lock(self, timeout: int = TIMEOUT_MAX) -> None:
        """Lock, blocking up to ``timeout`` nanoseconds."""
        _acquire(self._lock, timeout, "mutex")

    def unlock(self) -> None:
        """Unlock; raises RuntimeError if the mutex is not locked."""
        self._lock.release()

    def locked(self) -> bool:
        return self._lock.locked()

    def __enter__(self) -> Mutex:
        self.lock()
        return self

    def __exit__(self, *exc_info) -> None:
        self.unlock()


class CondVar:
    """Condition variable bound to a Mutex.

    The mutex must be held when waiting, signalling or broadcasting.
    """

    def __init__(self, mutex: Mutex | None = None) -> None:
        self.mutex = mutex if mutex is not None else Mutex()
        self._cond = threading.Condition(self.mutex._lock)

    def wait(self, timeout: int = TIMEOUT_MAX) -> None:
        """Release the mutex and wait for a signal, then re-lock.

        A zero timeout is invalid and raises ValueError; an expired timed
        wait raises TimeoutError.
        """
        if timeout == TIMEOUT_NONE:
            raise ValueError("a condition wait needs a non-zero timeout")
        seconds = _seconds(timeout)
        if not self._cond.wait(seconds):
            raise TimeoutError("timed out waiting on condition")

    def signal(self) -> None:
        """Wake one waiter."""
        self._cond.notify()

    def broadcast(self) -> None:
        """Wake all waiters."""
        log.debug("Broadcasting on condition variable %#x", id(self))
        self._cond.notify_all()


class Barrier:
    """Barrier that releases once ``thread_count`` threads have arrived."""

    def __init__(self, thread_count: int) -> None:
        if thread_count <= 0:
            raise ValueError("thread count must be positive")
        self._barrier = threading.Barrier(thread_count)

    @property
    def parties(self) -> int:
        return self._barrier.parties

    def wait(self) -> bool:
        """Wait for all threads; True in exactly one of the released threads."""
        return self._barrier.wait() == 0


class ThreadControl:
    """Stop request and stopped acknowledgement shared between threads."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._should_stop = False
        self._has_stopped = False

    def should_stop(self) -> bool:
        with self._cond:
            return self._should_stop

    def has_stopped(self) -> bool:
        with self._cond:
            return self._has_stopped

    def signal_stop(self) -> None:
        """Ask the controlled thread to stop."""
        with self._cond:
            self._should_stop = True
            self._cond.notify_all()

    def wait_for_signal(self, timeout: int = TIMEOUT_MAX) -> None:
        """Block until a stop has been requested."""
        self._wait_until(lambda: self._should_stop, timeout, "stop signal")

    def mark_stopped(self) -> None:
        """Record that the controlled thread has stopped."""
        with self._cond:
            self._has_stopped = True
            self._cond.notify_all()

    def wait_for_stop(self, timeout: int = TIMEOUT_MAX) -> None:
        """Block until the controlled thread has marked itself stopped."""
        self._wait_until(lambda: self._has_stopped, timeout, "thread to stop")

    def _wait_until(self, predicate, timeout: int, what: str) -> None:
        seconds = _seconds(timeout)
        with self._cond:
            if not self._cond.wait_for(predicate, seconds):
                raise TimeoutError(f"timed out waiting for {what}")