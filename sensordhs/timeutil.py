"""Nanosecond time differences and second/nanosecond timestamps."""

from __future__ import annotations

import time
from dataclasses import dataclass

NS_PER_S = 1_000_000_000
NS_PER_MS = 1_000_000
NS_PER_US = 1_000

# The largest representable time difference, used as "wait forever".
TIME_MAX = 2**64 - 1
TIMEOUT_NONE = 0
TIMEOUT_MAX = TIME_MAX


def time_s(s: float) -> int:
    """Return a time difference of ``s`` seconds, in nanoseconds."""
    return int(s * NS_PER_S)


def time_ms(ms: float) -> int:
    """Return a time difference of ``ms`` milliseconds, in nanoseconds."""
    return int(ms * NS_PER_MS)


def time_us(us: float) -> int:
    """Return a time difference of ``us`` microseconds, in nanoseconds."""
    return int(us * NS_PER_US)


def time_ns(ns: float) -> int:
    """Return a time difference of ``ns`` nanoseconds."""
    return int(ns)


def to_s(delta: int) -> int:
    """Whole seconds in a time difference."""
    return int(delta) // NS_PER_S


def to_ms(delta: int) -> int:
    """Whole milliseconds in a time difference."""
    return int(delta) // NS_PER_MS


def to_us(delta: int) -> int:
    """Whole microseconds in a time difference."""
    return int(delta) // NS_PER_US


def to_ns(delta: int) -> int:
    """Nanoseconds in a time difference."""
    return int(delta)


@dataclass(frozen=True, order=True)
class Timespec:
    """A point in time as whole seconds plus nanoseconds."""

    sec: int = 0
    nsec: int = 0

    def add(self, delta: int) -> Timespec:
        """Return this timestamp moved forward by ``delta`` nanoseconds."""
        sec = self.sec + to_s(delta)
        nsec = self.nsec + to_ns(delta) % NS_PER_S
        if nsec >= NS_PER_S:
            sec += 1
            nsec %= NS_PER_S
        return Timespec(sec, nsec)

    def to_ns(self) -> int:
        """Total nanoseconds represented by this timestamp."""
        return self.sec * NS_PER_S + self.nsec

    def __str__(self) -> str:
        return f"{self.sec}.{self.nsec:09d}"


def _from_ns(total: int) -> Timespec:
    sec, nsec = divmod(total, NS_PER_S)
    return Timespec(sec, nsec)


def now() -> Timespec:
    """Current wall-clock time."""
    return _from_ns(time.time_ns())


def monotonic() -> Timespec:
    """Current reading of the monotonic clock."""
    return _from_ns(time.monotonic_ns())


def timespec_absolute(delta: int) -> Timespec:
    """Wall-clock time ``delta`` nanoseconds from now."""
    return now().add(delta)


def timespec_diff(start: Timespec, end: Timespec) -> Timespec:
    """Difference ``end - start`` with the nanoseconds kept non-negative."""
    if end.nsec < start.nsec:
        return Timespec(end.sec - start.sec - 1, NS_PER_S + end.nsec - start.nsec)
    return Timespec(end.sec - start.sec, end.nsec - start.nsec)


def timespec_from(delta: int) -> Timespec:
    """Express a time difference as a Timespec."""
    return Timespec(to_s(delta), to_ns(delta) % NS_PER_S)


def timeval_from(delta: int) -> tuple[int, int]:
    """Express a time difference as ``(seconds, microseconds)``."""
    return to_s(delta), to_us(delta) % 1_000_000


def timeout_expired(timeout: Timespec, now: Timespec) -> bool:
    """True when ``now`` lies strictly after ``timeout``."""
    return now.to_ns() > timeout.to_ns()


def sleep(delta: int) -> None:
    """Sleep for ``delta`` nanoseconds."""
    if delta < 0:
        raise ValueError("cannot sleep for a negative time")
    time.sleep(delta / NS_PER_S)