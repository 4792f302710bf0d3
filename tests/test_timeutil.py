import time

import pytest

from sensordhs import timeutil
from sensordhs.timeutil import Timespec


def test_one_second_is_ns_per_s():
    assert timeutil.time_s(1) == timeutil.NS_PER_S
    assert timeutil.NS_PER_S == 1_000_000_000


def test_timeout_max_is_uint64_max():
    assert timeutil.TIMEOUT_MAX == 2**64 - 1
    assert timeutil.TIMEOUT_NONE == timeutil.time_ns(0)


@pytest.mark.parametrize("value", [0, 1, 7, 500, 12345])
def test_unit_round_trips(value):
    assert timeutil.to_s(timeutil.time_s(value)) == value
    assert timeutil.to_ms(timeutil.time_ms(value)) == value
    assert timeutil.to_us(timeutil.time_us(value)) == value
    assert timeutil.to_ns(timeutil.time_ns(value)) == value


def test_units_are_consistent():
    assert timeutil.time_s(2) == timeutil.time_ms(2000)
    assert timeutil.time_ms(3) == timeutil.time_us(3000)
    assert timeutil.time_us(4) == timeutil.time_ns(4000)


def test_fractional_seconds():
    assert timeutil.time_s(1.5) == timeutil.time_ms(1500)


@pytest.mark.parametrize(
    "start,delta",
    [
        (Timespec(1, 900_000_000), timeutil.time_ms(200)),
        (Timespec(5, 0), timeutil.time_s(3)),
        (Timespec(0, 999_999_999), timeutil.time_ns(1)),
        (Timespec(10, 500), timeutil.time_s(2.75)),
    ],
)
def test_add_keeps_total_and_normalises(start, delta):
    result = start.add(delta)
    assert result.to_ns() == start.to_ns() + delta
    assert 0 <= result.nsec < timeutil.NS_PER_S


def test_add_does_not_mutate():
    start = Timespec(1, 2)
    start.add(timeutil.time_s(1))
    assert start == Timespec(1, 2)


@pytest.mark.parametrize(
    "start,end",
    [
        (Timespec(1, 100), Timespec(3, 50)),
        (Timespec(1, 50), Timespec(3, 100)),
        (Timespec(4, 0), Timespec(4, 0)),
    ],
)
def test_diff_matches_subtraction(start, end):
    diff = timeutil.timespec_diff(start, end)
    assert diff.to_ns() == end.to_ns() - start.to_ns()
    assert 0 <= diff.nsec < timeutil.NS_PER_S


def test_diff_borrows_a_second():
    diff = timeutil.timespec_diff(Timespec(1, 50), Timespec(3, 100))
    assert diff.sec == 2
    diff = timeutil.timespec_diff(Timespec(1, 100), Timespec(3, 50))
    assert diff.sec == 1


@pytest.mark.parametrize("delta", [0, 1, 999_999_999, 1_000_000_000, 3_250_000_123])
def test_timespec_from_round_trip(delta):
    ts = timeutil.timespec_from(delta)
    assert ts.to_ns() == delta
    assert 0 <= ts.nsec < timeutil.NS_PER_S


@pytest.mark.parametrize("delta", [0, 1_500, 999_999_999, 3_250_000_123])
def test_timeval_from(delta):
    sec, usec = timeutil.timeval_from(delta)
    assert sec * 1_000_000 + usec == timeutil.to_us(delta)
    assert 0 <= usec < 1_000_000


def test_timeout_expired():
    deadline = Timespec(10, 0)
    assert timeutil.timeout_expired(deadline, Timespec(10, 1)) is True
    assert timeutil.timeout_expired(deadline, Timespec(10, 0)) is False
    assert timeutil.timeout_expired(deadline, Timespec(9, 999)) is False


def test_now_tracks_wall_clock():
    before = time.time_ns()
    current = timeutil.now().to_ns()
    after = time.time_ns()
    assert before <= current <= after


def test_monotonic_never_goes_back():
    first = timeutil.monotonic()
    second = timeutil.monotonic()
    assert second >= first


def test_timespec_absolute_is_in_future():
    delta = timeutil.time_s(5)
    before = time.time_ns()
    target = timeutil.timespec_absolute(delta).to_ns()
    after = time.time_ns()
    assert before + delta <= target <= after + delta


def test_sleep_waits_at_least_delta():
    delta = timeutil.time_ms(20)
    start = time.monotonic_ns()
    timeutil.sleep(delta)
    assert time.monotonic_ns() - start >= delta


def test_sleep_negative_raises():
    with pytest.raises(ValueError):
        timeutil.sleep(-1)


def test_str_pads_nanoseconds():
    assert str(Timespec(3, 42)) == "3.000000042"