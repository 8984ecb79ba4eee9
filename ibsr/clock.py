"""Clock abstraction: real and fixed or advancing clocks for deterministic tests."""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod

_U64_MOD = 1 << 64
_SECONDS_PER_DAY = 86400
_MONTH_DAYS = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)


class Clock(ABC):
    """Source of the current Unix time in whole seconds."""

    @abstractmethod
    def now_unix_sec(self) -> int:
        """Return the current time as Unix seconds since the epoch."""


class SystemClock(Clock):
    """Clock backed by the system's wall-clock time."""

    def now_unix_sec(self) -> int:
        now = time.time()
        if now < 0:
            raise RuntimeError("system time before Unix epoch")
        return int(now)

    def __repr__(self) -> str:
        return "SystemClock()"


class MockClock(Clock):
    """Clock that always reports the same timestamp."""

    def __init__(self, timestamp: int) -> None:
        self._timestamp = timestamp

    def now_unix_sec(self) -> int:
        return self._timestamp

    def __repr__(self) -> str:
        return f"MockClock(timestamp={self._timestamp})"


class AdvancingClock(Clock):
    """Clock that returns its timestamp, then moves it forward by a fixed step."""

    def __init__(self, timestamp: int, increment: int) -> None:
        self._timestamp = timestamp
        self._increment = increment
        self._lock = threading.Lock()

    def now_unix_sec(self) -> int:
        with self._lock:
            current = self._timestamp
            self._timestamp = (current + self._increment) % _U64_MOD
            return current

    def __repr__(self) -> str:
        return (
            f"AdvancingClock(timestamp={self._timestamp}, "
            f"increment={self._increment})"
        )


def is_leap_year(year: int) -> bool:
    """Return True if the given Gregorian year is a leap year."""
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def days_to_ymd(days: int) -> tuple[int, int, int]:
    """Convert days since 1970-01-01 to a (year, month, day) tuple."""
    remaining = days
    year = 1970
    while True:
        year_length = 366 if is_leap_year(year) else 365
        if remaining < year_length:
            break
        remaining -= year_length
        year += 1

    month = 1
    for index, length in enumerate(_MONTH_DAYS):
        if index == 1 and is_leap_year(year):
            length += 1
        if remaining < length:
            break
        remaining -= length
        month += 1

    return year, month, remaining + 1


def format_timestamp_for_dirname(timestamp: int) -> str:
    """Format a Unix timestamp as ``YYYYMMDD-HHMMSSZ`` in UTC."""
    days, secs_today = divmod(timestamp, _SECONDS_PER_DAY)
    hours, rest = divmod(secs_today, 3600)
    minutes, seconds = divmod(rest, 60)
    year, month, day = days_to_ymd(days)
    return f"{year:04}{month:02}{day:02}-{hours:02}{minutes:02}{seconds:02}Z"