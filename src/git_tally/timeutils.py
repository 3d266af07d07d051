from __future__ import annotations

import datetime as dt


def as_utc(when: dt.datetime) -> dt.datetime:
    # Naive timestamps are taken to be UTC.
    if when.tzinfo is None:
        return when.replace(tzinfo=dt.timezone.utc)
    return when.astimezone(dt.timezone.utc)


def max_time(a: dt.datetime | None, b: dt.datetime | None) -> dt.datetime | None:
    if a is None:
        return b
    if b is None:
        return a
    return a if as_utc(a) >= as_utc(b) else b


def compare_times(a: dt.datetime | None, b: dt.datetime | None) -> int:
    # None sorts before any real timestamp.
    if a is None and b is None:
        return 0
    if a is None:
        return -1
    if b is None:
        return 1
    ua = as_utc(a)
    ub = as_utc(b)
    if ua == ub:
        return 0
    return -1 if ua < ub else 1


def unix_seconds(when: dt.datetime | None) -> int:
    if when is None:
        return 0
    return int(as_utc(when).timestamp())
