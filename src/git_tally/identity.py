from __future__ import annotations

import datetime as dt
from typing import Callable

from .models import Commit
from .timeutils import as_utc


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_name(name: str) -> str:
    return name.strip().casefold()


def key_by_email(commit: Commit) -> str:
    return normalize_email(commit.author_email)


def key_by_name(commit: Commit) -> str:
    return normalize_name(commit.author_name)


def key_by_name_and_email(commit: Commit) -> str:
    """
    Keep authors apart when they share an e-mail but not a name, e.g. a team
    alias used by several people.
    """
    return f"{normalize_name(commit.author_name)}\t{normalize_email(commit.author_email)}"


AUTHOR_KEYS: dict[str, Callable[[Commit], str]] = {
    "email": key_by_email,
    "name": key_by_name,
    "name-email": key_by_name_and_email,
}


_NO_TIME = dt.datetime.min.replace(tzinfo=dt.timezone.utc)


def identity_rank(when: dt.datetime | None, name: str, email: str) -> tuple[bool, dt.datetime, str, str]:
    """
    Ordering used to pick the display name/email of an author key: the
    spelling from the newest commit wins, ties go to the larger spelling.
    Taking the max of this over any grouping of commits gives the same answer.
    """
    if when is None:
        return (False, _NO_TIME, name, email)
    return (True, as_utc(when), name, email)


def author_key(name: str) -> Callable[[Commit], str]:
    k = (name or "").strip().lower()
    if k not in AUTHOR_KEYS:
        raise ValueError(f"Invalid author key: {name!r} (expected one of {', '.join(sorted(AUTHOR_KEYS))})")
    return AUTHOR_KEYS[k]
