from __future__ import annotations

import dataclasses
import datetime as dt

from .tally_modes import TallyMode
from .timeutils import compare_times, unix_seconds


@dataclasses.dataclass(frozen=True)
class FileDiff:
    path: str
    lines_added: int = 0
    lines_removed: int = 0


@dataclasses.dataclass(frozen=True)
class Commit:
    hash: str
    author_name: str
    author_email: str
    date: dt.datetime
    file_diffs: tuple[FileDiff, ...] = ()


@dataclasses.dataclass(frozen=True)
class Tally:
    author_name: str = ""
    author_email: str = ""
    commits: int = 0  # commits editing counted paths
    lines_added: int = 0
    lines_removed: int = 0
    file_count: int = 0  # distinct counted paths touched
    last_commit_time: dt.datetime | None = None

    @property
    def lines_changed(self) -> int:
        return self.lines_added + self.lines_removed

    def sort_key(self, mode: TallyMode) -> int:
        return _SORT_KEYS[mode](self)

    def compare(self, other: Tally, mode: TallyMode) -> int:
        a = self.sort_key(mode)
        b = other.sort_key(mode)
        if a < b:
            return -1
        if b < a:
            return 1
        # Break ties with last edited
        return compare_times(self.last_commit_time, other.last_commit_time)


_SORT_KEYS = {
    TallyMode.COMMITS: lambda t: t.commits,
    TallyMode.FILES: lambda t: t.file_count,
    TallyMode.LINES: lambda t: t.lines_changed,
    TallyMode.LAST_MODIFIED: lambda t: unix_seconds(t.last_commit_time),
}

_missing = set(TallyMode) - set(_SORT_KEYS)
if _missing:
    raise RuntimeError(f"no sort key for tally modes: {sorted(m.value for m in _missing)}")
del _missing
