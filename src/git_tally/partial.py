from __future__ import annotations

import dataclasses
import datetime as dt

from .timeutils import max_time


def _union(a: set[str], b: set[str]) -> set[str]:
    # Fresh set seeded from the larger side; neither operand is touched.
    big, small = (a, b) if len(a) >= len(b) else (b, a)
    out = set(big)
    out.update(small)
    return out


@dataclasses.dataclass
class PartialTally:
    """
    A tally that can be combined with other tallies.

    Commits are tracked by identifier rather than counted, so a commit seen
    through several paths (or several shards) still contributes once.
    `num_tallied` counts the things summed into this partial; for a single
    path it is 1, for an author-wide total it is the number of paths.
    """

    commits: set[str] = dataclasses.field(default_factory=set)
    added: int = 0
    removed: int = 0
    last_commit_time: dt.datetime | None = None
    num_tallied: int = 0

    @classmethod
    def new(cls, num_tallied: int = 0) -> PartialTally:
        return cls(num_tallied=num_tallied)

    @classmethod
    def for_commit(cls, commit_id: str, added: int, removed: int, when: dt.datetime | None) -> PartialTally:
        return cls(
            commits={commit_id},
            added=added,
            removed=removed,
            last_commit_time=when,
            num_tallied=1,
        )

    @property
    def commit_count(self) -> int:
        return len(self.commits)

    def combine(self, other: PartialTally) -> PartialTally:
        return PartialTally(
            commits=_union(self.commits, other.commits),
            added=self.added + other.added,
            removed=self.removed + other.removed,
            last_commit_time=max_time(self.last_commit_time, other.last_commit_time),
            num_tallied=self.num_tallied + other.num_tallied,
        )

    def combine_same(self, other: PartialTally) -> PartialTally:
        """Combine two partials for the same tallied item (e.g. the same path)."""
        out = self.combine(other)
        out.num_tallied = max(self.num_tallied, other.num_tallied)
        return out

    def absorb(self, other: PartialTally) -> None:
        """In-place `combine` into a partial owned by the caller; `other` is left as is."""
        self.commits.update(other.commits)
        self.added += other.added
        self.removed += other.removed
        self.last_commit_time = max_time(self.last_commit_time, other.last_commit_time)
        self.num_tallied += other.num_tallied

    def add_commit(self, commit_id: str, added: int, removed: int, when: dt.datetime | None) -> None:
        """
        In-place equivalent of `combine_same(PartialTally.for_commit(...))`.

        Only for partials still being built by their owner; once a partial has
        been handed to a merge it must not change.
        """
        self.commits.add(commit_id)
        self.added += added
        self.removed += removed
        self.last_commit_time = max_time(self.last_commit_time, when)
        self.num_tallied = max(self.num_tallied, 1)
