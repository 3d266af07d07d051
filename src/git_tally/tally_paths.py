from __future__ import annotations

import dataclasses
import datetime as dt
from typing import Container, Iterable, Iterator

from .errors import CommitIterationError
from .identity import identity_rank
from .models import Commit, Tally
from .partial import PartialTally
from .tally_modes import TallyOpts


@dataclasses.dataclass
class AuthorPaths:
    name: str = ""
    email: str = ""
    seen_at: dt.datetime | None = None  # date of the commit name/email came from
    paths: dict[str, PartialTally] = dataclasses.field(default_factory=dict)

    def observe(self, name: str, email: str, when: dt.datetime | None) -> None:
        if identity_rank(when, name, email) > identity_rank(self.seen_at, self.name, self.email):
            self.name = name
            self.email = email
            self.seen_at = when

    def union(self, other: AuthorPaths) -> AuthorPaths:
        """New AuthorPaths holding both path maps; neither operand is modified."""
        if identity_rank(other.seen_at, other.name, other.email) > identity_rank(self.seen_at, self.name, self.email):
            name, email, seen_at = other.name, other.email, other.seen_at
        else:
            name, email, seen_at = self.name, self.email, self.seen_at

        paths = dict(self.paths)
        for path, theirs in other.paths.items():
            ours = paths.get(path)
            paths[path] = theirs if ours is None else ours.combine_same(theirs)
        return AuthorPaths(name=name, email=email, seen_at=seen_at, paths=paths)


def checked_commits(commits: Iterable[Commit]) -> Iterator[Commit]:
    """Yield from `commits`, wrapping any failure of the source itself."""
    it = iter(commits)
    while True:
        try:
            commit = next(it)
        except StopIteration:
            return
        except Exception as e:
            raise CommitIterationError(f"error iterating commits: {e}") from e
        yield commit


def tally_by_paths(commits: Iterable[Commit], opts: TallyOpts) -> dict[str, AuthorPaths]:
    authors: dict[str, AuthorPaths] = {}
    for commit in checked_commits(commits):
        key = opts.key(commit)
        author = authors.get(key)
        if author is None:
            author = AuthorPaths()
            authors[key] = author
        author.observe(commit.author_name, commit.author_email, commit.date)

        for diff in commit.file_diffs:
            path_tally = author.paths.get(diff.path)
            if path_tally is None:
                author.paths[diff.path] = PartialTally.for_commit(
                    commit.hash, diff.lines_added, diff.lines_removed, commit.date
                )
                continue
            # Entries are private to this call until it returns.
            path_tally.add_commit(commit.hash, diff.lines_added, diff.lines_removed, commit.date)
    return authors


def union_author_paths(a: dict[str, AuthorPaths], b: dict[str, AuthorPaths]) -> dict[str, AuthorPaths]:
    union = dict(b)
    for key, a_author in a.items():
        b_author = union.get(key)
        union[key] = a_author if b_author is None else a_author.union(b_author)
    return union


def sum_over_paths(
    authors: dict[str, AuthorPaths],
    wtree_files: Container[str],
    allow_outside_worktree: bool,
) -> dict[str, Tally]:
    tallies: dict[str, Tally] = {}
    for key, author in authors.items():
        running = PartialTally.new(0)
        for path, path_tally in author.paths.items():
            if allow_outside_worktree or path in wtree_files:
                running.absorb(path_tally)

        tallies[key] = Tally(
            author_name=author.name,
            author_email=author.email,
            commits=running.commit_count,
            lines_added=running.added,
            lines_removed=running.removed,
            file_count=running.num_tallied,
            last_commit_time=running.last_commit_time,
        )
    return tallies
