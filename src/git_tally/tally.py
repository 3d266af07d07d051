"""
Summations over commits.

Two ways in: `tally_commits` walks a commit sequence in one go, and the
`*_apply_merge` factories return the (apply, merge, finalize) triple a
scheduler uses to tally shards of the sequence independently and combine
them. Both produce the same ranked list for the same commits.
"""

from __future__ import annotations

import dataclasses
import functools
import logging
import time
from typing import Callable, Container, Iterable, TypeVar

from .errors import UnsupportedModeError
from .identity import identity_rank
from .models import Commit, Tally
from .tally_modes import TallyMode, TallyOpts
from .tally_paths import AuthorPaths, checked_commits, sum_over_paths, tally_by_paths, union_author_paths
from .timeutils import max_time

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

ApplyFunc = Callable[[Iterable[Commit]], T]
MergeFunc = Callable[[T, T], T]
FinalizeFunc = Callable[[T], R]


def uses_simple_strategy(opts: TallyOpts, allow_outside_worktree: bool) -> bool:
    # Per-path bookkeeping is only needed for diff stats or to filter by working tree.
    return not opts.is_diff_mode and allow_outside_worktree


def tally_commits(
    commits: Iterable[Commit],
    wtree_files: Container[str],
    allow_outside_worktree: bool,
    opts: TallyOpts,
) -> list[Tally]:
    """
    Returns one tally per author, in descending order by commits / files /
    lines / recency depending on `opts.mode`.

    Raises CommitIterationError if the commit source fails; nothing partial
    is returned in that case.
    """
    tallies = tally_commits_by_author(commits, wtree_files, allow_outside_worktree, opts)
    return sort_tallies(tallies, opts.mode)


def tally_commits_by_author(
    commits: Iterable[Commit],
    wtree_files: Container[str],
    allow_outside_worktree: bool,
    opts: TallyOpts,
) -> dict[str, Tally]:
    start = time.perf_counter()

    if uses_simple_strategy(opts, allow_outside_worktree):
        strategy = "simple"
        tallies = _tally_simple(commits, opts)
    else:
        strategy = "paths"
        authors = tally_by_paths(commits, opts)
        tallies = sum_over_paths(authors, wtree_files, allow_outside_worktree)

    elapsed_ms = int((time.perf_counter() - start) * 1000)
    logger.debug("tallied commits strategy=%s authors=%d duration_ms=%d", strategy, len(tallies), elapsed_ms)
    return tallies


def _tally_simple(commits: Iterable[Commit], opts: TallyOpts) -> dict[str, Tally]:
    tallies: dict[str, Tally] = {}
    for commit in checked_commits(commits):
        key = opts.key(commit)
        cur = tallies.get(key)
        if cur is None:
            tallies[key] = Tally(
                author_name=commit.author_name,
                author_email=commit.author_email,
                commits=1,
                last_commit_time=commit.date,
            )
            continue

        if identity_rank(commit.date, commit.author_name, commit.author_email) > _tally_rank(cur):
            cur = dataclasses.replace(cur, author_name=commit.author_name, author_email=commit.author_email)
        tallies[key] = dataclasses.replace(
            cur,
            commits=cur.commits + 1,
            last_commit_time=max_time(cur.last_commit_time, commit.date),
        )
    return tallies


def _tally_rank(t: Tally) -> tuple:
    return identity_rank(t.last_commit_time, t.author_name, t.author_email)


def sort_tallies(tallies: dict[str, Tally], mode: TallyMode) -> list[Tally]:
    mode = TallyMode(mode)

    def cmp(a: tuple[str, Tally], b: tuple[str, Tally]) -> int:
        # Descending by Tally.compare; author key only pins down exact ties.
        order = -a[1].compare(b[1], mode)
        if order:
            return order
        return (a[0] > b[0]) - (a[0] < b[0])

    return [t for _k, t in sorted(tallies.items(), key=functools.cmp_to_key(cmp))]


def merge_simple_tallies(a: dict[str, Tally], b: dict[str, Tally]) -> dict[str, Tally]:
    union = dict(b)
    for key, at in a.items():
        bt = union.get(key)
        if bt is None:
            union[key] = at
            continue
        named = at if _tally_rank(at) >= _tally_rank(bt) else bt
        union[key] = Tally(
            author_name=named.author_name,
            author_email=named.author_email,
            commits=at.commits + bt.commits,
            last_commit_time=max_time(at.last_commit_time, bt.last_commit_time),
        )
    return union


def tally_commits_apply_merge(
    wtree_files: Container[str],
    allow_outside_worktree: bool,
    opts: TallyOpts,
) -> tuple[
    ApplyFunc[dict[str, Tally]],
    MergeFunc[dict[str, Tally]],
    FinalizeFunc[dict[str, Tally], list[Tally]],
]:
    """Pipeline for plain commit counting; no diff data and no path filtering."""
    if opts.is_diff_mode:
        raise UnsupportedModeError(f"unsupported tally mode for simple pipeline: {opts.mode.value}")
    if not allow_outside_worktree:
        raise UnsupportedModeError("simple pipeline cannot filter by working tree; use the diff pipeline")

    def apply(commits: Iterable[Commit]) -> dict[str, Tally]:
        return _tally_simple(commits, opts)

    def finalize(tallies: dict[str, Tally]) -> list[Tally]:
        return sort_tallies(tallies, opts.mode)

    return apply, merge_simple_tallies, finalize


def tally_commits_diff_apply_merge(
    wtree_files: Container[str],
    allow_outside_worktree: bool,
    opts: TallyOpts,
) -> tuple[
    ApplyFunc[dict[str, AuthorPaths]],
    MergeFunc[dict[str, AuthorPaths]],
    FinalizeFunc[dict[str, AuthorPaths], list[Tally]],
]:
    """Pipeline tallying per-path diffs (lines, files, or filtered commits)."""

    def apply(commits: Iterable[Commit]) -> dict[str, AuthorPaths]:
        return tally_by_paths(commits, opts)

    def finalize(authors: dict[str, AuthorPaths]) -> list[Tally]:
        tallies = sum_over_paths(authors, wtree_files, allow_outside_worktree)
        return sort_tallies(tallies, opts.mode)

    return apply, union_author_paths, finalize


def tally_commits_pipeline(
    wtree_files: Container[str],
    allow_outside_worktree: bool,
    opts: TallyOpts,
) -> tuple[ApplyFunc, MergeFunc, FinalizeFunc]:
    """The pipeline whose result matches `tally_commits` for the same arguments."""
    if uses_simple_strategy(opts, allow_outside_worktree):
        return tally_commits_apply_merge(wtree_files, allow_outside_worktree, opts)
    return tally_commits_diff_apply_merge(wtree_files, allow_outside_worktree, opts)
