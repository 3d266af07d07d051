from __future__ import annotations

import datetime as dt
import logging
from typing import Iterator

import pytest

from git_tally.errors import CommitIterationError
from git_tally.identity import key_by_email, key_by_name
from git_tally.models import Commit, FileDiff, Tally
from git_tally.tally import sort_tallies, tally_commits, tally_commits_by_author
from git_tally.tally_modes import TallyMode, TallyOpts


def _commit(sha: str, email: str, day: int, *diffs: tuple[str, int, int], name: str = "") -> Commit:
    return Commit(
        hash=sha,
        author_name=name or email.split("@", 1)[0].upper(),
        author_email=email,
        date=dt.datetime(2025, 1, day, tzinfo=dt.timezone.utc),
        file_diffs=tuple(FileDiff(path=p, lines_added=a, lines_removed=r) for p, a, r in diffs),
    )


def _scenario() -> list[Commit]:
    return [
        _commit("c1", "a@x", 1, ("x.go", 10, 0), ("y.go", 5, 0)),
        _commit("c2", "b@x", 2, ("z.go", 3, 0)),
    ]


def test_scenario_with_working_tree_filter() -> None:
    opts = TallyOpts(mode=TallyMode.LINES, key=key_by_email)
    tallies = tally_commits(_scenario(), {"x.go", "y.go"}, False, opts)

    assert [t.author_email for t in tallies] == ["a@x", "b@x"]
    a, b = tallies
    assert (a.commits, a.lines_added, a.file_count) == (1, 15, 2)
    # z.go is gone from the tree, so none of c2 is counted.
    assert (b.commits, b.lines_added, b.file_count) == (0, 0, 0)
    assert b.last_commit_time is None


def test_scenario_with_override() -> None:
    opts = TallyOpts(mode=TallyMode.LINES, key=key_by_email)
    tallies = tally_commits(_scenario(), {"x.go", "y.go"}, True, opts)

    b = {t.author_email: t for t in tallies}["b@x"]
    assert (b.commits, b.lines_added, b.file_count) == (1, 3, 1)


def test_simple_strategy_counts_commits_without_diffs() -> None:
    commits = [
        _commit("c1", "a@x", 1),
        _commit("c2", "a@x", 4),
        _commit("c3", "b@x", 2),
    ]
    opts = TallyOpts(mode=TallyMode.COMMITS, key=key_by_email)
    by_author = tally_commits_by_author(commits, set(), True, opts)

    assert by_author["a@x"].commits == 2
    assert by_author["a@x"].last_commit_time == dt.datetime(2025, 1, 4, tzinfo=dt.timezone.utc)
    assert by_author["a@x"].file_count == 0
    assert by_author["b@x"].commits == 1


def test_commit_mode_with_filter_counts_only_commits_touching_tree() -> None:
    commits = [
        _commit("c1", "a@x", 1, ("x.go", 1, 0)),
        _commit("c2", "a@x", 2, ("gone.go", 1, 0)),
    ]
    opts = TallyOpts(mode=TallyMode.COMMITS, key=key_by_email)
    (a,) = tally_commits(commits, {"x.go"}, False, opts)
    assert a.commits == 1


def test_key_function_controls_grouping() -> None:
    commits = [
        _commit("c1", "ada@home", 1, ("x.go", 1, 0), name="Ada"),
        _commit("c2", "ada@work", 2, ("y.go", 1, 0), name="Ada"),
    ]
    by_email = tally_commits(commits, set(), True, TallyOpts(mode=TallyMode.FILES, key=key_by_email))
    by_name = tally_commits(commits, set(), True, TallyOpts(mode=TallyMode.FILES, key=key_by_name))

    assert len(by_email) == 2
    assert len(by_name) == 1
    assert by_name[0].file_count == 2
    assert by_name[0].author_email == "ada@work"


def test_ranking_is_descending_with_recency_tie_break() -> None:
    commits = [
        _commit("c1", "old@x", 1, ("a.go", 5, 0)),
        _commit("c2", "new@x", 3, ("b.go", 5, 0)),
        _commit("c3", "big@x", 2, ("c.go", 50, 0)),
        _commit("c4", "small@x", 9, ("d.go", 1, 0)),
    ]
    for mode in TallyMode:
        tallies = tally_commits(commits, set(), True, TallyOpts(mode=mode, key=key_by_email))
        keys = [t.sort_key(mode) for t in tallies]
        assert keys == sorted(keys, reverse=True)
        for prev, cur in zip(tallies, tallies[1:]):
            if prev.sort_key(mode) == cur.sort_key(mode):
                assert prev.last_commit_time >= cur.last_commit_time

    lines = tally_commits(commits, set(), True, TallyOpts(mode=TallyMode.LINES, key=key_by_email))
    assert [t.author_email for t in lines] == ["big@x", "new@x", "old@x", "small@x"]


def test_sort_tallies_accepts_mode_string() -> None:
    by_author = tally_commits_by_author(_scenario(), set(), True, TallyOpts(mode=TallyMode.LINES, key=key_by_email))
    assert [t.author_email for t in sort_tallies(by_author, "lines")] == ["a@x", "b@x"]


def test_iteration_error_aborts_with_context() -> None:
    def commits() -> Iterator[Commit]:
        yield _commit("c1", "a@x", 1, ("x.go", 1, 0))
        raise OSError("git log exited 128")

    for mode, allow in [(TallyMode.COMMITS, True), (TallyMode.LINES, False)]:
        with pytest.raises(CommitIterationError) as excinfo:
            tally_commits(commits(), set(), allow, TallyOpts(mode=mode, key=key_by_email))
        assert "error iterating commits" in str(excinfo.value)
        assert isinstance(excinfo.value.__cause__, OSError)


def test_key_function_errors_are_not_wrapped() -> None:
    def bad_key(commit: Commit) -> str:
        raise KeyError(commit.hash)

    with pytest.raises(KeyError):
        tally_commits(_scenario(), set(), True, TallyOpts(mode=TallyMode.COMMITS, key=bad_key))


def test_logs_duration_at_debug(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="git_tally.tally")
    tally_commits(_scenario(), set(), False, TallyOpts(mode=TallyMode.LINES, key=key_by_email))
    assert any("tallied commits" in r.getMessage() and "strategy=paths" in r.getMessage() for r in caplog.records)


def test_naive_commit_dates_are_treated_as_utc() -> None:
    commits = [
        _commit("c1", "a@x", 1, ("x.go", 1, 0)),
        Commit(
            hash="c2",
            author_name="A",
            author_email="a@x",
            date=dt.datetime(2025, 1, 2),
            file_diffs=(FileDiff("y.go", 2, 0),),
        ),
        _commit("c3", "b@x", 2, ("z.go", 3, 0)),
    ]
    for mode, allow in [(TallyMode.LINES, False), (TallyMode.COMMITS, True)]:
        by_author = tally_commits_by_author(commits, {"x.go", "y.go", "z.go"}, allow, TallyOpts(mode=mode, key=key_by_email))
        assert by_author["a@x"].commits == 2
        assert by_author["a@x"].last_commit_time == dt.datetime(2025, 1, 2)

    # Same instant on both sides: a tie on recency, so the author key decides.
    ranked = tally_commits(commits, set(), True, TallyOpts(mode=TallyMode.LAST_MODIFIED, key=key_by_email))
    assert [t.author_email for t in ranked] == ["a@x", "b@x"]
    assert ranked[0].sort_key(TallyMode.LAST_MODIFIED) == ranked[1].sort_key(TallyMode.LAST_MODIFIED)


def test_sort_tallies_agrees_with_compare() -> None:
    utc = dt.timezone.utc
    tallies = {
        "a": Tally(commits=2, last_commit_time=dt.datetime(2025, 1, 1, tzinfo=utc)),
        "b": Tally(commits=2, last_commit_time=dt.datetime(2025, 1, 1, 12)),
        "c": Tally(commits=2),
        "d": Tally(commits=5, last_commit_time=dt.datetime(2024, 6, 1, tzinfo=utc)),
        "e": Tally(commits=2, last_commit_time=dt.datetime(2025, 1, 1, 1, tzinfo=dt.timezone(dt.timedelta(hours=1)))),
    }
    for mode in TallyMode:
        ranked = sort_tallies(tallies, mode)
        for prev, cur in zip(ranked, ranked[1:]):
            assert prev.compare(cur, mode) >= 0

    ranked = sort_tallies(tallies, TallyMode.COMMITS)
    assert ranked == [tallies["d"], tallies["b"], tallies["a"], tallies["e"], tallies["c"]]
