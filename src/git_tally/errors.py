from __future__ import annotations


class TallyError(Exception):
    pass


class CommitIterationError(TallyError):
    """Raised when the commit source fails part way through a tally."""


class UnsupportedModeError(TallyError, ValueError):
    """A tally mode that needs diff data was given to a pipeline that has none."""
