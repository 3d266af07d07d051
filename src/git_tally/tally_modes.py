from __future__ import annotations

import dataclasses
import enum
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from .models import Commit


class TallyMode(str, enum.Enum):
    """Whether authors are ranked by commits, lines, files or recency."""

    COMMITS = "commits"
    LINES = "lines"
    FILES = "files"
    LAST_MODIFIED = "last-modified"

    @property
    def is_diff_mode(self) -> bool:
        # Lines and files need per-path diff stats from the history backend.
        return self in (TallyMode.LINES, TallyMode.FILES)


@dataclasses.dataclass(frozen=True)
class TallyOpts:
    mode: TallyMode
    key: Callable[[Commit], str]  # unique id for an author

    def __post_init__(self) -> None:
        # Accept the string spelling; anything else fails here, not while ranking.
        object.__setattr__(self, "mode", TallyMode(self.mode))
        if not callable(self.key):
            raise TypeError(f"author key must be callable, got {self.key!r}")

    @property
    def is_diff_mode(self) -> bool:
        return self.mode.is_diff_mode
