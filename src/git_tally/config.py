from __future__ import annotations

import json
from pathlib import Path

from .identity import author_key
from .tally_modes import TallyMode, TallyOpts


def load_config(config_path: Path) -> dict:
    if not config_path.exists():
        return {}
    return json.loads(config_path.read_text(encoding="utf-8"))


def parse_mode(value: str | TallyMode) -> TallyMode:
    if isinstance(value, TallyMode):
        return value
    s = str(value or "").strip().lower().replace("_", "-")
    try:
        return TallyMode(s)
    except ValueError:
        choices = ", ".join(m.value for m in TallyMode)
        raise ValueError(f"Invalid tally mode: {value!r} (expected one of {choices})") from None


def tally_opts_from_config(config: dict, *, mode: str | TallyMode | None = None) -> TallyOpts:
    """
    Build TallyOpts from a loaded config dict. An explicit `mode` (e.g. from a
    command-line flag) takes precedence over `config["mode"]`.
    """
    mode_value = mode if mode is not None else (config.get("mode") or TallyMode.COMMITS.value)
    key_name = str(config.get("author_key") or "email")
    return TallyOpts(mode=parse_mode(mode_value), key=author_key(key_name))


def allow_outside_worktree_from_config(config: dict) -> bool:
    return bool(config.get("allow_outside_worktree", False))
