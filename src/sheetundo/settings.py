"""History settings and environment flags."""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, field

from .models.row import Row, RowId, default_get_row_id, default_is_row_blank

# Environment flags
ENV_DEBUG_HISTORY = "SHEETUNDO_DEBUG_HISTORY"
ENV_DEBUG_PERF = "SHEETUNDO_DEBUG_PERF"
ENV_MAX_UNDO_DEPTH = "SHEETUNDO_MAX_UNDO_DEPTH"
ENV_PRESERVE_HISTORY = "SHEETUNDO_PRESERVE_HISTORY"

_TRUTHY = {"1", "true", "yes", "on"}


def debug_enabled(flag: str) -> bool:
    """Check whether an environment flag is set to a truthy value."""
    return os.environ.get(flag, "").strip().lower() in _TRUTHY


def _env_int(name: str) -> int | None:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None


@dataclass
class HistorySettings:
    """Options for an UndoableController.

    Attributes:
        get_row_id: Resolves a row's stable id, or None when it has none.
        is_row_blank: Decides whether a row holds no meaningful content
            (position-based diffs use it to detect inserts/deletes).
        enabled: When False, changes are forwarded without recording history.
        preserve_history_on_external_change: Keep history when the row source
            is replaced from outside the controller.
        max_undo_depth: Oldest transactions are dropped beyond this many
            (None keeps everything for the session).
        debug: Emit per-event history traces on the sheetundo logger.
    """

    get_row_id: Callable[[Row], RowId | None] = field(default=default_get_row_id)
    is_row_blank: Callable[[Row], bool] = field(default=default_is_row_blank)
    enabled: bool = True
    preserve_history_on_external_change: bool = False
    max_undo_depth: int | None = None
    debug: bool = False

    @classmethod
    def from_env(cls, **overrides) -> HistorySettings:
        """Build settings from SHEETUNDO_* environment variables.

        Keyword overrides win over the environment.
        """
        values = {
            "debug": debug_enabled(ENV_DEBUG_HISTORY),
            "max_undo_depth": _env_int(ENV_MAX_UNDO_DEPTH),
            "preserve_history_on_external_change": debug_enabled(ENV_PRESERVE_HISTORY),
        }
        values.update(overrides)
        return cls(**values)
