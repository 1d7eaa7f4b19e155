"""Row copying helpers.

Rows handed to the history must never alias the caller's objects, because
editing surfaces are free to mutate row dicts in place between renders.

Deep copies fall back in three steps:
- copy.deepcopy (handles any picklable/copyable value)
- JSON round-trip (for values deepcopy refuses but JSON can express)
- shallow per-row copy (nested mutable fields may alias)
"""

from __future__ import annotations

import copy
import json
from typing import TYPE_CHECKING, Any

from ..debug_trace import logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..models.row import Row


def clone_row(row: Row) -> Row:
    """Shallow copy of a single row (non-mapping values are returned as-is)."""
    if isinstance(row, dict):
        return dict(row)
    return row


def clone_rows(rows: Sequence[Row]) -> list[Row]:
    """Shallow copy of every row in a list."""
    return [clone_row(row) for row in rows]


def clone_row_deep(row: Row) -> Row:
    """Deep copy of a single row, with the same fallbacks as clone_rows_deep."""
    return clone_rows_deep([row])[0]


def clone_rows_deep(rows: Sequence[Row]) -> list[Row]:
    """Deep copy a row list.

    Args:
        rows: Rows to copy.

    Returns:
        A new list whose rows share no mutable state with the input, unless
        both deep strategies failed and the shallow fallback was used.
    """
    try:
        return copy.deepcopy(list(rows))
    except Exception as e:
        logger.debug(f"deepcopy failed ({e!r}), trying JSON round-trip")

    try:
        return _json_round_trip(rows)
    except (TypeError, ValueError) as e:
        logger.debug(f"JSON round-trip failed ({e!r}), using shallow copy")

    return clone_rows(rows)


def _json_round_trip(rows: Sequence[Row]) -> list[Any]:
    return json.loads(json.dumps(list(rows)))
