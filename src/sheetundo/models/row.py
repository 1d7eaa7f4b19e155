"""Row identity and blank-row detection.

Rows are opaque mappings owned by the application. The history engine only
needs two facts about a row: its stable id (if it has one) and whether it
holds any meaningful content.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from typing import Any, TypeAlias

Row: TypeAlias = dict[str, Any]
RowId: TypeAlias = str | int

# Fields checked, in order, by the default id resolver
ROW_ID_FIELDS: tuple[str, ...] = ("id", "localKey", "key")

# Bookkeeping fields that never count as row content
BLANK_IGNORED_FIELDS: frozenset[str] = frozenset(
    {"disableControls", "groupStart", "isGroupPad", "localKey", "id"}
)


def default_get_row_id(row: Row | None) -> RowId | None:
    """Return the first non-null of id, localKey, key.

    Returns:
        The row id, or None if the row has no usable identity.
    """
    if not row or not isinstance(row, Mapping):
        return None
    for field_name in ROW_ID_FIELDS:
        value = row.get(field_name)
        if value is not None:
            return value
    return None


def safe_row_id(get_row_id: Callable[[Row], RowId | None], row: Row) -> RowId | None:
    """Resolve a row id, treating any resolver error as "no identity"."""
    try:
        return get_row_id(row)
    except Exception:
        return None


def _is_blank_value(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (int, float)):
        return value == 0 or (isinstance(value, float) and not math.isfinite(value))
    if isinstance(value, (Mapping, list, tuple, set)):
        return len(value) == 0
    return False


def default_is_row_blank(row: Row | None) -> bool:
    """Check whether a row has no meaningful content.

    Bookkeeping fields (ids, group markers, disable flags) are ignored.
    Empty strings, zero, False, None and empty nested containers are blank.
    """
    if not isinstance(row, Mapping):
        return True
    return all(
        _is_blank_value(value)
        for key, value in row.items()
        if key not in BLANK_IGNORED_FIELDS
    )
