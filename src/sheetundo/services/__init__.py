"""Service layer for history computation.

Services are pure functions over row lists; they hold no state and never
mutate the rows they are given.

Services:
- diff_service: compute_diff and its three strategies (ids, hints, positions)
- apply_service: apply_ops replays operations for undo/redo
"""

from .apply_service import apply_ops, apply_reorder
from .diff_service import (
    compute_diff,
    diff_by_hints,
    diff_by_ids,
    diff_by_index,
    order_changed_by_ref,
    rows_equal,
)

__all__ = [
    "apply_ops",
    "apply_reorder",
    "compute_diff",
    "diff_by_hints",
    "diff_by_ids",
    "diff_by_index",
    "order_changed_by_ref",
    "rows_equal",
]
