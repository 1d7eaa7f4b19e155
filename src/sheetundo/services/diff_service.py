"""Diff engine: turns a before/after pair of row lists into operations.

Three strategies, tried in order:
- identity: every row on both sides has an id (rows matched by id)
- hints: the editing surface reported CREATE/UPDATE/DELETE row ranges
- position: rows compared index by index, blank rows mark inserts/deletes
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from ..data.transaction import DiffResult
from ..debug_trace import perf_timer
from ..models.operations import (
    DeleteOp,
    HintKind,
    InsertOp,
    Operation,
    OpHint,
    ReorderOp,
    UpdateOp,
)
from ..models.row import Row, RowId, default_get_row_id, default_is_row_blank, safe_row_id
from ..utils.cloning import clone_row_deep, clone_rows_deep


def rows_equal(a: Any, b: Any) -> bool:
    """Structural deep equality for row values.

    Mappings compare by key set and values, lists/tuples element-wise,
    everything else with == (NaN equals NaN). Reference cycles are handled.
    """
    return _equal(a, b, set())


def _equal(a: Any, b: Any, seen: set[tuple[int, int]]) -> bool:
    if a is b:
        return True
    a_container = isinstance(a, (Mapping, list, tuple))
    b_container = isinstance(b, (Mapping, list, tuple))
    if not a_container or not b_container:
        if a_container or b_container:
            return False
        # NaN equals NaN
        if isinstance(a, float) and isinstance(b, float) and math.isnan(a) and math.isnan(b):
            return True
        try:
            return bool(a == b)
        except Exception:
            return False

    pair = (id(a), id(b))
    if pair in seen:
        return True
    seen.add(pair)

    if isinstance(a, Mapping) or isinstance(b, Mapping):
        if not (isinstance(a, Mapping) and isinstance(b, Mapping)):
            return False
        if len(a) != len(b):
            return False
        for key, value in a.items():
            if key not in b:
                return False
            if not _equal(value, b[key], seen):
                return False
        return True

    if len(a) != len(b):
        return False
    return all(_equal(x, y, seen) for x, y in zip(a, b))


def order_changed_by_ref(prev: Sequence[Row], next_rows: Sequence[Row]) -> bool:
    """Check whether any row object moved to a different index.

    Compares object identity, not content: a row present (as the same
    object) in both lists at different positions means the order changed.
    """
    ref_index: dict[int, int] = {}
    for idx, row in enumerate(prev):
        ref_index.setdefault(id(row), idx)
    for idx, row in enumerate(next_rows):
        prev_idx = ref_index.get(id(row))
        if prev_idx is not None and prev_idx != idx:
            return True
    return False


def diff_by_ids(
    prev: Sequence[Row],
    next_rows: Sequence[Row],
    get_row_id: Callable[[Row], RowId | None],
) -> DiffResult:
    """Identity-based diff. Every row on both sides must resolve to an id."""
    prev_order = [safe_row_id(get_row_id, row) for row in prev]
    next_order = [safe_row_id(get_row_id, row) for row in next_rows]
    prev_map = dict(zip(prev_order, prev))
    next_map = dict(zip(next_order, next_rows))

    updates: list[Operation] = []
    for index, row_id in enumerate(next_order):
        if row_id not in prev_map:
            continue
        before = prev_map[row_id]
        after = next_map[row_id]
        if not rows_equal(before, after):
            updates.append(
                UpdateOp(
                    id=row_id,
                    index=index,
                    before=clone_row_deep(before),
                    after=clone_row_deep(after),
                )
            )

    deletes = [prev_map[row_id] for row_id in prev_order if row_id not in next_map]
    inserts = [next_map[row_id] for row_id in next_order if row_id not in prev_map]

    ops: list[Operation] = list(updates)
    if deletes:
        ops.append(DeleteOp(rows=clone_rows_deep(deletes)))
    if inserts:
        ops.append(InsertOp(rows=clone_rows_deep(inserts)))

    order_changed = prev_order != next_order
    if order_changed or inserts or deletes:
        ops.append(ReorderOp(before_order=list(prev_order), after_order=list(next_order)))

    return DiffResult(ops=ops, uses_ids=True, order_changed=order_changed)


def diff_by_hints(
    prev: Sequence[Row],
    next_rows: Sequence[Row],
    hints: Sequence[OpHint] | None,
) -> list[Operation]:
    """Positional ops from the editing surface's own change report."""
    ops: list[Operation] = []
    for hint in hints or ():
        kind = HintKind(hint.kind)
        if kind is HintKind.UPDATE:
            for i in range(hint.from_row_index, hint.to_row_index):
                if i < 0 or i >= len(next_rows) or i >= len(prev):
                    continue
                ops.append(
                    UpdateOp(
                        index=i,
                        before=clone_row_deep(prev[i]),
                        after=clone_row_deep(next_rows[i]),
                    )
                )
        elif kind is HintKind.CREATE:
            ops.append(
                InsertOp(
                    index=hint.from_row_index,
                    rows=clone_rows_deep(next_rows[hint.from_row_index : hint.to_row_index]),
                )
            )
        elif kind is HintKind.DELETE:
            ops.append(
                DeleteOp(
                    index=hint.from_row_index,
                    rows=clone_rows_deep(prev[hint.from_row_index : hint.to_row_index]),
                )
            )
    return ops


def diff_by_index(
    prev: Sequence[Row],
    next_rows: Sequence[Row],
    is_row_blank: Callable[[Row], bool],
) -> list[Operation]:
    """Position-based fallback diff.

    Blank -> filled is an insert, filled -> blank a delete, anything else
    that differs an update. Extra rows at the tail become one bulk op.
    """
    ops: list[Operation] = []
    common = min(len(prev), len(next_rows))
    for i in range(common):
        before_blank = is_row_blank(prev[i])
        after_blank = is_row_blank(next_rows[i])
        if before_blank and not after_blank:
            ops.append(InsertOp(index=i, rows=[clone_row_deep(next_rows[i])]))
        elif not before_blank and after_blank:
            ops.append(DeleteOp(index=i, rows=[clone_row_deep(prev[i])]))
        elif not rows_equal(prev[i], next_rows[i]):
            ops.append(
                UpdateOp(
                    index=i,
                    before=clone_row_deep(prev[i]),
                    after=clone_row_deep(next_rows[i]),
                )
            )

    if len(next_rows) > len(prev):
        ops.append(InsertOp(index=len(prev), rows=clone_rows_deep(next_rows[len(prev) :])))
    elif len(prev) > len(next_rows):
        ops.append(DeleteOp(index=len(next_rows), rows=clone_rows_deep(prev[len(next_rows) :])))
    return ops


def compute_diff(
    prev: Sequence[Row],
    next_rows: Sequence[Row],
    get_row_id: Callable[[Row], RowId | None] | None = None,
    hints: Sequence[OpHint] | None = None,
    is_row_blank: Callable[[Row], bool] | None = None,
    *,
    prev_refs: Sequence[Row] | None = None,
    next_refs: Sequence[Row] | None = None,
) -> DiffResult:
    """Compute the operations that turn prev into next_rows.

    Args:
        prev: Rows before the change (usually a deep snapshot).
        next_rows: Rows after the change.
        get_row_id: Row id resolver (defaults to id/localKey/key).
        hints: Optional CREATE/UPDATE/DELETE ranges reported by the surface.
        is_row_blank: Blank-row predicate for the positional fallback.
        prev_refs: Live row objects matching prev, for by-reference order
            detection when prev is a copy (defaults to prev).
        next_refs: Live row objects matching next_rows (defaults to next_rows).

    Returns:
        DiffResult. ``order_changed`` together with ``uses_ids=False``
        means the positional ops cannot be trusted across the change.
    """
    id_of = get_row_id or default_get_row_id
    blank = is_row_blank or default_is_row_blank

    with perf_timer("compute_diff", row_count=max(len(prev), len(next_rows))):
        stable_ids = all(safe_row_id(id_of, row) is not None for row in prev) and all(
            safe_row_id(id_of, row) is not None for row in next_rows
        )
        if stable_ids:
            return diff_by_ids(prev, next_rows, id_of)

        order_changed = order_changed_by_ref(
            prev if prev_refs is None else prev_refs,
            next_rows if next_refs is None else next_refs,
        )

        ops = diff_by_hints(prev, next_rows, hints)
        if not ops:
            ops = diff_by_index(prev, next_rows, blank)
        return DiffResult(ops=ops, uses_ids=False, order_changed=order_changed)
