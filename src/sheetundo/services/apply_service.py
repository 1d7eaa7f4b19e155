"""Operation applier: replays a transaction's operations forward or backward."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Literal

from ..debug_trace import logger, perf_timer
from ..models.operations import DeleteOp, InsertOp, Operation, ReorderOp, UpdateOp
from ..models.row import Row, RowId, safe_row_id
from ..utils.cloning import clone_row_deep, clone_rows_deep

Direction = Literal["undo", "redo"]


def apply_reorder(
    rows: Sequence[Row],
    order: Sequence[RowId],
    get_row_id: Callable[[Row], RowId | None],
) -> list[Row]:
    """Rebuild rows in the given id order.

    Ids with no matching row are skipped, and rows whose id is not in
    ``order`` are dropped.
    """
    by_id: dict[RowId | None, Row] = {}
    for row in rows:
        by_id[safe_row_id(get_row_id, row)] = row
    return [by_id[row_id] for row_id in order if row_id in by_id]


def _find_index(
    rows: Sequence[Row], row_id: RowId, get_row_id: Callable[[Row], RowId | None]
) -> int:
    for idx, row in enumerate(rows):
        if safe_row_id(get_row_id, row) == row_id:
            return idx
    return -1


def _remove_rows(
    rows: list[Row],
    op: InsertOp | DeleteOp,
    get_row_id: Callable[[Row], RowId | None],
    uses_ids: bool,
) -> list[Row]:
    if uses_ids:
        ids = {safe_row_id(get_row_id, row) for row in op.rows}
        return [row for row in rows if safe_row_id(get_row_id, row) not in ids]
    if op.index is None:
        return rows
    del rows[op.index : op.index + len(op.rows)]
    return rows


def _add_rows(rows: list[Row], op: InsertOp | DeleteOp, uses_ids: bool) -> list[Row]:
    if uses_ids:
        return rows + clone_rows_deep(op.rows)
    if op.index is None:
        return rows
    rows[op.index : op.index] = clone_rows_deep(op.rows)
    return rows


def apply_ops(
    rows: Sequence[Row],
    ops: Sequence[Operation],
    direction: Direction,
    get_row_id: Callable[[Row], RowId | None],
    uses_ids: bool,
) -> list[Row]:
    """Reconstruct the rows before (undo) or after (redo) a set of operations.

    Undo walks the operations in reverse so positional updates see the row
    layout their sibling inserts/deletes left behind. A reorder is applied
    once the structural operations of the pass are done, so rows re-added
    at the end of the list still land at their recorded positions.

    Operations whose target row can no longer be found are skipped.

    Args:
        rows: Current rows (not modified).
        ops: Operations in canonical recording order.
        direction: "undo" or "redo".
        get_row_id: Row id resolver used to locate rows when uses_ids is set.
        uses_ids: Locate rows by id rather than recorded index.

    Returns:
        New list of rows.
    """
    undo = direction == "undo"
    ordered = list(reversed(ops)) if undo else list(ops)
    result = list(rows)
    target_order: Sequence[RowId] | None = None

    with perf_timer(f"apply_ops:{direction}", row_count=len(result)):
        for op in ordered:
            if isinstance(op, UpdateOp):
                idx = op.index
                if uses_ids and op.id is not None:
                    idx = _find_index(result, op.id, get_row_id)
                if idx is None or idx < 0 or idx >= len(result):
                    logger.debug(f"skip update: row {op.id if uses_ids else op.index} not found")
                    continue
                result[idx] = clone_row_deep(op.before if undo else op.after)
            elif isinstance(op, InsertOp):
                if undo:
                    result = _remove_rows(result, op, get_row_id, uses_ids)
                else:
                    result = _add_rows(result, op, uses_ids)
            elif isinstance(op, DeleteOp):
                if undo:
                    result = _add_rows(result, op, uses_ids)
                else:
                    result = _remove_rows(result, op, get_row_id, uses_ids)
            elif isinstance(op, ReorderOp):
                if not uses_ids:
                    continue
                target_order = op.before_order if undo else op.after_order

        if target_order is not None:
            result = apply_reorder(result, target_order, get_row_id)

    return result
