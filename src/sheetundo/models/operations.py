"""Reversible row operations, coarse operation hints and UI state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Literal, TypeAlias

from .row import Row, RowId


@dataclass
class UpdateOp:
    """One row's content changed in place.

    Attributes:
        index: Row position after the change.
        before: Deep copy of the row before the change.
        after: Deep copy of the row after the change.
        id: Row id for identity-stable diffs (None for positional diffs).
    """

    type: ClassVar[Literal["update"]] = "update"

    index: int
    before: Row
    after: Row
    id: RowId | None = None


@dataclass
class InsertOp:
    """Rows added. ``index`` is only set for positional diffs."""

    type: ClassVar[Literal["insert"]] = "insert"

    rows: list[Row] = field(default_factory=list)
    index: int | None = None


@dataclass
class DeleteOp:
    """Rows removed. ``index`` is only set for positional diffs."""

    type: ClassVar[Literal["delete"]] = "delete"

    rows: list[Row] = field(default_factory=list)
    index: int | None = None


@dataclass
class ReorderOp:
    """Full id sequences before and after a change (identity-stable diffs only)."""

    type: ClassVar[Literal["reorder"]] = "reorder"

    before_order: list[RowId] = field(default_factory=list)
    after_order: list[RowId] = field(default_factory=list)


Operation: TypeAlias = UpdateOp | InsertOp | DeleteOp | ReorderOp


class HintKind(str, Enum):
    """Kinds of coarse operation hints emitted by editing surfaces."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class OpHint:
    """A half-open row range tagged with what happened to it.

    CREATE and UPDATE ranges index into the new rows; DELETE ranges index
    into the previous rows.
    """

    kind: HintKind
    from_row_index: int
    to_row_index: int


@dataclass
class UiState:
    """Focus/selection snapshot attached to a transaction.

    Values are opaque to the engine; the editing surface decides what it
    stores (e.g. ``(row, column)`` for the active cell).
    """

    active_cell: Any = None
    selection: Any = None
