"""Transactions: the unit of undo/redo.

A Transaction groups the operations recorded between a begin and a commit,
along with the UI state (focused cell, selection) on either side of it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..models.operations import ReorderOp

if TYPE_CHECKING:
    from ..models.operations import Operation, UiState


@dataclass
class Transaction:
    """Labeled, ordered group of operations.

    Attributes:
        ops: Operations in canonical replay order.
        label: Human-readable description (for menu display).
        ui_before: UI state to restore after undo.
        ui_after: UI state to restore after redo.
    """

    ops: list[Operation] = field(default_factory=list)
    label: str | None = None
    ui_before: UiState | None = None
    ui_after: UiState | None = None

    @property
    def uses_ids(self) -> bool:
        """Whether replay should locate rows by id.

        Only identity-based diffs produce reorder operations, so their
        presence marks the whole transaction as id-addressed.
        """
        return any(isinstance(op, ReorderOp) for op in self.ops)

    def __repr__(self) -> str:
        return f"Transaction({self.label!r}, {len(self.ops)} ops)"


@dataclass
class DiffResult:
    """Output of compute_diff.

    Attributes:
        ops: Operations describing prev -> next.
        uses_ids: True when the identity-based strategy produced the ops.
        order_changed: Row order differs between prev and next.
    """

    ops: list[Operation] = field(default_factory=list)
    uses_ids: bool = False
    order_changed: bool = False

    @property
    def is_unsound(self) -> bool:
        """Positional ops cannot be replayed across a silent reindex."""
        return not self.uses_ids and self.order_changed
