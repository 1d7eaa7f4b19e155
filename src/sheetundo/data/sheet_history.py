"""Undo/redo stacks of transactions with explicit begin/commit.

- Only one transaction is open at a time; a second begin is ignored
- Committing a non-empty transaction clears the redo stack
- Empty transactions are discarded on commit
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..debug_trace import logger
from .transaction import Transaction

if TYPE_CHECKING:
    from ..models.operations import Operation, UiState


class SheetHistory:
    """Linear undo/redo history for one editing session."""

    def __init__(self, max_depth: int | None = None) -> None:
        """Initialize empty history.

        Args:
            max_depth: Maximum number of undo transactions to retain
                (None for unlimited).
        """
        self.max_depth = max_depth
        self.undo_stack: list[Transaction] = []
        self.redo_stack: list[Transaction] = []
        self.pending: Transaction | None = None

    @property
    def is_open(self) -> bool:
        return self.pending is not None

    @property
    def undo_depth(self) -> int:
        return len(self.undo_stack)

    @property
    def redo_depth(self) -> int:
        return len(self.redo_stack)

    def begin(self, label: str | None = None, ui_before: UiState | None = None) -> None:
        """Open a transaction. No-op if one is already open."""
        if self.pending is not None:
            return
        self.pending = Transaction(label=label, ui_before=ui_before)

    def push(self, op: Operation) -> None:
        """Add an operation, opening an unlabeled transaction if needed."""
        if self.pending is None:
            self.pending = Transaction()
        self.pending.ops.append(op)

    def commit(self, ui_after: UiState | None = None) -> Transaction | None:
        """Close the open transaction.

        Returns:
            The committed transaction, or None if it was empty (or none was open).
        """
        tx = self.pending
        self.pending = None
        if tx is None:
            return None
        if ui_after is not None:
            tx.ui_after = ui_after
        if not tx.ops:
            return None

        self.undo_stack.append(tx)
        if self.max_depth is not None:
            while len(self.undo_stack) > self.max_depth:
                self.undo_stack.pop(0)

        # New edit invalidates redo history
        self.redo_stack.clear()
        return tx

    def clear(self, reason: str = "") -> None:
        """Drop both stacks and any open transaction."""
        if self.undo_stack or self.redo_stack or self.pending:
            logger.debug(
                f"history clear: reason={reason or 'unknown'} "
                f"undo={len(self.undo_stack)} redo={len(self.redo_stack)}"
            )
        self.undo_stack.clear()
        self.redo_stack.clear()
        self.pending = None

    def can_undo(self) -> bool:
        """Check if undo is available."""
        return len(self.undo_stack) > 0

    def can_redo(self) -> bool:
        """Check if redo is available."""
        return len(self.redo_stack) > 0

    def pop_undo(self) -> Transaction | None:
        return self.undo_stack.pop() if self.undo_stack else None

    def push_undo(self, tx: Transaction) -> None:
        self.undo_stack.append(tx)

    def pop_redo(self) -> Transaction | None:
        return self.redo_stack.pop() if self.redo_stack else None

    def push_redo(self, tx: Transaction) -> None:
        self.redo_stack.append(tx)

    def undo_label(self) -> str | None:
        """Get label of next undo transaction."""
        if self.undo_stack:
            return self.undo_stack[-1].label
        return None

    def redo_label(self) -> str | None:
        """Get label of next redo transaction."""
        if self.redo_stack:
            return self.redo_stack[-1].label
        return None

    def __len__(self) -> int:
        """Number of undoable transactions."""
        return len(self.undo_stack)
