"""Undoable controller: records row changes and replays them on undo/redo.

The controller sits between an editing surface and the row source that owns
the live rows. It keeps:
- last_value: the row list last forwarded to the source (by reference)
- snapshot: a deep copy of the same rows (the diff baseline)
- history: undo/redo stacks of transactions

Key behaviors:
- Outside a transaction every change is diffed and recorded immediately
- Inside a transaction changes are only forwarded; the diff runs on commit
- A positional diff that also reorders rows cannot be replayed safely, so
  history is cleared instead of recording it (the edit itself still goes through)
- Replacing the source's rows from outside clears history
"""

from __future__ import annotations

from collections.abc import Callable, Generator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING

from ..debug_trace import logger
from ..services.apply_service import apply_ops
from ..services.diff_service import compute_diff
from ..settings import HistorySettings
from ..utils.cloning import clone_rows_deep
from .edit_session import EditSession
from .sheet_history import SheetHistory

if TYPE_CHECKING:
    from ..models.operations import OpHint, UiState
    from ..models.row import Row
    from .row_source import RowSource
    from .transaction import DiffResult, Transaction


class UndoableController:
    """Undo/redo facade for one row collection's editing session.

    Usage:
        controller = UndoableController(ListRowSource(rows))

        # Programmatic change: recorded as its own transaction
        controller.on_change(new_rows)

        # Interactive edit: everything until commit is one transaction
        controller.begin_transaction("Edit cell", ui_before)
        controller.on_change(rows_after_keystroke)
        controller.commit_transaction(ui_after)

        ui = controller.undo()   # restore focus from ui on next paint
        ui = controller.redo()
    """

    def __init__(self, source: RowSource, settings: HistorySettings | None = None):
        """Initialize the controller.

        Args:
            source: Row source holding the live rows.
            settings: History options (defaults to HistorySettings()).
        """
        self._source = source
        self.settings = settings if settings is not None else HistorySettings()
        self.history = SheetHistory(max_depth=self.settings.max_undo_depth)

        # Bumped on every forward or history change
        self.history_version = 0

        # True while rows are being handed to the source
        self._applying = False

        # Open transaction state
        self._transaction_open = False
        self._transaction_snapshot: list[Row] | None = None
        self._transaction_refs: list[Row] | None = None

        initial = source.value
        self._last_value: list[Row] = initial if initial is not None else []
        self._last_snapshot: list[Row] = clone_rows_deep(self._last_value)

        self._observers: list[Callable[[UndoableController, str], None]] = []
        self._current_session: EditSession | None = None

    # --- State ---

    @property
    def source(self) -> RowSource:
        return self._source

    @property
    def value(self) -> list[Row]:
        """The rows last forwarded to (or adopted from) the source."""
        return self._last_value

    @property
    def snapshot(self) -> list[Row]:
        """Deep copy of value used as the diff baseline. Do not mutate."""
        return self._last_snapshot

    @property
    def is_transaction_open(self) -> bool:
        return self._transaction_open

    def can_undo(self) -> bool:
        """Check if undo is available."""
        return self.history.can_undo()

    def can_redo(self) -> bool:
        """Check if redo is available."""
        return self.history.can_redo()

    def get_undo_description(self) -> str | None:
        """Get description of next undo action."""
        return self.history.undo_label()

    def get_redo_description(self) -> str | None:
        """Get description of next redo action."""
        return self.history.redo_label()

    # --- Observers ---

    def add_observer(self, callback: Callable[[UndoableController, str], None]) -> None:
        """Register a callback called as callback(controller, reason) after changes."""
        if callback not in self._observers:
            self._observers.append(callback)

    def remove_observer(self, callback: Callable[[UndoableController, str], None]) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify_observers(self, reason: str) -> None:
        self.history_version += 1
        for callback in list(self._observers):
            callback(self, reason)

    def _trace(self, message: str) -> None:
        if self.settings.debug:
            logger.debug(message)

    # --- Forwarding ---

    def _apply_rows(self, next_rows: list[Row], hints: Sequence[OpHint] | None = None) -> None:
        """Hand rows to the source and refresh the baseline."""
        self._applying = True
        try:
            self._source.on_change(next_rows, hints)
        finally:
            self._applying = False

        forwarded = self._source.value
        self._last_value = forwarded if forwarded is not None else next_rows
        self._last_snapshot = clone_rows_deep(next_rows)

    def _adopt_source_value(self) -> None:
        current = self._source.value
        self._last_value = current if current is not None else []
        self._last_snapshot = clone_rows_deep(self._last_value)

    def _diff(
        self,
        prev: list[Row],
        next_rows: list[Row],
        hints: Sequence[OpHint] | None = None,
        *,
        prev_refs: list[Row] | None = None,
        next_refs: list[Row] | None = None,
    ) -> DiffResult:
        return compute_diff(
            prev,
            next_rows,
            self.settings.get_row_id,
            hints,
            self.settings.is_row_blank,
            prev_refs=prev_refs,
            next_refs=next_refs,
        )

    # --- Editing ---

    def on_change(self, next_rows: list[Row], hints: Sequence[OpHint] | None = None) -> None:
        """Accept new rows from the editing surface.

        Args:
            next_rows: The complete row list after the edit.
            hints: Optional CREATE/UPDATE/DELETE ranges reported by the surface.
        """
        if not self.settings.enabled:
            self._apply_rows(next_rows, hints)
            self._notify_observers("change")
            return

        self._trace(
            f"onChange: rows={len(next_rows)} hints={len(hints) if hints else 0} "
            f"in_transaction={self._transaction_open}"
        )

        if not self._transaction_open:
            diff = self._diff(self._last_snapshot, next_rows, hints, prev_refs=self._last_value)
            if diff.is_unsound:
                logger.info("Row order changed without stable ids; clearing undo history")
                self.history.clear("orderChanged")
                self._apply_rows(next_rows, hints)
                self._notify_observers("clear")
                return

            self.history.begin()
            for op in diff.ops:
                self.history.push(op)
            self.history.commit()
            self._trace(f"push: reason=onChange ops={len(diff.ops)} undo={self.history.undo_depth}")

        self._apply_rows(next_rows, hints)
        self._notify_observers("change")

    def set_value(self, next_rows: list[Row]) -> None:
        """Setter-style alias for on_change without hints."""
        self.on_change(next_rows)

    def begin_transaction(self, label: str | None = None, ui_before: UiState | None = None) -> None:
        """Start grouping changes into one undo step. No-op if already open.

        Args:
            label: Description for the undo menu.
            ui_before: UI state to restore when this transaction is undone.
        """
        if self._transaction_open:
            return
        # The snapshot is never mutated in place, so holding it is enough
        self._transaction_snapshot = self._last_snapshot
        self._transaction_refs = self._last_value
        self.history.begin(label, ui_before)
        self._transaction_open = True
        self._trace(f"begin: label={label!r} rows={len(self._transaction_snapshot)}")

    def commit_transaction(self, ui_after: UiState | None = None) -> Transaction | None:
        """Finish the open transaction, diffing its start against now.

        Args:
            ui_after: UI state to restore when this transaction is redone.

        Returns:
            The committed transaction, or None if nothing was recorded.
        """
        if not self._transaction_open:
            return None

        before = self._transaction_snapshot if self._transaction_snapshot is not None else []
        diff = self._diff(
            before,
            self._last_snapshot,
            prev_refs=self._transaction_refs,
            next_refs=self._last_value,
        )
        if diff.is_unsound:
            logger.info("Row order changed without stable ids; clearing undo history")
            self.history.clear("orderChanged:transaction")
        else:
            for op in diff.ops:
                self.history.push(op)
        tx = self.history.commit(ui_after)

        self._transaction_open = False
        self._transaction_snapshot = None
        self._transaction_refs = None
        self._trace(
            f"commit: ops={len(diff.ops)} order_changed={diff.order_changed} "
            f"rows={len(self._last_snapshot)}"
        )
        self._notify_observers("commit")
        return tx

    @contextmanager
    def edit_session(
        self, label: str = "", ui_before: UiState | None = None
    ) -> Generator[EditSession, None, None]:
        """Context manager for scripted edits recorded as one undo step.

        Joins a transaction the caller already opened (and leaves it open).

        Args:
            label: Description for the undo menu.
            ui_before: UI state to restore on undo.

        Yields:
            EditSession for accumulating changes
        """
        if self._current_session is not None:
            raise RuntimeError("Cannot nest edit_session calls")

        session = EditSession(self, label)
        self._current_session = session
        opened = not self._transaction_open
        self.begin_transaction(label, ui_before)

        try:
            yield session
        finally:
            self._current_session = None
            if session.has_pending_changes():
                self.on_change(session.build_rows(self._last_value))
            if opened:
                self.commit_transaction()

    # --- Undo/Redo ---

    def undo(self) -> UiState | None:
        """Revert the most recent transaction.

        An open transaction is committed first so the in-flight edit is
        what gets undone.

        Returns:
            The transaction's ui_before (for the caller to restore), or None.
        """
        if self._transaction_open:
            self.commit_transaction()

        tx = self.history.pop_undo()
        if tx is None:
            return None

        self._trace(f"undo: label={tx.label!r} undo={self.history.undo_depth}")
        next_rows = apply_ops(
            self._last_snapshot, tx.ops, "undo", self.settings.get_row_id, tx.uses_ids
        )
        self._apply_rows(next_rows)
        self.history.push_redo(tx)
        self._notify_observers("undo")
        return tx.ui_before

    def redo(self) -> UiState | None:
        """Re-apply the most recently undone transaction.

        Returns:
            The transaction's ui_after (for the caller to restore), or None.
        """
        if self._transaction_open:
            self.commit_transaction()

        tx = self.history.pop_redo()
        if tx is None:
            return None

        self._trace(f"redo: label={tx.label!r} redo={self.history.redo_depth}")
        next_rows = apply_ops(
            self._last_snapshot, tx.ops, "redo", self.settings.get_row_id, tx.uses_ids
        )
        self._apply_rows(next_rows)
        self.history.push_undo(tx)
        self._notify_observers("redo")
        return tx.ui_after

    # --- History lifecycle ---

    def clear_history(self, reason: str = "") -> None:
        """Drop all history, including an open transaction."""
        self.history.clear(reason)
        self._transaction_open = False
        self._transaction_snapshot = None
        self._transaction_refs = None
        self._notify_observers("clear")

    def reset(self, next_rows: list[Row] | None = None) -> None:
        """Reset the source (or replace its rows) and clear history."""
        if self._source.supports_reset:
            self._applying = True
            try:
                self._source.reset(next_rows)
            finally:
                self._applying = False
            self._adopt_source_value()
        elif next_rows is not None:
            self._apply_rows(next_rows)
        self.clear_history("reset")

    def commit(self) -> None:
        """Accept the current rows as saved; history starts over."""
        if self._source.supports_commit:
            self._source.commit()
        self.clear_history("commit")

    def replace_data(self, next_rows: list[Row]) -> None:
        """Load new rows through the controller and clear history."""
        self._apply_rows(next_rows)
        self.clear_history("replaceData")

    def apply_derived_patch(
        self, updater: list[Row] | Callable[[list[Row]], list[Row]]
    ) -> None:
        """Forward rows derived from the current ones without recording history.

        For computed columns that must not become undo steps of their own.

        Args:
            updater: New rows, or a callable given a deep copy of the current
                rows that returns the new rows.
        """
        if callable(updater):
            next_rows = updater(clone_rows_deep(self._last_snapshot))
        else:
            next_rows = updater
        if not isinstance(next_rows, list):
            return
        self._apply_rows(next_rows)
        self._notify_observers("derived")

    def sync_external_change(self) -> bool:
        """Detect rows replaced at the source without going through the controller.

        Call on every render/tick. A new value reference that the controller
        did not forward itself is adopted as the new baseline, and history is
        cleared unless preserve_history_on_external_change is set.

        Returns:
            True if an external change was detected.
        """
        if self._applying:
            return False
        current = self._source.value
        if current is None or current is self._last_value:
            return False

        self._last_value = current
        self._last_snapshot = clone_rows_deep(current)
        if self.settings.preserve_history_on_external_change:
            self._notify_observers("external")
        else:
            self.clear_history("externalChange")
        return True
