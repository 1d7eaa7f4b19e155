"""Connects a tksheet Sheet to an UndoableController.

The binding is the editing-surface side of the history engine:
- renders controller rows into the sheet
- turns cell edits and row add/delete/move into on_change calls
- brackets each cell edit session with begin/commit_transaction
- maps the platform undo/redo chords to undo()/redo()
- restores the active cell after undo/redo once the sheet has redrawn
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from ..debug_trace import log_perf, logger
from ..models.operations import HintKind, OpHint, UiState

if TYPE_CHECKING:
    from tksheet import Sheet

    from ..data.undoable_controller import UndoableController
    from ..models.row import Row

UNDO_KEYS: tuple[str, ...] = ("<Control-z>",)
REDO_KEYS: tuple[str, ...] = ("<Control-Z>", "<Control-Shift-Z>", "<Control-y>")

# <<SheetModified>> event names handled by the end_*_rows bindings
STRUCTURAL_EVENTS = frozenset({"add_rows", "delete_rows", "move_rows"})

if sys.platform == "darwin":
    UNDO_KEYS += ("<Command-z>",)
    REDO_KEYS += ("<Command-Z>", "<Command-Shift-Z>", "<Command-y>")


def contiguous_runs(indices: list[int]) -> list[tuple[int, int]]:
    """Group sorted indices into half-open (start, end) runs."""
    runs: list[tuple[int, int]] = []
    for idx in sorted(indices):
        if runs and runs[-1][1] == idx:
            runs[-1] = (runs[-1][0], idx + 1)
        else:
            runs.append((idx, idx + 1))
    return runs


def added_row_indices(event) -> list[int]:
    """Sorted data indices of rows a tksheet event reports as added.

    tksheet v7 structure: event["added"]["rows"] =
    {'table': {data_row: row_values}, 'index': {...}, 'row_heights': {...}}
    """
    added = (event.get("added") or {}).get("rows") or {}
    table = added.get("table") or {}
    return sorted(idx for idx in table if isinstance(idx, int))


class SheetUndoBinding:
    """Undo/redo support for a tksheet Sheet showing a list of row dicts.

    Usage:
        sheet = Sheet(parent, headers=["SKU", "Qty"])
        controller = UndoableController(ListRowSource(rows))
        binding = SheetUndoBinding(sheet, controller, columns=["sku", "qty"])
    """

    def __init__(
        self,
        sheet: Sheet,
        controller: UndoableController,
        columns: list[str],
        new_row: Callable[[], Row] | None = None,
        edit_label: str = "Edit cell",
    ):
        """Wire the sheet to the controller.

        Args:
            sheet: The tksheet Sheet to bind.
            controller: Controller owning the rows and their history.
            columns: Row field shown in each sheet column, in order.
            new_row: Factory for rows inserted through the sheet (e.g. one
                that assigns a localKey so inserts stay identity-stable).
            edit_label: Undo label for interactive cell edits.
        """
        self.sheet = sheet
        self.controller = controller
        self.columns = list(columns)
        self.new_row = new_row or dict
        self.edit_label = edit_label

        # Suppress handling of events we cause ourselves
        self._suppress_notifications = False
        self._forwarding = False

        # The sheet's own undo would fight the controller's history
        self.sheet.disable_bindings("undo")
        for key in UNDO_KEYS:
            self.sheet.bind(key, self._on_undo_key)
        for key in REDO_KEYS:
            self.sheet.bind(key, self._on_redo_key)

        self.sheet.extra_bindings("begin_edit_cell", self._on_begin_edit)
        self.sheet.extra_bindings("end_edit_cell", self._on_end_edit)
        self.sheet.extra_bindings("escape_edit_cell", self._on_escape_edit)
        self.sheet.extra_bindings("end_add_rows", self._on_rows_added)
        self.sheet.extra_bindings("end_delete_rows", self._on_rows_deleted)
        self.sheet.extra_bindings("end_move_rows", self._on_rows_moved)
        self.sheet.bind("<<SheetModified>>", self._on_sheet_modified)

        self.controller.add_observer(self._on_controller_changed)
        self.render()

    def detach(self) -> None:
        """Stop listening to the controller."""
        self.controller.remove_observer(self._on_controller_changed)

    # --- Rendering ---

    def row_values(self, row: Row) -> list[Any]:
        """Sheet cell values for one row."""
        return [row.get(column, "") for column in self.columns]

    @log_perf
    def render(self) -> None:
        """Populate the sheet from the controller's rows."""
        self._suppress_notifications = True
        try:
            data = [self.row_values(row) for row in self.controller.value]
            self.sheet.set_sheet_data(data, reset_col_positions=False)
        finally:
            self._suppress_notifications = False

    def _on_controller_changed(self, controller: UndoableController, reason: str) -> None:
        if self._forwarding or reason == "commit":
            return
        self.render()

    def _forward(self, rows: list[Row], hints: list[OpHint] | None = None) -> None:
        self._forwarding = True
        try:
            self.controller.on_change(rows, hints)
        finally:
            self._forwarding = False

    # --- UI state ---

    def capture_ui_state(self) -> UiState:
        """Snapshot the active cell and selected cells."""
        current = self.sheet.get_currently_selected()
        active_cell = (current.row, current.column) if current else None
        selection = tuple(sorted(self.sheet.get_selected_cells()))
        return UiState(active_cell=active_cell, selection=selection or None)

    def restore_ui_state(self, ui_state: UiState | None) -> None:
        """Reselect the saved active cell once the sheet has redrawn."""
        if ui_state is None or ui_state.active_cell is None:
            return
        self.sheet.after_idle(lambda: self._apply_ui_state(ui_state))

    def _apply_ui_state(self, ui_state: UiState) -> None:
        row, column = ui_state.active_cell
        if row >= self.sheet.get_total_rows() or column >= len(self.columns):
            return
        self.sheet.select_cell(row, column)
        self.sheet.see(row, column)

    # --- Undo/Redo ---

    def undo(self) -> None:
        if self.controller.is_transaction_open:
            self.controller.commit_transaction(self.capture_ui_state())
        self.restore_ui_state(self.controller.undo())

    def redo(self) -> None:
        if self.controller.is_transaction_open:
            self.controller.commit_transaction(self.capture_ui_state())
        self.restore_ui_state(self.controller.redo())

    def _on_undo_key(self, event=None) -> str:
        self.undo()
        return "break"

    def _on_redo_key(self, event=None) -> str:
        self.redo()
        return "break"

    # --- Cell edits ---

    def _on_begin_edit(self, event) -> Any:
        """Open a transaction for the cell editor that is about to show."""
        self.controller.begin_transaction(self.edit_label, self.capture_ui_state())
        # tksheet uses the return value as the editor's initial text
        return event.get("value")

    def _on_end_edit(self, event) -> None:
        # <<SheetModified>> (if the value changed) is handled before idle callbacks run
        self.sheet.after_idle(self._commit_open_transaction)

    def _on_escape_edit(self, event) -> None:
        self._commit_open_transaction()

    def _commit_open_transaction(self) -> None:
        if self.controller.is_transaction_open:
            self.controller.commit_transaction(self.capture_ui_state())

    def _on_sheet_modified(self, event) -> None:
        """Forward edited cells (single edits, paste, delete key) to the controller.

        A paste that runs past the last row grows the sheet; those rows are
        reported under ``added`` and forwarded as inserts.
        """
        if self._suppress_notifications:
            return

        # Structural events are forwarded by their own end_* bindings
        if event.get("eventname") in STRUCTURAL_EVENTS:
            return

        # tksheet v7 structure: {'table': {(row, col): old_value}, 'header': {}, 'index': {}}
        cells = event.get("cells") or {}
        table_cells = cells.get("table") or {}
        added = added_row_indices(event)
        if not table_cells and not added:
            return

        rows = list(self.controller.value)
        skipped = set(added)
        edited: set[int] = set()
        for (row_idx, col), _old_value in table_cells.items():
            if row_idx is None or row_idx in skipped or row_idx >= len(rows):
                continue
            if col >= len(self.columns):
                continue
            if row_idx not in edited:
                rows[row_idx] = dict(rows[row_idx])
                edited.add(row_idx)
            rows[row_idx][self.columns[col]] = self.sheet.get_cell_data(row_idx, col)

        hints = [OpHint(HintKind.UPDATE, start, end) for start, end in contiguous_runs(list(edited))]
        hints += self._insert_sheet_rows(rows, added)
        if not hints:
            return

        self._forward(rows, hints)
        self._commit_open_transaction()

    # --- Row structure ---

    def _row_from_sheet(self, row_idx: int) -> Row:
        """Build a new row from the sheet's cells at a data index."""
        row = self.new_row()
        for col, column in enumerate(self.columns):
            value = self.sheet.get_cell_data(row_idx, col)
            if value not in (None, ""):
                row[column] = value
        return row

    def _insert_sheet_rows(self, rows: list[Row], indices: list[int]) -> list[OpHint]:
        """Insert rows read from the sheet at the given (final) data indices.

        Returns:
            One CREATE hint per contiguous run of indices.
        """
        for row_idx in indices:
            rows.insert(row_idx, self._row_from_sheet(row_idx))
        return [OpHint(HintKind.CREATE, start, end) for start, end in contiguous_runs(indices)]

    def _on_rows_added(self, event) -> None:
        if self._suppress_notifications:
            return

        indices = added_row_indices(event)
        if not indices:
            return

        rows = list(self.controller.value)
        hints = self._insert_sheet_rows(rows, indices)
        logger.debug(f"rows added: {len(indices)} rows")
        self._forward(rows, hints)

    def _on_rows_deleted(self, event) -> None:
        if self._suppress_notifications:
            return

        deleted = event.get("deleted", {}).get("rows", {})
        if not deleted:
            return

        removed = {idx for idx in deleted if isinstance(idx, int)}
        rows = [row for i, row in enumerate(self.controller.value) if i not in removed]

        # Highest run first so each range still indexes the rows before it
        runs = sorted(contiguous_runs(list(removed)), reverse=True)
        hints = [OpHint(HintKind.DELETE, start, end) for start, end in runs]
        self._forward(rows, hints)

    def _on_rows_moved(self, event) -> None:
        """Forward drag-and-drop reordering.

        Without stable row ids the controller cannot record a move and
        clears history instead.
        """
        if self._suppress_notifications:
            return

        moved = event.get("moved", {})
        rows_data = moved.get("rows", {}).get("data", {})
        if not rows_data:
            return

        current = self.controller.value
        mapping = {int(k): int(v) for k, v in rows_data.items()}

        # Place moved rows, then fill the gaps with unmoved rows in order
        new_rows: list[Row | None] = [None] * len(current)
        for old_idx, new_idx in mapping.items():
            new_rows[new_idx] = current[old_idx]
        remaining = [row for i, row in enumerate(current) if i not in mapping]
        remaining.reverse()
        rows = [row if row is not None else remaining.pop() for row in new_rows]

        logger.debug(f"rows moved: {len(mapping)} rows")
        self._forward(rows)
