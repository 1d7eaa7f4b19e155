"""Demo window: an editable inventory sheet with undo/redo."""

from __future__ import annotations

import itertools
import tkinter as tk
from tkinter import ttk

from tksheet import Sheet

from .data.row_source import ListRowSource
from .data.source_monitor import SourceMonitor
from .data.undoable_controller import UndoableController
from .models.row import Row
from .settings import HistorySettings
from .views.sheet_binding import SheetUndoBinding

COLUMNS = ["sku", "description", "qty", "location"]
HEADERS = ["SKU", "Description", "Qty", "Location"]

SAMPLE_ROWS: list[Row] = [
    {"id": 10, "sku": "BOLT-M6", "description": "Hex bolt M6x20", "qty": 0, "location": "A1"},
    {"id": 11, "sku": "NUT-M6", "description": "Hex nut M6", "qty": 0, "location": "A2"},
    {"id": 12, "sku": "WASH-M6", "description": "Flat washer M6", "qty": 0, "location": "A3"},
]


class SheetUndoDemoApp:
    """Inventory editor showing the controller wired to a tksheet Sheet."""

    def __init__(self, rows: list[Row] | None = None):
        self.root = tk.Tk()
        self.root.title("Sheet Undo Demo")
        self.root.geometry("760x420")

        self.source = ListRowSource([dict(row) for row in (rows or SAMPLE_ROWS)])
        self.controller = UndoableController(self.source, HistorySettings.from_env())

        # New rows get a local key so inserts stay identity-stable
        self._local_keys = itertools.count(1)

        self._setup_widgets()

        self.binding = SheetUndoBinding(
            self.sheet, self.controller, columns=COLUMNS, new_row=self._new_row
        )
        self.controller.add_observer(self._on_controller_changed)
        self.monitor = SourceMonitor(self.controller, on_external_change=self.binding.render)
        self.monitor.start(self.root)

        self._update_toolbar()
        self.root.protocol("WM_DELETE_WINDOW", self.on_closing)

    def _new_row(self) -> Row:
        return {"localKey": f"new-{next(self._local_keys)}"}

    def _setup_widgets(self) -> None:
        """Create the toolbar, sheet and status bar."""
        toolbar = ttk.Frame(self.root)
        toolbar.pack(fill=tk.X, padx=5, pady=(5, 0))

        self.undo_button = ttk.Button(toolbar, text="Undo", command=self._on_undo)
        self.undo_button.pack(side=tk.LEFT)
        self.redo_button = ttk.Button(toolbar, text="Redo", command=self._on_redo)
        self.redo_button.pack(side=tk.LEFT, padx=(5, 0))
        ttk.Button(toolbar, text="Save", command=self._on_save).pack(side=tk.LEFT, padx=(15, 0))
        ttk.Button(toolbar, text="Revert", command=self._on_revert).pack(side=tk.LEFT, padx=(5, 0))

        self.sheet = Sheet(self.root, headers=HEADERS, show_row_index=True, height=320)
        self.sheet.pack(fill=tk.BOTH, expand=True, padx=5, pady=5)
        self.sheet.enable_bindings()
        self.sheet.enable_bindings("row_drag_and_drop")
        self.sheet.disable_bindings(
            "column_drag_and_drop",
            "rc_insert_column",
            "rc_delete_column",
            "sort_cells",
            "sort_row",
            "sort_column",
            "sort_rows",
            "sort_columns",
        )

        self.status_var = tk.StringVar(value="Ready")
        ttk.Label(self.root, textvariable=self.status_var, anchor=tk.W).pack(
            fill=tk.X, padx=5, pady=(0, 5)
        )

    # --- Toolbar ---

    def _on_undo(self) -> None:
        self.binding.undo()

    def _on_redo(self) -> None:
        self.binding.redo()

    def _on_save(self) -> None:
        self.controller.commit()
        self.status_var.set(f"Saved {len(self.controller.value)} rows")

    def _on_revert(self) -> None:
        self.controller.reset()
        self.status_var.set("Reverted to last save")

    def _on_controller_changed(self, controller: UndoableController, reason: str) -> None:
        self._update_toolbar()

    def _update_toolbar(self) -> None:
        undo_label = self.controller.get_undo_description()
        redo_label = self.controller.get_redo_description()

        self.undo_button.configure(
            text=f"Undo {undo_label}" if undo_label else "Undo",
            state=tk.NORMAL if self.controller.can_undo() else tk.DISABLED,
        )
        self.redo_button.configure(
            text=f"Redo {redo_label}" if redo_label else "Redo",
            state=tk.NORMAL if self.controller.can_redo() else tk.DISABLED,
        )

        dirty = " (modified)" if self.source.is_dirty else ""
        self.status_var.set(f"{len(self.controller.value)} rows{dirty}")

    def on_closing(self) -> None:
        """Handle window shutdown."""
        self.monitor.stop()
        self.binding.detach()
        self.root.destroy()

    def run(self) -> None:
        """Run the demo window."""
        self.root.mainloop()


def main() -> None:
    """Entry point for the demo."""
    app = SheetUndoDemoApp()
    app.run()


if __name__ == "__main__":
    main()
