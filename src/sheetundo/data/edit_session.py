"""Edit session helper for scripted, multi-row edits.

EditSession provides a high-level API for modifying rows by id. Changes are
accumulated as RowPatch instances and applied as one transaction when the
session exits.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..models.row import Row, RowId, safe_row_id
from ..models.row_patch import RowPatch
from ..utils.cloning import clone_row_deep

if TYPE_CHECKING:
    from .undoable_controller import UndoableController


class EditSession:
    """Accumulates changes to rows and applies them as a single undo step.

    Usage:
        with controller.edit_session("Receive all") as session:
            session.set_field(10, "qty", 7)
            session.set_field(11, "qty", 3)
        # One transaction with two updates is committed on exit

    Or with direct patch access:
        with controller.edit_session("Fill down") as session:
            patch = session.get_builder(10)
            patch.set_field("location", "A1")
    """

    def __init__(self, controller: UndoableController, description: str):
        """Initialize an edit session.

        Args:
            controller: The controller whose rows are being edited.
            description: Human-readable description for undo menu.
        """
        self._controller = controller
        self._description = description
        self._pending: dict[RowId, RowPatch] = {}
        self._appended: list[Row] = []
        self._deleted: set[RowId] = set()

    @property
    def description(self) -> str:
        """Get the description for this edit session."""
        return self._description

    @property
    def pending(self) -> dict[RowId, RowPatch]:
        """Get the pending patches dict."""
        return self._pending

    def _row_id(self, row: Row) -> RowId | None:
        return safe_row_id(self._controller.settings.get_row_id, row)

    def find_row(self, row_id: RowId) -> Row | None:
        """Get the current row with the given id, or None."""
        for row in self._controller.value:
            if self._row_id(row) == row_id:
                return row
        return None

    def get_builder(self, row_id: RowId) -> RowPatch:
        """Get or create a patch for the given row id."""
        if row_id not in self._pending:
            self._pending[row_id] = RowPatch()
        return self._pending[row_id]

    def set_field(self, row_id: RowId, field_name: str, value: Any) -> None:
        """Set a single field on a row.

        Args:
            row_id: Id of the row to edit.
            field_name: Field to set.
            value: The new value.
        """
        self.get_builder(row_id).set_field(field_name, value)

    def get_field(self, row_id: RowId, field_name: str) -> Any:
        """Get a pending field value, or None if not set in this session."""
        if row_id not in self._pending:
            return None
        return self._pending[row_id].get_field(field_name)

    def get_effective_value(self, row_id: RowId, field_name: str) -> Any:
        """Get the effective value: pending if set, else the current row value."""
        patch = self._pending.get(row_id)
        if patch is not None and patch.is_set(field_name):
            return patch.get_field(field_name)

        current = self.find_row(row_id)
        if current is not None:
            return current.get(field_name)
        return None

    def append_row(self, row: Row) -> None:
        """Queue a new row to be added at the end."""
        self._appended.append(clone_row_deep(row))

    def delete_row(self, row_id: RowId) -> None:
        """Queue the row with the given id for removal."""
        self._deleted.add(row_id)
        self._pending.pop(row_id, None)

    def has_pending_changes(self) -> bool:
        """Check if any changes have been made in this session."""
        return (
            bool(self._appended)
            or bool(self._deleted)
            or any(patch.has_changes() for patch in self._pending.values())
        )

    def affected_ids(self) -> set[RowId]:
        """Get ids of rows with pending field changes or deletions."""
        changed = {row_id for row_id, patch in self._pending.items() if patch.has_changes()}
        return changed | self._deleted

    def build_rows(self, current: list[Row]) -> list[Row]:
        """Apply the session's changes to a row list.

        Unchanged rows are kept as the same objects; patched rows are new
        dicts. Patches for ids that are not present are ignored.
        """
        rows: list[Row] = []
        for row in current:
            row_id = self._row_id(row)
            if row_id is not None and row_id in self._deleted:
                continue
            patch = self._pending.get(row_id) if row_id is not None else None
            rows.append(patch.freeze(row) if patch is not None else row)
        rows.extend(self._appended)
        return rows
