"""Row source abstraction for undoable editing.

A row source owns the live row list an editing surface renders. The
UndoableController forwards every accepted change to it, and watches its
``value`` reference to notice replacements made behind its back.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..models.operations import OpHint
    from ..models.row import Row


class RowSource(ABC):
    """Abstract base class for row sources.

    Sources must expose the current rows and accept new ones. reset() and
    commit() are optional; check supports_reset/supports_commit first.
    """

    @property
    @abstractmethod
    def value(self) -> list[Row]:
        """Return the current row list (the same object until it is replaced)."""

    @abstractmethod
    def on_change(self, next_rows: list[Row], hints: Sequence[OpHint] | None = None) -> None:
        """Accept a new row list.

        Args:
            next_rows: The rows to render from now on.
            hints: Optional CREATE/UPDATE/DELETE ranges describing the change.
        """

    @property
    def supports_reset(self) -> bool:
        """Return True if this source implements reset()."""
        return False

    @property
    def supports_commit(self) -> bool:
        """Return True if this source implements commit()."""
        return False

    def reset(self, next_rows: list[Row] | None = None) -> None:
        """Discard edits, optionally replacing the rows."""
        raise NotImplementedError(f"{type(self).__name__} does not support reset")

    def commit(self) -> None:
        """Accept the current rows as the saved baseline."""
        raise NotImplementedError(f"{type(self).__name__} does not support commit")


class ListRowSource(RowSource):
    """In-memory row source.

    Keeps the rows it was last given plus the baseline they were loaded
    from, so reset() can return to it. replace() swaps in a new list
    without going through on_change, which is how a fresh load looks to
    the controller.
    """

    def __init__(self, rows: list[Row] | None = None):
        """Initialize the source.

        Args:
            rows: Initial rows (the list object is kept, not copied).
        """
        self._rows: list[Row] = rows if rows is not None else []
        self._baseline: list[Row] = list(self._rows)
        self.change_count = 0
        self.last_hints: Sequence[OpHint] | None = None
        self._observers: list[Callable[[list[Row]], None]] = []

    @property
    def value(self) -> list[Row]:
        return self._rows

    @property
    def supports_reset(self) -> bool:
        return True

    @property
    def supports_commit(self) -> bool:
        return True

    def on_change(self, next_rows: list[Row], hints: Sequence[OpHint] | None = None) -> None:
        self._rows = next_rows
        self.change_count += 1
        self.last_hints = hints
        self._notify_observers()

    def reset(self, next_rows: list[Row] | None = None) -> None:
        if next_rows is not None:
            self._baseline = list(next_rows)
            self._rows = next_rows
        else:
            self._rows = list(self._baseline)
        self._notify_observers()

    def commit(self) -> None:
        self._baseline = list(self._rows)

    def replace(self, rows: list[Row]) -> None:
        """Replace the rows from outside the editing session (e.g. a reload)."""
        self._rows = rows
        self._baseline = list(rows)
        self._notify_observers()

    @property
    def is_dirty(self) -> bool:
        """Check if rows differ from the loaded/committed baseline."""
        return self._rows != self._baseline

    def add_observer(self, callback: Callable[[list[Row]], None]) -> None:
        """Register a callback invoked with the new rows after every change."""
        if callback not in self._observers:
            self._observers.append(callback)

    def remove_observer(self, callback: Callable[[list[Row]], None]) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify_observers(self) -> None:
        for callback in self._observers:
            callback(self._rows)


class SetterRowSource(RowSource):
    """Adapts a plain getter/setter pair into a row source.

    Hints are dropped: a bare setter has nowhere to put them.
    """

    def __init__(
        self,
        getter: Callable[[], list[Row]],
        setter: Callable[[list[Row]], None],
        resetter: Callable[[list[Row] | None], None] | None = None,
    ):
        """Initialize the adapter.

        Args:
            getter: Returns the current rows.
            setter: Stores new rows.
            resetter: Optional reset implementation.
        """
        self._getter = getter
        self._setter = setter
        self._resetter = resetter

    @property
    def value(self) -> list[Row]:
        return self._getter()

    @property
    def supports_reset(self) -> bool:
        return self._resetter is not None

    def on_change(self, next_rows: list[Row], hints: Sequence[OpHint] | None = None) -> None:
        self._setter(next_rows)

    def reset(self, next_rows: list[Row] | None = None) -> None:
        if self._resetter is None:
            super().reset(next_rows)
            return
        self._resetter(next_rows)
