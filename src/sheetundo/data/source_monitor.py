"""Periodic check for rows replaced behind the controller's back."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from ..debug_trace import logger

if TYPE_CHECKING:
    import tkinter as tk

    from .undoable_controller import UndoableController

# Source check interval in milliseconds
SOURCE_MONITOR_INTERVAL_MS = 250


class SourceMonitor:
    """Calls controller.sync_external_change() on every tick.

    Uses tkinter's after() for scheduling to stay on the main thread,
    since the check may clear history and notify views.

    Usage:
        monitor = SourceMonitor(controller, on_external_change=panel.refresh)
        monitor.start(tk_root)
        # ... later ...
        monitor.stop()
    """

    def __init__(
        self,
        controller: UndoableController,
        on_external_change: Callable[[], None] | None = None,
        interval_ms: int = SOURCE_MONITOR_INTERVAL_MS,
    ) -> None:
        """Initialize the monitor.

        Args:
            controller: Controller whose source is watched.
            on_external_change: Optional callback after a replacement is detected.
            interval_ms: Delay between checks.
        """
        self._controller = controller
        self._on_external_change = on_external_change
        self._interval_ms = interval_ms
        self._after_id: str | None = None
        self._active = False
        self._tk_root: tk.Misc | None = None

    @property
    def is_active(self) -> bool:
        """Whether monitoring is currently active."""
        return self._active

    def _schedule_check(self) -> None:
        """Schedule the next check."""
        if not self._active or not self._tk_root:
            return
        self._after_id = self._tk_root.after(self._interval_ms, self._check)

    def start(self, tk_root: tk.Misc) -> None:
        """Start watching.

        Args:
            tk_root: Any Tk widget (needed for after() scheduling)
        """
        if self._active:
            return

        self._tk_root = tk_root
        self._active = True
        self._schedule_check()

    def stop(self) -> None:
        """Stop watching."""
        self._active = False
        if self._after_id and self._tk_root:
            try:
                self._tk_root.after_cancel(self._after_id)
            except Exception:
                logger.debug("after_cancel failed; widget already destroyed")
        self._after_id = None

    def _check(self) -> None:
        """Run one external-change check and reschedule."""
        if not self._active:
            return

        if self._controller.sync_external_change() and self._on_external_change:
            self._on_external_change()

        self._schedule_check()
