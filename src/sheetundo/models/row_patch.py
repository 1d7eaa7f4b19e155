"""Mutable patch for accumulating field changes to a row.

RowPatch provides a mutable interface for building changes to a row.
Changes are accumulated and then frozen into a new row dict via freeze(),
leaving the base row untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .row import Row


@dataclass
class RowPatch:
    """Accumulator for building changes to a row.

    Only fields that were explicitly set are applied on freeze(), so a patch
    can set a field to None or "" (clearing it) and still count as a change.

    Usage:
        patch = RowPatch()
        patch.set_field("qty", 7)
        new_row = patch.freeze(base_row)
    """

    changes: dict[str, Any] = field(default_factory=dict)

    def has_changes(self) -> bool:
        """Check if any fields have been set."""
        return bool(self.changes)

    def freeze(self, base: Row) -> Row:
        """Apply accumulated changes to base and return a new row.

        Args:
            base: The row to apply changes to.

        Returns:
            New row dict with changes applied, or base itself if nothing changed.
        """
        if not self.changes:
            return base
        return {**base, **self.changes}

    def get_field(self, field_name: str, default: Any = None) -> Any:
        """Get a pending field value, or default if not set."""
        return self.changes.get(field_name, default)

    def set_field(self, field_name: str, value: Any) -> None:
        """Set a field value by name."""
        self.changes[field_name] = value

    def is_set(self, field_name: str) -> bool:
        return field_name in self.changes
