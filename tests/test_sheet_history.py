"""Tests for SheetHistory and Transaction."""

import pytest

from sheetundo.data.sheet_history import SheetHistory
from sheetundo.data.transaction import DiffResult, Transaction
from sheetundo.models.operations import InsertOp, ReorderOp, UiState, UpdateOp


def make_update(index=0):
    return UpdateOp(index=index, before={"qty": 0}, after={"qty": 1})


@pytest.fixture
def history():
    return SheetHistory()


class TestBeginCommit:
    """Tests for the begin/push/commit lifecycle."""

    def test_commit_moves_transaction_to_undo(self, history):
        history.begin("Edit qty")
        history.push(make_update())
        tx = history.commit()

        assert tx is not None
        assert tx.label == "Edit qty"
        assert history.can_undo() is True
        assert history.undo_depth == 1
        assert history.is_open is False

    def test_empty_commit_is_discarded(self, history):
        """A transaction with no operations never reaches the undo stack."""
        history.begin("Nothing")
        assert history.commit() is None
        assert history.can_undo() is False
        assert history.is_open is False

    def test_commit_without_begin(self, history):
        assert history.commit() is None

    def test_double_begin_keeps_first(self, history):
        """A second begin while open is ignored."""
        history.begin("First")
        history.push(make_update())
        history.begin("Second")
        history.push(make_update(1))
        tx = history.commit()

        assert tx.label == "First"
        assert len(tx.ops) == 2

    def test_push_opens_unlabeled_transaction(self, history):
        history.push(make_update())
        assert history.is_open is True
        tx = history.commit()
        assert tx.label is None
        assert len(tx.ops) == 1

    def test_ui_state_recorded(self, history):
        before = UiState(active_cell=(0, 1))
        after = UiState(active_cell=(1, 1))
        history.begin("Edit", before)
        history.push(make_update())
        tx = history.commit(after)

        assert tx.ui_before is before
        assert tx.ui_after is after


class TestRedoInvalidation:
    """Committing new work clears the redo stack."""

    def test_commit_clears_redo(self, history):
        history.push_redo(Transaction(ops=[make_update()]))
        history.push(make_update())
        history.commit()
        assert history.can_redo() is False

    def test_empty_commit_keeps_redo(self, history):
        history.push_redo(Transaction(ops=[make_update()]))
        history.begin()
        history.commit()
        assert history.can_redo() is True


class TestStackPrimitives:
    """Tests for pop/push primitives and labels."""

    def test_pop_empty(self, history):
        assert history.pop_undo() is None
        assert history.pop_redo() is None

    def test_move_between_stacks(self, history):
        history.begin("Edit")
        history.push(make_update())
        history.commit()

        tx = history.pop_undo()
        history.push_redo(tx)
        assert history.can_undo() is False
        assert history.redo_label() == "Edit"

        history.push_undo(history.pop_redo())
        assert history.undo_label() == "Edit"
        assert history.redo_label() is None

    def test_len(self, history):
        history.push(make_update())
        history.commit()
        assert len(history) == 1

    def test_clear(self, history):
        history.push(make_update())
        history.commit()
        history.push_redo(Transaction(ops=[make_update()]))
        history.begin("Open")

        history.clear("test")

        assert history.can_undo() is False
        assert history.can_redo() is False
        assert history.is_open is False

    def test_max_depth_drops_oldest(self):
        history = SheetHistory(max_depth=2)
        for label in ("one", "two", "three"):
            history.begin(label)
            history.push(make_update())
            history.commit()

        assert history.undo_depth == 2
        assert [tx.label for tx in history.undo_stack] == ["two", "three"]


class TestTransaction:
    """Tests for Transaction and DiffResult helpers."""

    def test_uses_ids_with_reorder(self):
        tx = Transaction(ops=[InsertOp(rows=[{"id": 1}]), ReorderOp([], [1])])
        assert tx.uses_ids is True

    def test_uses_ids_without_reorder(self):
        tx = Transaction(ops=[UpdateOp(index=0, before={}, after={}, id=1)])
        assert tx.uses_ids is False

    def test_diff_result_unsound(self):
        assert DiffResult(uses_ids=False, order_changed=True).is_unsound is True
        assert DiffResult(uses_ids=True, order_changed=True).is_unsound is False
        assert DiffResult(uses_ids=False, order_changed=False).is_unsound is False
