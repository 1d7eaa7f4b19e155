"""Tests for EditSession."""

from sheetundo.data.edit_session import EditSession
from sheetundo.data.row_source import ListRowSource
from sheetundo.data.undoable_controller import UndoableController


def make_session(rows):
    controller = UndoableController(ListRowSource(rows))
    return EditSession(controller, "Test"), controller


class TestFieldAccess:
    """Tests for reading and writing pending fields."""

    def test_description(self):
        session, _ = make_session([])
        assert session.description == "Test"

    def test_set_and_get_field(self):
        session, _ = make_session([{"id": 1, "qty": 0}])
        session.set_field(1, "qty", 4)

        assert session.get_field(1, "qty") == 4
        assert session.get_field(2, "qty") is None
        assert session.has_pending_changes() is True

    def test_effective_value_prefers_pending(self):
        session, _ = make_session([{"id": 1, "qty": 0, "sku": "A"}])
        session.set_field(1, "qty", 4)

        assert session.get_effective_value(1, "qty") == 4
        assert session.get_effective_value(1, "sku") == "A"
        assert session.get_effective_value(9, "sku") is None

    def test_get_builder_reused(self):
        session, _ = make_session([{"id": 1}])
        assert session.get_builder(1) is session.get_builder(1)
        assert session.has_pending_changes() is False

    def test_find_row(self):
        row = {"id": 1}
        session, _ = make_session([row])
        assert session.find_row(1) is row
        assert session.find_row(2) is None

    def test_affected_ids(self):
        session, _ = make_session([{"id": 1}, {"id": 2}, {"id": 3}])
        session.set_field(1, "qty", 1)
        session.get_builder(2)
        session.delete_row(3)
        assert session.affected_ids() == {1, 3}


class TestBuildRows:
    """Tests for build_rows."""

    def test_unchanged_rows_kept(self):
        first, second = {"id": 1, "qty": 0}, {"id": 2, "qty": 0}
        session, _ = make_session([first, second])
        session.set_field(2, "qty", 5)

        rows = session.build_rows([first, second])
        assert rows[0] is first
        assert rows[1] == {"id": 2, "qty": 5}
        assert second == {"id": 2, "qty": 0}

    def test_delete_drops_pending_patch(self):
        session, _ = make_session([{"id": 1}, {"id": 2}])
        session.set_field(1, "qty", 1)
        session.delete_row(1)

        assert 1 not in session.pending
        assert session.build_rows([{"id": 1}, {"id": 2}]) == [{"id": 2}]

    def test_append_is_copied(self):
        session, _ = make_session([])
        row = {"id": 5, "tags": []}
        session.append_row(row)
        row["tags"].append("x")

        assert session.build_rows([]) == [{"id": 5, "tags": []}]

    def test_unknown_ids_ignored(self):
        session, _ = make_session([{"id": 1}])
        session.set_field(42, "qty", 1)
        assert session.build_rows([{"id": 1}]) == [{"id": 1}]
