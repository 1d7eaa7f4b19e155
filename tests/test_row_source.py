"""Tests for row sources."""

from unittest.mock import MagicMock

import pytest

from sheetundo.data.row_source import ListRowSource, SetterRowSource


class TestListRowSource:
    """Tests for the in-memory source."""

    def test_keeps_list_reference(self):
        rows = [{"id": 1}]
        source = ListRowSource(rows)
        assert source.value is rows

    def test_defaults_to_empty(self):
        assert ListRowSource().value == []

    def test_on_change(self):
        source = ListRowSource([])
        rows = [{"id": 1}]
        source.on_change(rows, ["hint"])

        assert source.value is rows
        assert source.change_count == 1
        assert source.last_hints == ["hint"]

    def test_reset_to_baseline(self):
        source = ListRowSource([{"id": 1}])
        source.on_change([{"id": 2}])
        assert source.is_dirty is True

        source.reset()
        assert source.value == [{"id": 1}]
        assert source.is_dirty is False

    def test_commit_moves_baseline(self):
        source = ListRowSource([{"id": 1}])
        source.on_change([{"id": 2}])
        source.commit()
        source.reset()
        assert source.value == [{"id": 2}]

    def test_replace(self):
        source = ListRowSource([{"id": 1}])
        rows = [{"id": 3}]
        source.replace(rows)
        assert source.value is rows
        assert source.is_dirty is False

    def test_supports(self):
        source = ListRowSource()
        assert source.supports_reset is True
        assert source.supports_commit is True

    def test_observers(self):
        source = ListRowSource()
        callback = MagicMock()
        source.add_observer(callback)

        rows = [{"id": 1}]
        source.on_change(rows)
        callback.assert_called_once_with(rows)

        source.remove_observer(callback)
        source.on_change([])
        assert callback.call_count == 1


class TestSetterRowSource:
    """Tests for the getter/setter adapter."""

    def test_getter_and_setter(self):
        store = {"rows": [{"id": 1}]}
        setter = MagicMock(side_effect=lambda rows: store.update(rows=rows))
        source = SetterRowSource(lambda: store["rows"], setter)

        source.on_change([{"id": 2}], ["ignored"])
        setter.assert_called_once_with([{"id": 2}])
        assert source.value == [{"id": 2}]

    def test_reset_unsupported(self):
        source = SetterRowSource(lambda: [], lambda rows: None)
        assert source.supports_reset is False
        assert source.supports_commit is False
        with pytest.raises(NotImplementedError):
            source.reset()
        with pytest.raises(NotImplementedError):
            source.commit()

    def test_resetter(self):
        resetter = MagicMock()
        source = SetterRowSource(lambda: [], lambda rows: None, resetter)
        assert source.supports_reset is True

        source.reset([{"id": 1}])
        resetter.assert_called_once_with([{"id": 1}])
