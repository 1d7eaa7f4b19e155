"""Tests for settings and environment flags."""

from sheetundo.models.row import default_get_row_id, default_is_row_blank
from sheetundo.settings import (
    ENV_DEBUG_HISTORY,
    ENV_MAX_UNDO_DEPTH,
    ENV_PRESERVE_HISTORY,
    HistorySettings,
    debug_enabled,
)


class TestDebugEnabled:
    """Tests for debug_enabled."""

    def test_truthy_values(self, monkeypatch):
        for value in ("1", "true", "YES", " on "):
            monkeypatch.setenv(ENV_DEBUG_HISTORY, value)
            assert debug_enabled(ENV_DEBUG_HISTORY) is True

    def test_falsy_values(self, monkeypatch):
        monkeypatch.setenv(ENV_DEBUG_HISTORY, "0")
        assert debug_enabled(ENV_DEBUG_HISTORY) is False
        monkeypatch.delenv(ENV_DEBUG_HISTORY)
        assert debug_enabled(ENV_DEBUG_HISTORY) is False


class TestHistorySettings:
    """Tests for HistorySettings."""

    def test_defaults(self):
        settings = HistorySettings()
        assert settings.get_row_id is default_get_row_id
        assert settings.is_row_blank is default_is_row_blank
        assert settings.enabled is True
        assert settings.preserve_history_on_external_change is False
        assert settings.max_undo_depth is None
        assert settings.debug is False

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv(ENV_DEBUG_HISTORY, "1")
        monkeypatch.setenv(ENV_MAX_UNDO_DEPTH, "50")
        monkeypatch.setenv(ENV_PRESERVE_HISTORY, "true")
        settings = HistorySettings.from_env()

        assert settings.debug is True
        assert settings.max_undo_depth == 50
        assert settings.preserve_history_on_external_change is True

    def test_from_env_invalid_depth(self, monkeypatch):
        monkeypatch.setenv(ENV_MAX_UNDO_DEPTH, "lots")
        assert HistorySettings.from_env().max_undo_depth is None
        monkeypatch.setenv(ENV_MAX_UNDO_DEPTH, "-3")
        assert HistorySettings.from_env().max_undo_depth is None

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv(ENV_MAX_UNDO_DEPTH, "50")
        settings = HistorySettings.from_env(max_undo_depth=5, enabled=False)
        assert settings.max_undo_depth == 5
        assert settings.enabled is False
