"""Tests for environment configuration."""

import settings


class TestSettings:
    """Tests for settings getters."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("TR33_LAZY_DELAY", raising=False)
        monkeypatch.delenv("TR33_LAZY_NAME", raising=False)
        monkeypatch.delenv("TR33_EVENT_LOG", raising=False)
        assert settings.get_lazy_delay() == 0.8
        assert settings.get_lazy_name() == "Lazy Loaded Item"
        assert settings.get_event_log_path() == "tree_events.log"

    def test_lazy_delay_override(self, monkeypatch):
        monkeypatch.setenv("TR33_LAZY_DELAY", "0.25")
        assert settings.get_lazy_delay() == 0.25

    def test_invalid_lazy_delay_falls_back(self, monkeypatch):
        monkeypatch.setenv("TR33_LAZY_DELAY", "soon")
        assert settings.get_lazy_delay() == 0.8
        monkeypatch.setenv("TR33_LAZY_DELAY", "-1")
        assert settings.get_lazy_delay() == 0.8

    def test_blank_lazy_name_falls_back(self, monkeypatch):
        monkeypatch.setenv("TR33_LAZY_NAME", "   ")
        assert settings.get_lazy_name() == "Lazy Loaded Item"
        monkeypatch.setenv("TR33_LAZY_NAME", "Fetched")
        assert settings.get_lazy_name() == "Fetched"
