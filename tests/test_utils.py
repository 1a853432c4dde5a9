"""
Tests for app directory helpers and the settings file.
"""

import json

import pytest

from utils import (
    HOME_ENV_VAR,
    get_app_dir,
    get_log_retention_days,
    get_logs_dir,
    get_secrets_dir,
    get_settings_path,
    load_settings,
)


@pytest.fixture
def app_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    monkeypatch.setenv(HOME_ENV_VAR, str(home))
    return home


class TestPaths:
    """Tests for data directory resolution."""

    def test_env_override_is_created(self, app_home):
        assert get_app_dir() == app_home
        assert app_home.is_dir()

    def test_children_of_app_dir(self, app_home):
        assert get_settings_path() == app_home / "settings.json"
        assert get_secrets_dir() == app_home / "secrets"

    def test_logs_dir_created(self, app_home):
        logs = get_logs_dir()
        assert logs == app_home / "logs"
        assert logs.is_dir()


class TestLoadSettings:
    """Tests for reading settings.json."""

    def test_missing_file(self, app_home):
        assert load_settings() == {}

    def test_reads_object(self, app_home):
        get_settings_path().write_text(json.dumps({"auto_register": False}), encoding="utf-8")
        assert load_settings() == {"auto_register": False}

    def test_corrupt_file(self, app_home, caplog):
        get_settings_path().write_text("{not json", encoding="utf-8")
        assert load_settings() == {}
        assert "Failed to load settings" in caplog.text

    def test_non_object_ignored(self, app_home):
        get_settings_path().write_text("[1, 2]", encoding="utf-8")
        assert load_settings() == {}


class TestLogRetentionDays:
    """Tests for reading log_retention_days from settings."""

    def test_default(self):
        assert get_log_retention_days({}) == 0

    @pytest.mark.parametrize("value,expected", [(7, 7), ("7", 7), (0, 0), (-3, 0)])
    def test_coerced(self, value, expected):
        assert get_log_retention_days({"log_retention_days": value}) == expected

    @pytest.mark.parametrize("value", ["week", None, [7], {"days": 7}])
    def test_invalid_falls_back_to_zero(self, value, caplog):
        assert get_log_retention_days({"log_retention_days": value}) == 0
        assert "Ignoring invalid log_retention_days" in caplog.text
