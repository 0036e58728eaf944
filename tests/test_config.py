"""
Tests for settings loading.
"""

from pathlib import Path

import pytest

from lotkeeper.config import (
    ENV_AUDIT_LOG,
    ENV_DATA_DIR,
    ENV_LOG_LEVEL,
    ConfigurationError,
    Settings,
    load_settings,
    write_settings,
)


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    """Run each test in an empty directory with no lotkeeper env vars."""
    monkeypatch.chdir(tmp_path)
    for name in (ENV_DATA_DIR, ENV_LOG_LEVEL, ENV_AUDIT_LOG):
        monkeypatch.delenv(name, raising=False)


class TestLoadSettings:
    """Tests for load_settings."""

    def test_defaults(self):
        settings = load_settings()

        assert settings.data_dir == Path("data")
        assert settings.default_portfolio == "Default"
        assert settings.audit_log == Path("data/audit_log.jsonl")
        assert settings.log_level == "WARNING"

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(
            "data_dir: /srv/lots\n"
            "default_portfolio: Unassigned\n"
            "log_level: debug\n"
        )

        settings = load_settings(path)

        assert settings.data_dir == Path("/srv/lots")
        assert settings.default_portfolio == "Unassigned"
        assert settings.audit_log == Path("/srv/lots/audit_log.jsonl")
        assert settings.log_level == "DEBUG"

    def test_default_file_is_picked_up(self, tmp_path):
        (tmp_path / "lotkeeper.yaml").write_text("log_level: ERROR\n")

        assert load_settings().log_level == "ERROR"

    def test_env_file_overrides_yaml(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("data_dir: from-yaml\n")
        env = tmp_path / ".env"
        env.write_text("LOTKEEPER_DATA_DIR=from-env-file\n")

        settings = load_settings(path, env)

        assert settings.data_dir == Path("from-env-file")

    def test_environment_has_highest_priority(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("LOTKEEPER_DATA_DIR=from-env-file\n")
        monkeypatch.setenv(ENV_DATA_DIR, "from-environment")

        assert load_settings().data_dir == Path("from-environment")

    def test_audit_log_can_be_disabled(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("audit_log: off\n")

        assert load_settings(path).audit_log is None

    def test_explicit_audit_log_wins_over_data_dir(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("data_dir: d\naudit_log: logs/audit.jsonl\n")

        assert load_settings(path).audit_log == Path("logs/audit.jsonl")

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_settings(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("data_dir: [unclosed\n")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_settings(path)

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            load_settings(path)

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setenv(ENV_LOG_LEVEL, "chatty")

        with pytest.raises(ConfigurationError, match="log_level"):
            load_settings()

    def test_empty_default_portfolio(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("default_portfolio: ''\n")

        with pytest.raises(ConfigurationError, match="default_portfolio"):
            load_settings(path)


class TestWriteSettings:
    """Tests for write_settings."""

    def test_round_trip(self, tmp_path):
        settings = Settings(
            data_dir=Path("store"),
            default_portfolio="Main",
            audit_log=Path("store/log.jsonl"),
            log_level="INFO",
        )
        path = tmp_path / "out" / "settings.yaml"

        write_settings(settings, path)

        assert load_settings(path) == settings
