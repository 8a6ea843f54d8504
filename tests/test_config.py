from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from bizlog import config


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in config.ENV_KEYS.values():
        monkeypatch.delenv(key, raising=False)

    settings = config.load_settings()

    assert settings.record.enabled is True
    assert settings.record.update_action_type == "UPDATE"
    assert settings.record.specs_path is None
    assert settings.storage.backend == "memory"
    assert settings.diff.field_separator == "; "
    assert settings.diff.of_word == "'s "
    assert settings.logging.file is None
    assert config.load_settings() is settings


def test_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("BIZLOG_ENABLED", "no")
    monkeypatch.setenv("BIZLOG_LOG_LEVEL", "debug")
    monkeypatch.setenv("BIZLOG_FIELD_SEPARATOR", " | ")
    monkeypatch.setenv("BIZLOG_UPDATE_ACTION_TYPE", "EDIT")
    monkeypatch.setenv("BIZLOG_SPECS_PATH", str(tmp_path / "specs.yaml"))
    monkeypatch.setenv("BIZLOG_STORE", "sqlite")
    monkeypatch.setenv("BIZLOG_SQLITE_PATH", str(tmp_path / "log.db"))
    monkeypatch.setenv("BIZLOG_SQLITE_WAL", "false")

    settings = config.load_settings()

    assert settings.record.enabled is False
    assert settings.logging.level == "debug"
    assert settings.diff.field_separator == " | "
    assert settings.record.update_action_type == "EDIT"
    assert settings.record.specs_path == str((tmp_path / "specs.yaml").resolve())
    assert settings.storage.backend == "sqlite"
    assert settings.storage.sqlite_path == str((tmp_path / "log.db").resolve())
    assert settings.storage.sqlite_wal is False


def test_env_bool(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEST_BOOL", " Yes ")
    assert config._env_bool("TEST_BOOL", False) is True
    monkeypatch.delenv("TEST_BOOL")
    assert config._env_bool("TEST_BOOL", True) is True


def test_env_str_uses_default_for_blank(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEST_STR_VALUE", "")
    assert config._env_str("TEST_STR_VALUE", "; ") == "; "
    monkeypatch.setenv("TEST_STR_VALUE", " ")
    assert config._env_str("TEST_STR_VALUE", "; ") == " "


def test_unknown_log_level_falls_back_to_info(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BIZLOG_LOG_LEVEL", "chatty")
    assert config.load_settings().logging.level == "INFO"


def test_load_settings_raises_runtime_error_on_validation(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BIZLOG_STORE", "postgres")

    with pytest.raises(RuntimeError, match="Invalid configuration"):
        config.load_settings()


def test_diff_templates_require_field_placeholder() -> None:
    with pytest.raises(ValidationError, match="field"):
        config.DiffSettings(update_template="{source} -> {target}")


def test_format_list() -> None:
    diff = config.DiffSettings()
    assert diff.format_list("Tags", "a", "") == "[Tags] added [a]"
    assert diff.format_list("Tags", "", "b") == "[Tags] removed [b]"
    assert diff.format_list("Tags", "a", "b") == "[Tags] added [a] removed [b]"
    assert diff.format_list("Tags", "", "") == ""
