"""Configuration management for the audit-log engine."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

_config_logger = logging.getLogger(__name__)


class LoggingSettings(BaseModel):
    level: str = Field(default="INFO", description="Python logging level name")
    file: str | None = Field(default=None, description="Optional log file path")


class DiffSettings(BaseModel):
    """Wording used when rendering object diffs.

    Templates are ``str.format`` patterns; ``field`` is the display name,
    ``source``/``target`` the before/after values and ``added``/``removed`` the
    joined list items.
    """

    field_separator: str = Field(default="; ")
    list_item_separator: str = Field(default=", ")
    of_word: str = Field(
        default="'s ",
        description="Connector placed after each ancestor name, e.g. address's city",
    )
    add_template: str = Field(default="[{field}] changed from [empty] to [{target}]")
    update_template: str = Field(default="[{field}] changed from [{source}] to [{target}]")
    deleted_template: str = Field(default="removed [{field}]: [{source}]")
    list_add_template: str = Field(default="[{field}] added [{added}]")
    list_del_template: str = Field(default="[{field}] removed [{removed}]")
    list_add_del_template: str = Field(default="[{field}] added [{added}] removed [{removed}]")

    @field_validator(
        "add_template",
        "update_template",
        "deleted_template",
        "list_add_template",
        "list_del_template",
        "list_add_del_template",
    )
    @classmethod
    def _validate_template(cls, value: str) -> str:
        if "{field}" not in value:
            raise ValueError("diff templates must contain a {field} placeholder")
        return value

    def format_add(self, field: str, target: str) -> str:
        return self.add_template.format(field=field, target=target)

    def format_update(self, field: str, source: str, target: str) -> str:
        return self.update_template.format(field=field, source=source, target=target)

    def format_deleted(self, field: str, source: str) -> str:
        return self.deleted_template.format(field=field, source=source)

    def format_list(self, field: str, added: str, removed: str) -> str:
        if added and removed:
            return self.list_add_del_template.format(field=field, added=added, removed=removed)
        if added:
            return self.list_add_template.format(field=field, added=added)
        if removed:
            return self.list_del_template.format(field=field, removed=removed)
        return ""


class RecordSettings(BaseModel):
    enabled: bool = Field(default=True, description="If False, interception is a pass-through")
    update_action_type: str = Field(
        default="UPDATE",
        description="Action type whose records are dropped when the detail has no diff",
    )
    specs_path: str | None = Field(default=None, description="Optional YAML spec file")


class StorageSettings(BaseModel):
    backend: Literal["memory", "sqlite"] = Field(default="memory")
    sqlite_path: str = Field(default="./data/bizlog.sqlite")
    sqlite_wal: bool = Field(default=True)


class Settings(BaseModel):
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    diff: DiffSettings = Field(default_factory=DiffSettings)
    record: RecordSettings = Field(default_factory=RecordSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)


ENV_KEYS = {
    "enabled": "BIZLOG_ENABLED",
    "log_level": "BIZLOG_LOG_LEVEL",
    "log_file": "BIZLOG_LOG_FILE",
    "field_separator": "BIZLOG_FIELD_SEPARATOR",
    "list_item_separator": "BIZLOG_LIST_ITEM_SEPARATOR",
    "of_word": "BIZLOG_OF_WORD",
    "update_action_type": "BIZLOG_UPDATE_ACTION_TYPE",
    "specs_path": "BIZLOG_SPECS_PATH",
    "store": "BIZLOG_STORE",
    "sqlite_path": "BIZLOG_SQLITE_PATH",
    "sqlite_wal": "BIZLOG_SQLITE_WAL",
}

_TRUE_VALUES = frozenset({"1", "true", "yes"})


def _resolve_path(path: str) -> str:
    return str(Path(path).expanduser().resolve())


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_str(key: str, default: str) -> str:
    # Unset or empty falls back; whitespace is kept since separators may be blank.
    value = os.getenv(key)
    if value is None or value == "":
        return default
    return value


def load_settings() -> Settings:
    """Load configuration and cache the result."""

    return _load_settings_cached()


@lru_cache(maxsize=1)
def _load_settings_cached() -> Settings:
    load_dotenv(dotenv_path=Path.cwd() / ".env")
    log_file_env = os.getenv(ENV_KEYS["log_file"])
    specs_path_env = os.getenv(ENV_KEYS["specs_path"])

    settings_data: dict[str, object] = {
        "logging": {
            "level": os.getenv(ENV_KEYS["log_level"], LoggingSettings().level),
            "file": _resolve_path(log_file_env) if log_file_env else None,
        },
        "diff": {
            "field_separator": _env_str(
                ENV_KEYS["field_separator"], DiffSettings().field_separator
            ),
            "list_item_separator": _env_str(
                ENV_KEYS["list_item_separator"], DiffSettings().list_item_separator
            ),
            "of_word": _env_str(ENV_KEYS["of_word"], DiffSettings().of_word),
        },
        "record": {
            "enabled": _env_bool(ENV_KEYS["enabled"], RecordSettings().enabled),
            "update_action_type": _env_str(
                ENV_KEYS["update_action_type"], RecordSettings().update_action_type
            ),
            "specs_path": _resolve_path(specs_path_env) if specs_path_env else None,
        },
        "storage": {
            "backend": os.getenv(ENV_KEYS["store"], StorageSettings().backend),
            "sqlite_path": _resolve_path(
                os.getenv(ENV_KEYS["sqlite_path"], StorageSettings().sqlite_path)
            ),
            "sqlite_wal": _env_bool(ENV_KEYS["sqlite_wal"], StorageSettings().sqlite_wal),
        },
    }

    try:
        settings = Settings.model_validate(settings_data)
    except ValidationError as exc:
        raise RuntimeError(f"Invalid configuration: {exc}") from exc

    if settings.logging.level.upper() not in logging.getLevelNamesMapping():
        _config_logger.warning(
            "Unknown log level %r, falling back to INFO", settings.logging.level
        )
        settings.logging.level = "INFO"

    return settings
