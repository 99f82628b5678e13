from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import json
import logging
import yaml

from dtree.errors import UsageError


DEFAULT_CHUNK_SIZE = 8192
DEFAULT_MAX_OPEN_DIRECTORIES = 20
DEFAULT_LOG_LEVEL = "WARNING"


class ActionKind(str, Enum):
    LIST = "list"
    LIST_BY_EXTENSION = "by-extension"
    COUNT_FILES = "count-files"
    COUNT_DIRECTORIES = "count-directories"
    SUM_SIZE = "total-size"
    COPY_TREE = "copy"
    MOVE_TREE = "move"
    DELETE_BY_EXTENSION = "delete"


INCLUDE_FILTER_ACTIONS = {ActionKind.LIST_BY_EXTENSION, ActionKind.DELETE_BY_EXTENSION}
DESTINATION_ACTIONS = {ActionKind.COPY_TREE, ActionKind.MOVE_TREE}


@dataclass(slots=True, frozen=True)
class OperationConfig:
    action: ActionKind
    root: Path
    include_extension: str | None = None
    exclude_extension: str | None = None
    destination: Path | None = None


@dataclass(slots=True, frozen=True)
class Settings:
    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_open_directories: int = DEFAULT_MAX_OPEN_DIRECTORIES
    log_level: str = DEFAULT_LOG_LEVEL


def _as_extension(value: str | None, field_name: str) -> str | None:
    if value is None or value == "":
        return None
    if not value.startswith("."):
        raise UsageError(f"{field_name} must begin with '.': {value!r}")
    return value


def build_operation_config(
    action: ActionKind | str,
    root: Path | str,
    destination: Path | str | None = None,
    extension: str | None = None,
) -> OperationConfig:
    try:
        kind = ActionKind(action)
    except ValueError as exc:
        raise UsageError(f"Unknown action: {action}") from exc

    if kind in INCLUDE_FILTER_ACTIONS:
        include = _as_extension(extension, "extension")
        if include is None:
            raise UsageError(f"'{kind.value}' requires an extension")
        return OperationConfig(action=kind, root=Path(root), include_extension=include)

    if kind in DESTINATION_ACTIONS:
        if destination is None or str(destination) == "":
            raise UsageError(f"'{kind.value}' requires a destination directory")
        exclude = _as_extension(extension, "exclude extension") if kind is ActionKind.COPY_TREE else None
        return OperationConfig(
            action=kind,
            root=Path(root),
            exclude_extension=exclude,
            destination=Path(destination).expanduser(),
        )

    return OperationConfig(action=kind, root=Path(root))


def _as_positive_int(value: Any, field_name: str, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{field_name} must be a positive integer")
    return value


def _as_log_level(value: Any, field_name: str, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str) or not isinstance(logging.getLevelName(value.upper()), int):
        raise ValueError(f"{field_name} must be a logging level name")
    return value.upper()


def _load_raw_settings(settings_path: Path) -> dict[str, Any]:
    if not settings_path.exists():
        raise ValueError(f"Settings file does not exist: {settings_path}")

    suffix = settings_path.suffix.lower()
    text = settings_path.read_text(encoding="utf-8")
    if suffix in {".yml", ".yaml"}:
        loaded = yaml.safe_load(text)
    elif suffix == ".json":
        loaded = json.loads(text)
    else:
        raise ValueError("Settings file must be .yaml/.yml or .json")

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError("Settings root must be an object")
    return loaded


def load_settings(settings_path: Path | None) -> Settings:
    if settings_path is None:
        return Settings()

    raw = _load_raw_settings(settings_path)
    return Settings(
        chunk_size=_as_positive_int(raw.get("chunkSize"), "chunkSize", DEFAULT_CHUNK_SIZE),
        max_open_directories=_as_positive_int(
            raw.get("maxOpenDirectories"), "maxOpenDirectories", DEFAULT_MAX_OPEN_DIRECTORIES
        ),
        log_level=_as_log_level(raw.get("logLevel"), "logLevel", DEFAULT_LOG_LEVEL),
    )
