"""
manifest-validator — configuration schema and validation.

File: src/manifest_validator/config/schema.py

Purpose
- Declare every ``validator.toml`` setting once: section, key, default, and value check.
- Validate a payload against that table and report every problem as ``path: message``.

Notes
- The file holds two levels only (``[section] key = value``); there are no nested tables.
- ``meta.schema_version`` must match ``CONFIG_SCHEMA_VERSION`` exactly; a mismatch explains
  which side needs upgrading.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final

from manifest_validator.constants import (
    CONFIG_SCHEMA_VERSION,
    DEFAULT_PARALLEL,
    LOGS_DIR,
    MANIFESTS_DIR,
    SCHEMAS_DIR,
)

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION

COLOR_MODES: Final[tuple[str, ...]] = ("auto", "always", "never")
LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

ValidatorConfig = dict[str, dict[str, Any]]


class _Rejected(ValueError):
    """A single setting value failed its check."""


@dataclass(frozen=True, slots=True)
class _Setting:
    default: object
    check: Callable[[object], object]
    is_path: bool = False


def _type_name(value: object) -> str:
    return type(value).__name__


def _as_int(value: object, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise _Rejected(f"expected integer, got {_type_name(value)}")
    if value < minimum:
        raise _Rejected(f"must be >= {minimum}")
    return value


def _integer(*, minimum: int) -> Callable[[object], object]:
    return lambda value: _as_int(value, minimum)


def _boolean(value: object) -> object:
    if not isinstance(value, bool):
        raise _Rejected(f"expected boolean, got {_type_name(value)}")
    return value


def _text(value: object) -> str:
    if not isinstance(value, str):
        raise _Rejected(f"expected string, got {_type_name(value)}")
    if not value.strip():
        raise _Rejected("must not be empty")
    return value.strip()


def _path_text(value: object) -> object:
    text = _text(value)
    if "\x00" in text:
        raise _Rejected("must not contain NUL bytes")
    return text


def _choice(options: tuple[str, ...], *, upper: bool = False) -> Callable[[object], object]:
    def check(value: object) -> object:
        text = _text(value)
        if upper:
            text = text.upper()
        if text not in options:
            expected = ", ".join(sorted(options))
            raise _Rejected(f"invalid value {text!r}; expected one of: {expected}")
        return text

    return check


def _schema_version(value: object) -> object:
    version = _as_int(value, 1)
    if version != ConfigSchemaVersion:
        raise _Rejected(migration_guidance(version))
    return version


SETTINGS: Final[dict[str, dict[str, _Setting]]] = {
    "meta": {
        "schema_version": _Setting(ConfigSchemaVersion, _schema_version),
    },
    "validation": {
        "parallel": _Setting(DEFAULT_PARALLEL, _integer(minimum=1)),
    },
    "paths": {
        "manifests_dir": _Setting(f"{MANIFESTS_DIR}/", _path_text, is_path=True),
        "schemas_dir": _Setting(f"{SCHEMAS_DIR}/", _path_text, is_path=True),
    },
    "output": {
        "colors": _Setting("auto", _choice(COLOR_MODES)),
    },
    "observability": {
        "log_level": _Setting("INFO", _choice(LOG_LEVELS, upper=True)),
        "log_dir": _Setting(f"{LOGS_DIR}/", _path_text, is_path=True),
        "log_to_stderr": _Setting(False, _boolean),
        "redact_secrets": _Setting(True, _boolean),
    },
}

DEFAULT_CONFIG: Final[ValidatorConfig] = {
    section: {key: setting.default for key, setting in keys.items()}
    for section, keys in SETTINGS.items()
}

PATH_FIELDS: Final[tuple[tuple[str, str], ...]] = tuple(
    (section, key)
    for section, keys in SETTINGS.items()
    for key, setting in keys.items()
    if setting.is_path
)


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    """Normalized config, or ``None`` plus the issues that prevented it."""

    config: ValidatorConfig | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised by ``assert_valid_config``; ``issues`` keeps the structured list."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        lines = [f"- {issue.path}: {issue.message}" for issue in self.issues]
        super().__init__("invalid config:\n" + ("\n".join(lines) or "unknown validation failure"))


def default_config() -> ValidatorConfig:
    return copy.deepcopy(DEFAULT_CONFIG)


def migration_guidance(found_version: int) -> str:
    if found_version < ConfigSchemaVersion:
        return (
            f"schema version {found_version} is older than supported {ConfigSchemaVersion}; "
            "upgrade validator.toml to the current schema"
        )
    if found_version > ConfigSchemaVersion:
        return (
            f"schema version {found_version} is newer than supported {ConfigSchemaVersion}; "
            "upgrade the manifest-validator runtime"
        )
    return "schema version is current"


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Return ``base`` with ``overlay`` laid over it; tables merge key by key."""
    merged: dict[str, Any] = copy.deepcopy(dict(base))
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, dict):
            merged[key] = merge_config(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def validate_config(config: object) -> ConfigValidationResult:
    """Check ``config`` against ``SETTINGS``; missing keys take their defaults."""
    issues: list[ConfigValidationIssue] = []
    if not isinstance(config, Mapping):
        issues.append(
            ConfigValidationIssue("<root>", f"expected object, got {_type_name(config)}")
        )
        return ConfigValidationResult(None, tuple(issues))

    for name in sorted(str(key) for key in config if key not in SETTINGS):
        issues.append(ConfigValidationIssue(name, "unknown field"))

    normalized: ValidatorConfig = {}
    for section, settings in SETTINGS.items():
        table = config.get(section, {})
        if not isinstance(table, Mapping):
            issues.append(
                ConfigValidationIssue(section, f"expected object, got {_type_name(table)}")
            )
            continue
        for name in sorted(str(key) for key in table if key not in settings):
            issues.append(ConfigValidationIssue(f"{section}.{name}", "unknown field"))

        values: dict[str, Any] = {}
        for key, setting in settings.items():
            try:
                values[key] = setting.check(table.get(key, setting.default))
            except _Rejected as exc:
                issues.append(ConfigValidationIssue(f"{section}.{key}", str(exc)))
        normalized[section] = values

    if issues:
        return ConfigValidationResult(None, tuple(issues))
    return ConfigValidationResult(normalized, ())


def assert_valid_config(config: object) -> ValidatorConfig:
    result = validate_config(config)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


__all__ = [
    "COLOR_MODES",
    "DEFAULT_CONFIG",
    "LOG_LEVELS",
    "PATH_FIELDS",
    "SETTINGS",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "ValidatorConfig",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "migration_guidance",
    "validate_config",
]
