"""
manifest-validator — runtime config loader.

File: src/manifest_validator/config/loader.py

Purpose
- Build the effective config from four layers, lowest first: built-in defaults,
  ``validator.toml``, ``MANIFEST_VALIDATOR_<SECTION>_<KEY>`` variables, CLI flags.

Behavior
- An explicit ``--config`` path must exist; the implicit ``./validator.toml`` may be absent.
- Environment values are coerced to the type of the setting's default.
- Relative paths resolve against the directory holding the config file.
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from manifest_validator.config.schema import (
    DEFAULT_CONFIG,
    PATH_FIELDS,
    ValidatorConfig,
    assert_valid_config,
    default_config,
    merge_config,
)

DEFAULT_CONFIG_FILE: Final[str] = "validator.toml"
ENV_PREFIX: Final[str] = "MANIFEST_VALIDATOR_"

_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_FALSY: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})


class ConfigLoadError(ValueError):
    """The config file or an override could not be read or coerced."""


def load_config(
    config_path: str | Path | None = None,
    *,
    cli_overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> ValidatorConfig:
    """Return the validated effective config with absolute path settings.

    ``cli_overrides`` keys are dotted (``"validation.parallel"``). ``None`` values mean
    "flag not given" and leave lower layers in place.
    """
    explicit = config_path is not None
    path = Path(config_path).expanduser() if explicit else Path.cwd() / DEFAULT_CONFIG_FILE
    path = path.resolve()

    from_file = assert_valid_config(merge_config(default_config(), _read_toml(path, explicit)))
    layered = merge_config(
        merge_config(from_file, env_overrides(os.environ if environ is None else environ)),
        _cli_layer(cli_overrides or {}),
    )
    return normalize_paths(assert_valid_config(layered), base_dir=path.parent)


def env_overrides(environ: Mapping[str, str]) -> dict[str, dict[str, Any]]:
    """Pick ``MANIFEST_VALIDATOR_*`` variables that name a known setting and coerce them."""
    layer: dict[str, dict[str, Any]] = {}
    for section, keys in DEFAULT_CONFIG.items():
        for key, default in keys.items():
            name = env_name(section, key)
            if name in environ:
                layer.setdefault(section, {})[key] = _coerce(environ[name], default, name)
    return layer


def env_name(section: str, key: str) -> str:
    return f"{ENV_PREFIX}{section.upper()}_{key.upper()}"


def normalize_paths(config: Mapping[str, Any], *, base_dir: Path) -> ValidatorConfig:
    """Return a copy of ``config`` whose path settings are absolute POSIX strings."""
    normalized: ValidatorConfig = merge_config({}, config)
    for section, key in PATH_FIELDS:
        raw = normalized.get(section, {}).get(key)
        if isinstance(raw, str):
            candidate = Path(os.path.expandvars(raw)).expanduser()
            if not candidate.is_absolute():
                candidate = base_dir / candidate
            normalized[section][key] = Path(os.path.normpath(candidate)).as_posix()
    return normalized


def dump_effective_config(config: Mapping[str, object]) -> str:
    return json.dumps(config, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _read_toml(path: Path, required: bool) -> dict[str, Any]:
    if not path.is_file():
        if required:
            raise ConfigLoadError(f"config file not found: {path}")
        return {}
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc


def _coerce(raw: str, default: object, name: str) -> object:
    value = raw.strip()
    if isinstance(default, bool):
        if value.lower() in _TRUTHY:
            return True
        if value.lower() in _FALSY:
            return False
        raise ConfigLoadError(f"{name} must be a boolean (true/false/1/0/yes/no/on/off)")
    if isinstance(default, int):
        try:
            return int(value)
        except ValueError as exc:
            raise ConfigLoadError(f"{name} must be an integer, got {raw!r}") from exc
    return value


def _cli_layer(overrides: Mapping[str, object]) -> dict[str, Any]:
    layer: dict[str, Any] = {}
    for dotted, value in overrides.items():
        if value is None:
            continue
        section, _, key = dotted.partition(".")
        if not section or not key:
            raise ConfigLoadError(f"invalid CLI override key {dotted!r}")
        layer.setdefault(section, {})[key] = value
    return layer


__all__ = [
    "ConfigLoadError",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "dump_effective_config",
    "env_name",
    "env_overrides",
    "load_config",
    "normalize_paths",
]
