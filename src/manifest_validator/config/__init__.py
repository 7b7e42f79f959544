"""
manifest-validator config package public API.

File: src/manifest_validator/config/__init__.py

Purpose
- Export config loading and validation entrypoints and their error types.
"""

from manifest_validator.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    ConfigLoadError,
    dump_effective_config,
    env_name,
    env_overrides,
    load_config,
    normalize_paths,
)
from manifest_validator.config.schema import (
    COLOR_MODES,
    DEFAULT_CONFIG,
    PATH_FIELDS,
    SETTINGS,
    ConfigSchemaVersion,
    ConfigValidationError,
    ConfigValidationIssue,
    ConfigValidationResult,
    ValidatorConfig,
    assert_valid_config,
    default_config,
    merge_config,
    migration_guidance,
    validate_config,
)

__all__ = [
    "COLOR_MODES",
    "ConfigLoadError",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "PATH_FIELDS",
    "SETTINGS",
    "ValidatorConfig",
    "assert_valid_config",
    "default_config",
    "dump_effective_config",
    "env_name",
    "env_overrides",
    "load_config",
    "merge_config",
    "migration_guidance",
    "normalize_paths",
    "validate_config",
]
