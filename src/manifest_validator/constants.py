"""Stable constants shared across validator components."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Final

# Schema versions for persisted contracts.
CONFIG_SCHEMA_VERSION: Final[int] = 1

# Reserved environment holding shared defaults; never a validation target.
BASELINE_ENVIRONMENT: Final[str] = "_"

# Number of validations in flight when the operator does not choose one.
DEFAULT_PARALLEL: Final[int] = 5

# Default runtime paths (relative to the config file unless overridden).
MANIFESTS_DIR: Final[PurePosixPath] = PurePosixPath("environments")
SCHEMAS_DIR: Final[PurePosixPath] = PurePosixPath("schemas")
LOGS_DIR: Final[PurePosixPath] = PurePosixPath("logs")

# ANSI escapes for report lines.
ESC_GREEN: Final[str] = "\x1b[32m"
ESC_RED: Final[str] = "\x1b[31m"
ESC_DIM: Final[str] = "\x1b[2m"
ESC_RESET: Final[str] = "\x1b[0m"

# Outcome glyphs; printed regardless of the color setting.
GLYPH_CHECK: Final[str] = "✔"
GLYPH_CROSS: Final[str] = "✘"
GLYPH_QUESTION: Final[str] = "?"

__all__ = [
    "BASELINE_ENVIRONMENT",
    "CONFIG_SCHEMA_VERSION",
    "DEFAULT_PARALLEL",
    "ESC_DIM",
    "ESC_GREEN",
    "ESC_RED",
    "ESC_RESET",
    "GLYPH_CHECK",
    "GLYPH_CROSS",
    "GLYPH_QUESTION",
    "LOGS_DIR",
    "MANIFESTS_DIR",
    "SCHEMAS_DIR",
]
