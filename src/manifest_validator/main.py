"""Process entrypoint for ``manifest-validator`` and ``python -m manifest_validator``."""

from __future__ import annotations

import sys
import traceback
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence


class ExitCode(IntEnum):
    """Process exit codes. Values are part of the CLI contract."""

    SUCCESS = 0
    VALIDATION_FAILED = 1
    CONFIG_ERROR = 2
    SCHEMA_ERROR = 3
    INTERNAL_ERROR = 4


def cli_entrypoint(argv: Sequence[str] | None = None) -> int:
    try:
        from manifest_validator.ui.cli import run_cli

        return _normalize_exit_code(run_cli(argv))
    except SystemExit as exc:
        return _normalize_exit_code(exc.code)
    except BaseException as exc:  # noqa: BLE001 - last-resort mapping to an exit code.
        code = _route_exception(exc)
        if code is ExitCode.INTERNAL_ERROR:
            traceback.print_exception(exc, file=sys.stderr)
        else:
            print(f"error: {str(exc).strip() or type(exc).__name__}", file=sys.stderr)
        return int(code)


def _normalize_exit_code(raw_code: object) -> int:
    if raw_code is None:
        return int(ExitCode.SUCCESS)
    if isinstance(raw_code, int) and raw_code in {int(code) for code in ExitCode}:
        return raw_code
    if isinstance(raw_code, str) and raw_code.strip():
        print(raw_code.strip(), file=sys.stderr)
    return int(ExitCode.INTERNAL_ERROR)


def _route_exception(exc: BaseException) -> ExitCode:
    """Pick the exit code of the first recognised error along the cause chain."""
    from manifest_validator.config import ConfigLoadError, ConfigValidationError
    from manifest_validator.remote.errors import SchemaLookupError
    from manifest_validator.sources import ObjectSourceError

    routes: tuple[tuple[tuple[type[BaseException], ...], ExitCode], ...] = (
        ((SchemaLookupError,), ExitCode.SCHEMA_ERROR),
        ((ConfigLoadError, ConfigValidationError, ObjectSourceError), ExitCode.CONFIG_ERROR),
        ((FileNotFoundError, NotADirectoryError, PermissionError), ExitCode.CONFIG_ERROR),
    )
    for item in _causes(exc):
        for types, code in routes:
            if isinstance(item, types):
                return code
    return ExitCode.INTERNAL_ERROR


def _causes(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        if current.__cause__ is not None:
            current = current.__cause__
        elif current.__suppress_context__:
            current = None
        else:
            current = current.__context__


__all__ = ["ExitCode", "cli_entrypoint"]
