"""Command-line interface router for manifest-validator."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

import structlog

from manifest_validator.config import (
    ConfigLoadError,
    ConfigValidationError,
    dump_effective_config,
    load_config,
)
from manifest_validator.constants import BASELINE_ENVIRONMENT
from manifest_validator.domain.models import JobResult, JobStatus
from manifest_validator.main import ExitCode
from manifest_validator.observability import correlation_scope, setup_logging, shutdown_logging
from manifest_validator.remote.local import LocalSchemaClient
from manifest_validator.sources import ObjectFilter, ObjectSourceError, YamlObjectSource
from manifest_validator.ui.render import color_allowed
from manifest_validator.validation import validate_objects


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = int(ExitCode.VALIDATION_FAILED)

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router for all supported CLI workflows."""

    parser = argparse.ArgumentParser(
        prog="manifest-validator",
        description=(
            "manifest-validator — validate configuration objects against their schemas.\n\n"
            "Common workflows:\n"
            "  manifest-validator validate dev               Validate the dev environment\n"
            "  manifest-validator validate prod --parallel 10\n"
            "  manifest-validator validate dev -k ConfigMap  Validate only ConfigMaps\n"
            "  manifest-validator config                     Show effective config\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to validator TOML config (default: ./validator.toml if present).",
    )
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Also write debug logs to stderr.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # validate ------------------------------------------------------------
    validate_parser = subparsers.add_parser(
        "validate",
        parents=[common],
        help="Validate one environment's objects against their schemas.",
        description=(
            "Validate every object of one environment against the schema of its\n"
            "kind and version. Exits non-zero when any object is invalid or a\n"
            "schema lookup fails."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    validate_parser.add_argument(
        "environments",
        nargs="*",
        metavar="environment",
        help="Environment to validate (exactly one).",
    )
    validate_parser.add_argument(
        "--parallel",
        type=int,
        default=None,
        help="Number of validations to run in parallel (default: 5).",
    )
    validate_parser.add_argument(
        "--manifests-dir",
        default=None,
        help="Directory holding one manifests subdirectory per environment.",
    )
    validate_parser.add_argument(
        "--schemas-dir",
        default=None,
        help="Directory holding JSON Schemas as <group>/<version>/<kind>.json.",
    )
    validate_parser.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Disable colored output (also respects NO_COLOR env var).",
    )
    _add_filter_arguments(validate_parser)
    validate_parser.set_defaults(handler=_cmd_validate)

    # config --------------------------------------------------------------
    config_parser = subparsers.add_parser(
        "config",
        parents=[common],
        help="Print the effective configuration as JSON.",
    )
    config_parser.set_defaults(handler=_cmd_config)

    return parser


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    filters = parser.add_argument_group(
        "object filters",
        "Each flag may be repeated or given a comma-separated list. A dimension is\n"
        "filtered by inclusion or exclusion, not both.",
    )
    filters.add_argument(
        "-c",
        "--include-components",
        action="append",
        metavar="COMPONENT",
        help="Only validate objects of these components.",
    )
    filters.add_argument(
        "-C",
        "--exclude-components",
        action="append",
        metavar="COMPONENT",
        help="Skip objects of these components.",
    )
    filters.add_argument(
        "-k",
        "--include-kinds",
        action="append",
        metavar="KIND",
        help="Only validate objects of these kinds (case-insensitive).",
    )
    filters.add_argument(
        "-K",
        "--exclude-kinds",
        action="append",
        metavar="KIND",
        help="Skip objects of these kinds (case-insensitive).",
    )


# ---------------------------------------------------------------------------
# Entrypoints
# ---------------------------------------------------------------------------


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return int(ExitCode.CONFIG_ERROR)

    try:
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    return int(result)


def main(argv: Sequence[str] | None = None) -> int:
    """Compatibility wrapper for main-module wiring."""

    return run_cli(argv)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_validate(args: argparse.Namespace) -> int:
    environment = _require_environment(getattr(args, "environments", None) or [])
    object_filter = _object_filter(args)
    config = _load_effective_config(args)
    logging_config: dict[str, Any] = dict(config["observability"])
    if _flag(args, "verbose"):
        logging_config.update(log_level="DEBUG", log_to_stderr=True)

    run_id = _new_run_id()
    handle = setup_logging(logging_config, run_id=run_id)
    logger = structlog.get_logger(__name__)
    try:
        with correlation_scope(environment=environment):
            logger.info(
                "validate_command_started",
                manifests_dir=config["paths"]["manifests_dir"],
                schemas_dir=config["paths"]["schemas_dir"],
            )
            try:
                objects = YamlObjectSource(config["paths"]["manifests_dir"]).objects(environment)
            except ObjectSourceError as exc:
                raise CLIError(str(exc), exit_code=int(ExitCode.CONFIG_ERROR)) from exc
            if object_filter.active:
                selected = object_filter.apply(objects)
                logger.info("objects_filtered", loaded=len(objects), selected=len(selected))
                objects = selected

            colors = color_allowed(
                sys.stdout,
                mode=config["output"]["colors"],
                no_color_flag=_flag(args, "no_color"),
            )
            result = validate_objects(
                objects,
                LocalSchemaClient(config["paths"]["schemas_dir"]),
                parallel=config["validation"]["parallel"],
                colors=colors,
                out=sys.stdout,
            )
    finally:
        shutdown_logging(handle)

    return _exit_code_for(result)


def _cmd_config(args: argparse.Namespace) -> int:
    print(dump_effective_config(_load_effective_config(args)))
    return int(ExitCode.SUCCESS)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _require_environment(environments: Sequence[str]) -> str:
    if len(environments) != 1:
        raise CLIError("exactly one environment required", exit_code=int(ExitCode.CONFIG_ERROR))
    environment = environments[0].strip()
    if not environment:
        raise CLIError("environment must not be empty", exit_code=int(ExitCode.CONFIG_ERROR))
    if environment == BASELINE_ENVIRONMENT:
        raise CLIError(
            "cannot validate baseline environment, use a real environment",
            exit_code=int(ExitCode.CONFIG_ERROR),
        )
    return environment


def _object_filter(args: argparse.Namespace) -> ObjectFilter:
    try:
        return ObjectFilter.from_flags(
            include_components=getattr(args, "include_components", None),
            exclude_components=getattr(args, "exclude_components", None),
            include_kinds=getattr(args, "include_kinds", None),
            exclude_kinds=getattr(args, "exclude_kinds", None),
        )
    except ValueError as exc:
        raise CLIError(str(exc), exit_code=int(ExitCode.CONFIG_ERROR)) from exc


def _load_effective_config(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, object] = {
        "validation.parallel": getattr(args, "parallel", None),
        "paths.manifests_dir": _absolute_path(getattr(args, "manifests_dir", None)),
        "paths.schemas_dir": _absolute_path(getattr(args, "schemas_dir", None)),
    }
    try:
        return load_config(getattr(args, "config_path", None), cli_overrides=overrides)
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=int(ExitCode.CONFIG_ERROR)) from exc


def _exit_code_for(result: JobResult) -> int:
    if result.status is JobStatus.SUCCESS:
        return int(ExitCode.SUCCESS)
    print(f"error: {result.describe()}", file=sys.stderr)
    if result.status is JobStatus.ABORTED:
        return int(ExitCode.SCHEMA_ERROR)
    return int(ExitCode.VALIDATION_FAILED)


def _absolute_path(raw: object) -> str | None:
    if not isinstance(raw, str) or not raw.strip():
        return None
    return Path(raw).expanduser().resolve().as_posix()


def _new_run_id() -> str:
    stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
    return f"validate-{stamp}-{uuid4().hex[:8]}"


def _flag(args: argparse.Namespace, name: str) -> bool:
    return bool(getattr(args, name, False))


__all__ = ["CLIError", "build_parser", "main", "run_cli"]
