"""JSON Schema client backed by a local schema directory.

Schemas live at ``<schema_dir>/<group>/<version>/<kind>.json`` where the core
API group is spelled ``core`` and the kind is lowercased, for example
``schemas/apps/v1/deployment.json`` or ``schemas/core/v1/configmap.json``.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Final

import jsonschema
from jsonschema.exceptions import SchemaError

from manifest_validator.domain.models import CandidateObject, TypeDiscriminator
from manifest_validator.remote.errors import (
    LookupFailureKind,
    SchemaLookupError,
    SchemaNotFoundError,
)

_SCHEMA_SUFFIX: Final[str] = ".json"


class JsonSchemaValidator:
    """Validator wrapping one compiled ``jsonschema`` validator."""

    __slots__ = ("_validator",)

    def __init__(self, schema: Mapping[str, Any]) -> None:
        validator_cls = jsonschema.validators.validator_for(schema)
        validator_cls.check_schema(schema)
        self._validator = validator_cls(schema)

    def validate(self, content: Mapping[str, Any]) -> Sequence[str]:
        errors = sorted(
            self._validator.iter_errors(content),
            key=lambda error: (error.json_path, error.message),
        )
        return [f"{error.json_path}: {error.message}" for error in errors]


class LocalSchemaClient:
    """Schema client resolving JSON Schema documents from disk, cached per type."""

    def __init__(self, schema_dir: Path | str) -> None:
        self._schema_dir = Path(schema_dir)
        self._lock = threading.Lock()
        self._type_locks: dict[TypeDiscriminator, threading.Lock] = {}
        self._cache: dict[TypeDiscriminator, JsonSchemaValidator | SchemaNotFoundError] = {}

    @property
    def schema_dir(self) -> Path:
        return self._schema_dir

    def display_name(self, obj: CandidateObject) -> str:
        parts = [obj.kind, obj.name]
        if obj.namespace:
            parts.extend(("-n", obj.namespace))
        if obj.component:
            parts.append(f"(component {obj.component})")
        return " ".join(parts)

    def schema_path(self, type_discriminator: TypeDiscriminator) -> Path:
        return (
            self._schema_dir
            / type_discriminator.group_label
            / type_discriminator.version
            / f"{type_discriminator.kind.lower()}{_SCHEMA_SUFFIX}"
        )

    def validator_for(self, type_discriminator: TypeDiscriminator) -> JsonSchemaValidator:
        """Return the cached validator, loading it under a per-type lock on first use.

        A missing schema is cached too. Other failures are not, so the next lookup retries.
        """
        with self._lock:
            cached = self._cache.get(type_discriminator)
            type_lock = self._type_locks.setdefault(type_discriminator, threading.Lock())
        if cached is None:
            with type_lock:
                with self._lock:
                    cached = self._cache.get(type_discriminator)
                if cached is None:
                    try:
                        cached = self._load(type_discriminator)
                    except SchemaNotFoundError as exc:
                        cached = exc
                    with self._lock:
                        self._cache[type_discriminator] = cached
        if isinstance(cached, SchemaNotFoundError):
            raise SchemaNotFoundError(cached.message, type_discriminator=type_discriminator)
        return cached

    def _load(self, type_discriminator: TypeDiscriminator) -> JsonSchemaValidator:
        path = self.schema_path(type_discriminator)
        if not path.is_file():
            raise SchemaNotFoundError(
                f"no schema found for {type_discriminator}",
                type_discriminator=type_discriminator,
            )

        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SchemaLookupError(
                f"unable to read schema {path}: {exc}",
                kind=LookupFailureKind.FETCH_FAILED,
                type_discriminator=type_discriminator,
            ) from exc

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SchemaLookupError(
                f"invalid JSON in schema {path}: {exc}",
                kind=LookupFailureKind.INVALID_SCHEMA,
                type_discriminator=type_discriminator,
            ) from exc

        if not isinstance(document, dict):
            raise SchemaLookupError(
                f"schema root must be an object: {path}",
                kind=LookupFailureKind.INVALID_SCHEMA,
                type_discriminator=type_discriminator,
            )

        try:
            return JsonSchemaValidator(document)
        except SchemaError as exc:
            raise SchemaLookupError(
                f"schema {path} is not a valid JSON Schema: {exc.message}",
                kind=LookupFailureKind.INVALID_SCHEMA,
                type_discriminator=type_discriminator,
            ) from exc


__all__ = ["JsonSchemaValidator", "LocalSchemaClient"]
