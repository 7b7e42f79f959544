"""Shared deterministic fakes and builders for validation-core tests."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from manifest_validator.domain.models import CandidateObject, TypeDiscriminator
from manifest_validator.remote.errors import SchemaNotFoundError


def make_object(
    name: str,
    *,
    kind: str = "ConfigMap",
    api_version: str = "v1",
    namespace: str | None = None,
    component: str | None = None,
    **content: Any,
) -> CandidateObject:
    manifest: dict[str, Any] = {
        "apiVersion": api_version,
        "kind": kind,
        "metadata": {"name": name},
        **content,
    }
    if namespace is not None:
        manifest["metadata"]["namespace"] = namespace
    return CandidateObject.from_manifest(manifest, component=component)


class StaticValidator:
    """Validator returning violations from a callable over the object content."""

    def __init__(
        self,
        check: Callable[[Mapping[str, Any]], Sequence[str]] | None = None,
        *,
        delay: float = 0.0,
    ) -> None:
        self._check = check or (lambda content: [])
        self._delay = delay

    def validate(self, content: Mapping[str, Any]) -> Sequence[str]:
        if self._delay:
            time.sleep(self._delay)
        return self._check(content)


class FailingValidator:
    def __init__(self, exc: Exception) -> None:
        self._exc = exc

    def validate(self, content: Mapping[str, Any]) -> Sequence[str]:
        raise self._exc


class FakeSchemaClient:
    """In-memory schema client keyed by kind.

    ``validators`` maps a kind to a validator; ``failures`` maps a kind to the
    exception ``validator_for`` raises. Unlisted kinds have no schema. The
    client records how many lookups were in flight at once.
    """

    def __init__(
        self,
        validators: Mapping[str, object] | None = None,
        *,
        failures: Mapping[str, Exception] | None = None,
        lookup_delay: float = 0.0,
    ) -> None:
        self._validators = dict(validators or {})
        self._failures = dict(failures or {})
        self._lookup_delay = lookup_delay
        self._lock = threading.Lock()
        self._in_flight = 0
        self.peak_in_flight = 0
        self.lookups: list[TypeDiscriminator] = []

    def display_name(self, obj: CandidateObject) -> str:
        return f"{obj.kind} {obj.name}"

    def validator_for(self, type_discriminator: TypeDiscriminator) -> Any:
        with self._lock:
            self._in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self._in_flight)
            self.lookups.append(type_discriminator)
        try:
            if self._lookup_delay:
                time.sleep(self._lookup_delay)
            failure = self._failures.get(type_discriminator.kind)
            if failure is not None:
                raise failure
            validator = self._validators.get(type_discriminator.kind)
            if validator is None:
                raise SchemaNotFoundError(type_discriminator=type_discriminator)
            return validator
        finally:
            with self._lock:
                self._in_flight -= 1


def require_fields(*fields: str) -> StaticValidator:
    """Validator reporting one violation per missing top-level field."""

    def _check(content: Mapping[str, Any]) -> list[str]:
        return [f"$: '{field}' is a required property" for field in fields if field not in content]

    return StaticValidator(_check)


__all__ = [
    "FailingValidator",
    "FakeSchemaClient",
    "StaticValidator",
    "make_object",
    "require_fields",
]
