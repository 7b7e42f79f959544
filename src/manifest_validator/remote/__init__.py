"""
manifest-validator — schema client contracts.

File: src/manifest_validator/remote/__init__.py

Purpose
- Define the capabilities the validation core needs from a schema authority.
- Export the tagged lookup error taxonomy.

Functional requirements
- Implementations must be safe to call from several worker threads at once.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from manifest_validator.domain.models import CandidateObject, TypeDiscriminator
from manifest_validator.remote.errors import (
    LookupFailureKind,
    SchemaLookupError,
    SchemaNotFoundError,
)


@runtime_checkable
class Validator(Protocol):
    """Structural validator for one object type."""

    def validate(self, content: Mapping[str, Any]) -> Sequence[str]:
        """Return violation messages; empty when the content is valid."""


@runtime_checkable
class SchemaClient(Protocol):
    """Read-only, reentrant access to a schema authority."""

    def display_name(self, obj: CandidateObject) -> str:
        """Return a stable, human-readable identifier for ``obj``."""

    def validator_for(self, type_discriminator: TypeDiscriminator) -> Validator:
        """Return a validator or raise ``SchemaLookupError``."""


__all__ = [
    "LookupFailureKind",
    "SchemaClient",
    "SchemaLookupError",
    "SchemaNotFoundError",
    "Validator",
]
