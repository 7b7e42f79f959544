"""
manifest-validator — object sources.

File: src/manifest_validator/sources/__init__.py

Purpose
- Supply the ordered, already filtered candidate objects for one environment.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from manifest_validator.domain.models import CandidateObject
from manifest_validator.sources.filter import ObjectFilter
from manifest_validator.sources.yaml_source import ObjectSourceError, YamlObjectSource


@runtime_checkable
class ObjectSource(Protocol):
    """Produces candidate objects for an environment."""

    def objects(self, environment: str) -> list[CandidateObject]:
        """Return candidate objects in source order."""


__all__ = ["ObjectFilter", "ObjectSource", "ObjectSourceError", "YamlObjectSource"]
