"""
manifest-validator — validation core.

File: src/manifest_validator/validation/__init__.py

Purpose
- Classify candidate objects against a schema client, aggregate outcomes across
  concurrent workers, and reduce them into one job verdict.

Functional requirements
- Exactly one report block and one statistics contribution per object.
- Only escalating schema lookup failures abort a job; invalid objects are
  surfaced through the aggregate count.
"""

from manifest_validator.validation.object_validator import ObjectValidator
from manifest_validator.validation.orchestrator import (
    RunPhase,
    ValidationOrchestrator,
    reduce_job_result,
    validate_objects,
)
from manifest_validator.validation.reporter import format_outcome, format_summary
from manifest_validator.validation.stats import ValidationStats

__all__ = [
    "ObjectValidator",
    "RunPhase",
    "ValidationOrchestrator",
    "ValidationStats",
    "format_outcome",
    "format_summary",
    "reduce_job_result",
    "validate_objects",
]
