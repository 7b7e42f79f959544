"""
manifest-validator — domain types.

File: src/manifest_validator/domain/__init__.py

Purpose
- Domain types shared across components: candidate objects, outcomes, statistics
  snapshots and job results.

Non-functional requirements
- Domain layer stays free of IO side effects.
"""

from manifest_validator.domain.models import (
    CandidateObject,
    JobResult,
    JobStatus,
    Outcome,
    OutcomeKind,
    StatsSnapshot,
    TypeDiscriminator,
)

__all__ = [
    "CandidateObject",
    "JobResult",
    "JobStatus",
    "Outcome",
    "OutcomeKind",
    "StatsSnapshot",
    "TypeDiscriminator",
]
