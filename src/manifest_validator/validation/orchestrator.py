"""Concurrent validation orchestrator.

Drives ``ObjectValidator`` over an object set with bounded concurrency, prints
the run summary, and reduces the final statistics plus any propagated lookup
failure into a single ``JobResult``.

Per-run phases: idle -> dispatching -> draining -> reduced. Reduction only
happens after every dispatched validation has returned.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from enum import StrEnum
from typing import TYPE_CHECKING, Any, TextIO

import structlog

from manifest_validator.constants import DEFAULT_PARALLEL
from manifest_validator.domain.models import CandidateObject, JobResult, JobStatus, StatsSnapshot
from manifest_validator.ui.render import Palette, SynchronizedWriter
from manifest_validator.utils.concurrency import ConcurrencyGate, run_all
from manifest_validator.validation.object_validator import ObjectValidator
from manifest_validator.validation.reporter import format_summary
from manifest_validator.validation.stats import ValidationStats

if TYPE_CHECKING:
    from manifest_validator.remote import SchemaClient


class RunPhase(StrEnum):
    IDLE = "idle"
    DISPATCHING = "dispatching"
    DRAINING = "draining"
    REDUCED = "reduced"


def reduce_job_result(stats: StatsSnapshot, error: BaseException | None) -> JobResult:
    """Reduce final statistics and the captured error into a job verdict.

    A captured error always wins; otherwise any invalid object makes the run a
    partial failure.
    """

    if error is not None:
        return JobResult(status=JobStatus.ABORTED, stats=stats, cause=error)
    if stats.invalid:
        return JobResult(
            status=JobStatus.PARTIAL_FAILURE,
            stats=stats,
            invalid_count=len(stats.invalid),
        )
    return JobResult(status=JobStatus.SUCCESS, stats=stats)


class ValidationOrchestrator:
    """Validate a batch of objects in parallel and reduce the outcome."""

    def __init__(
        self,
        client: SchemaClient,
        out: TextIO,
        *,
        palette: Palette | None = None,
        logger: Any | None = None,
    ) -> None:
        self._client = client
        self._out = out
        self._palette = palette or Palette.plain()
        self._logger = logger if logger is not None else structlog.get_logger(__name__)
        self._phase = RunPhase.IDLE
        self._stats: ValidationStats | None = None

    @property
    def phase(self) -> RunPhase:
        return self._phase

    @property
    def stats(self) -> ValidationStats | None:
        """Statistics of the current or most recent run."""

        return self._stats

    async def run(
        self,
        objects: Sequence[CandidateObject],
        concurrency_limit: int = DEFAULT_PARALLEL,
    ) -> JobResult:
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be >= 1")
        if self._phase in {RunPhase.DISPATCHING, RunPhase.DRAINING}:
            raise RuntimeError(f"validation run already in progress ({self._phase})")

        stats = ValidationStats()
        writer = SynchronizedWriter(self._out)
        validator = ObjectValidator(
            self._client,
            stats,
            writer,
            palette=self._palette,
            logger=self._logger,
        )
        self._stats = stats
        self._logger.info(
            "validation_run_started",
            objects=len(objects),
            concurrency_limit=concurrency_limit,
        )

        gate = ConcurrencyGate(concurrency_limit)
        self._phase = RunPhase.DISPATCHING
        try:
            error = await run_all(
                objects,
                concurrency_limit,
                validator.validate,
                on_dispatched=self._draining,
                gate=gate,
            )
        except BaseException:
            self._phase = RunPhase.IDLE
            raise

        snapshot = stats.snapshot()
        writer.write_line(format_summary(snapshot))
        result = reduce_job_result(snapshot, error)
        self._phase = RunPhase.REDUCED
        self._logger.info(
            "validation_run_reduced",
            status=result.status.value,
            valid=snapshot.valid_count,
            unknown=len(snapshot.unknown),
            invalid=len(snapshot.invalid),
            errors=len(snapshot.errors),
            peak_concurrency=gate.peak,
        )
        return result

    def _draining(self, dispatched: int) -> None:
        self._phase = RunPhase.DRAINING
        self._logger.debug("validation_run_draining", dispatched=dispatched)


def validate_objects(
    objects: Sequence[CandidateObject],
    client: SchemaClient,
    *,
    parallel: int = DEFAULT_PARALLEL,
    colors: bool = False,
    out: TextIO,
    logger: Any | None = None,
) -> JobResult:
    """Synchronous entrypoint: run one orchestration on a fresh event loop."""

    orchestrator = ValidationOrchestrator(
        client,
        out,
        palette=Palette.for_colors(colors),
        logger=logger,
    )
    return asyncio.run(orchestrator.run(objects, parallel))


__all__ = [
    "RunPhase",
    "ValidationOrchestrator",
    "reduce_job_result",
    "validate_objects",
]
