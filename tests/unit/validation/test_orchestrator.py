"""
manifest-validator — unit tests for the concurrent validation orchestrator

File: tests/unit/validation/test_orchestrator.py

Purpose
- Validate job reduction, bounded concurrency, and run phases of ``ValidationOrchestrator``.

What this test file should cover
- Success / partial failure / aborted verdicts, with aborted dominating.
- Every dispatched object is processed even when one lookup fails.
- The concurrency limit caps in-flight lookups, and the limit never changes the totals.
- Summary block printed after all report blocks.
- An object whose name or type cannot be resolved still yields an error line and a record.

Functional requirements
- Offline only; schema clients are in-memory fakes.
"""

from __future__ import annotations

import io

import pytest
import yaml
from hypothesis import given, settings
from hypothesis import strategies as st
from structlog.testing import capture_logs

from manifest_validator.domain.models import CandidateObject, JobStatus, StatsSnapshot
from manifest_validator.remote.errors import LookupFailureKind, SchemaLookupError
from manifest_validator.validation.orchestrator import (
    RunPhase,
    ValidationOrchestrator,
    reduce_job_result,
    validate_objects,
)

from . import FakeSchemaClient, StaticValidator, make_object, require_fields

_GLYPHS = ("✔", "✘", "?")


def _report_lines(text: str) -> list[str]:
    return [line for line in text.splitlines() if line.startswith(_GLYPHS)]


def _summary(text: str) -> dict[str, object]:
    _, _, tail = text.partition("---\n")
    loaded = yaml.safe_load(tail)
    assert isinstance(loaded, dict)
    return loaded


def _mixed_client(**kwargs: object) -> FakeSchemaClient:
    return FakeSchemaClient(
        {
            "ConfigMap": require_fields("data"),
            "Deployment": StaticValidator(),
        },
        **kwargs,  # type: ignore[arg-type]
    )


@pytest.mark.unit
@pytest.mark.asyncio
async def test_all_valid_objects_succeed() -> None:
    out = io.StringIO()
    orchestrator = ValidationOrchestrator(FakeSchemaClient({"ConfigMap": StaticValidator()}), out)

    result = await orchestrator.run([make_object("a"), make_object("b")], 5)

    assert result.status is JobStatus.SUCCESS
    assert result.ok
    assert result.describe() == "all objects valid"
    assert result.stats.valid_count == 2
    assert out.getvalue().endswith("---\nstats:\n  valid: 2\n")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_invalid_objects_make_a_partial_failure_with_count() -> None:
    out = io.StringIO()
    objects = [
        make_object("a", data={"k": "v"}),
        make_object("b"),
        make_object("c"),
        make_object("w", kind="Widget", api_version="x.io/v1"),
    ]
    orchestrator = ValidationOrchestrator(_mixed_client(), out)

    result = await orchestrator.run(objects, 2)

    assert result.status is JobStatus.PARTIAL_FAILURE
    assert result.invalid_count == 2
    assert result.describe() == "2 invalid objects found"
    assert sorted(result.stats.invalid) == ["ConfigMap b", "ConfigMap c"]
    assert result.stats.unknown == ("Widget w",)
    assert len(_report_lines(out.getvalue())) == 4


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unknown_objects_alone_do_not_fail_the_run() -> None:
    orchestrator = ValidationOrchestrator(FakeSchemaClient(), io.StringIO())

    result = await orchestrator.run([make_object("w", kind="Widget")], 1)

    assert result.status is JobStatus.SUCCESS
    assert result.stats.unknown == ("Widget w",)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_lookup_failure_aborts_but_every_object_is_still_processed() -> None:
    failure = SchemaLookupError("connection refused", kind=LookupFailureKind.FETCH_FAILED)
    client = _mixed_client(failures={"Secret": failure})
    out = io.StringIO()
    objects = [
        make_object("a", data={}),
        make_object("s", kind="Secret"),
        make_object("b"),
        make_object("d", kind="Deployment", api_version="apps/v1"),
    ]

    result = await ValidationOrchestrator(client, out).run(objects, 2)

    assert result.status is JobStatus.ABORTED
    assert result.cause is failure
    assert result.describe() == "connection refused"
    assert result.stats.total == len(objects)
    assert result.stats.errors == ("Secret s",)
    assert result.stats.invalid == ("ConfigMap b",)
    assert len(_report_lines(out.getvalue())) == len(objects)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_first_failure_in_completion_order_is_the_cause() -> None:
    first = SchemaLookupError("first", kind=LookupFailureKind.FETCH_FAILED)
    second = SchemaLookupError("second", kind=LookupFailureKind.INVALID_SCHEMA)
    client = FakeSchemaClient(failures={"Secret": first, "Service": second})

    result = await ValidationOrchestrator(client, io.StringIO()).run(
        [make_object("s", kind="Secret"), make_object("v", kind="Service")],
        1,
    )

    assert result.status is JobStatus.ABORTED
    assert result.cause is first
    assert sorted(result.stats.errors) == ["Secret s", "Service v"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_empty_object_set_succeeds_with_empty_summary() -> None:
    out = io.StringIO()

    result = await ValidationOrchestrator(FakeSchemaClient(), out).run([], 5)

    assert result.status is JobStatus.SUCCESS
    assert result.stats == StatsSnapshot()
    assert out.getvalue() == "---\nstats: {}\n"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_summary_is_written_after_every_report_block() -> None:
    out = io.StringIO()
    objects = [make_object(f"cm-{index}") for index in range(6)]

    await ValidationOrchestrator(_mixed_client(), out).run(objects, 3)

    text = out.getvalue()
    summary_at = text.index("---\n")
    assert all(text.index(line) < summary_at for line in _report_lines(text))
    stats = _summary(text)["stats"]
    assert isinstance(stats, dict)
    assert sorted(stats["invalid"]) == [f"ConfigMap cm-{index}" for index in range(6)]


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [1, 2, 3])
async def test_concurrency_limit_caps_in_flight_lookups(limit: int) -> None:
    client = FakeSchemaClient({"ConfigMap": StaticValidator()}, lookup_delay=0.02)
    objects = [make_object(f"cm-{index}") for index in range(8)]

    result = await ValidationOrchestrator(client, io.StringIO()).run(objects, limit)

    assert result.stats.valid_count == len(objects)
    assert 1 <= client.peak_in_flight <= limit
    assert len(client.lookups) == len(objects)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_limit_of_one_reports_in_input_order() -> None:
    out = io.StringIO()
    names = ["c", "a", "b"]

    await ValidationOrchestrator(_mixed_client(), out).run(
        [make_object(name, data={}) for name in names], 1
    )

    assert _report_lines(out.getvalue()) == [f"✔ ConfigMap {name} is valid" for name in names]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_invalid_limit_is_rejected_before_dispatch() -> None:
    client = FakeSchemaClient()
    orchestrator = ValidationOrchestrator(client, io.StringIO())

    with pytest.raises(ValueError, match="concurrency_limit"):
        await orchestrator.run([make_object("a")], 0)

    assert client.lookups == []
    assert orchestrator.phase is RunPhase.IDLE


@pytest.mark.unit
@pytest.mark.asyncio
async def test_phases_move_from_idle_to_reduced_and_allow_rerun() -> None:
    orchestrator = ValidationOrchestrator(
        FakeSchemaClient({"ConfigMap": StaticValidator()}), io.StringIO()
    )
    assert orchestrator.phase is RunPhase.IDLE
    assert orchestrator.stats is None

    first = await orchestrator.run([make_object("a")], 1)
    assert orchestrator.phase is RunPhase.REDUCED
    second = await orchestrator.run([make_object("a"), make_object("b")], 1)

    assert first.stats.valid_count == 1
    assert second.stats.valid_count == 2
    assert orchestrator.stats is not None
    assert orchestrator.stats.snapshot().valid_count == 2


@pytest.mark.unit
def test_reduce_job_result_prefers_error_over_invalid() -> None:
    stats = StatsSnapshot(invalid=("ConfigMap b",), errors=("Secret s",))
    error = SchemaLookupError("boom")

    result = reduce_job_result(stats, error)

    assert result.status is JobStatus.ABORTED
    assert result.cause is error


@pytest.mark.unit
def test_reduce_job_result_counts_invalid_objects() -> None:
    result = reduce_job_result(StatsSnapshot(valid_count=3, invalid=("a", "b")), None)

    assert result.status is JobStatus.PARTIAL_FAILURE
    assert result.invalid_count == 2


@pytest.mark.unit
def test_validate_objects_runs_synchronously_with_colors() -> None:
    out = io.StringIO()

    result = validate_objects(
        [make_object("a")],
        FakeSchemaClient({"ConfigMap": StaticValidator()}),
        parallel=2,
        colors=True,
        out=out,
    )

    assert result.ok
    assert out.getvalue().startswith("\x1b[32m✔ ConfigMap a is valid\x1b[0m\n")


_OBJECT_SPECS = st.lists(
    st.sampled_from(["valid", "invalid", "unknown"]),
    min_size=0,
    max_size=12,
)


@pytest.mark.unit
@settings(max_examples=25, deadline=None)
@given(specs=_OBJECT_SPECS, limit=st.integers(min_value=2, max_value=8))
def test_concurrency_limit_never_changes_the_statistics(specs: list[str], limit: int) -> None:
    objects = []
    for index, spec in enumerate(specs):
        if spec == "valid":
            objects.append(make_object(f"o{index}", data={}))
        elif spec == "invalid":
            objects.append(make_object(f"o{index}"))
        else:
            objects.append(make_object(f"o{index}", kind="Widget"))

    serial = validate_objects(objects, _mixed_client(), parallel=1, out=io.StringIO())
    parallel = validate_objects(objects, _mixed_client(), parallel=limit, out=io.StringIO())

    assert serial.status is parallel.status
    assert serial.stats.valid_count == parallel.stats.valid_count
    assert sorted(serial.stats.invalid) == sorted(parallel.stats.invalid)
    assert sorted(serial.stats.unknown) == sorted(parallel.stats.unknown)
    assert serial.stats.total == len(objects)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_mixed_batch_with_lookup_error_is_aborted_with_full_statistics() -> None:
    client = FakeSchemaClient(
        {"ConfigMap": require_fields("data", "immutable")},
        failures={"Secret": SchemaLookupError("connection reset")},
    )
    objects = [
        make_object("a", data={}, immutable=True),
        make_object("b"),
        make_object("c", kind="Widget"),
        make_object("d", kind="Secret"),
    ]

    result = await ValidationOrchestrator(client, io.StringIO()).run(objects, 4)

    assert result.status is JobStatus.ABORTED
    assert result.stats == StatsSnapshot(
        valid_count=1,
        unknown=("Widget c",),
        invalid=("ConfigMap b",),
        errors=("Secret d",),
    )


class _UnnameableClient(FakeSchemaClient):
    """Client that cannot produce a display name for one object."""

    def __init__(self, broken: str) -> None:
        super().__init__({"ConfigMap": StaticValidator()})
        self._broken = broken

    def display_name(self, obj: CandidateObject) -> str:
        if obj.name == self._broken:
            raise ValueError(f"cannot parse apiVersion of {obj.name}")
        return super().display_name(obj)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_object_that_cannot_be_resolved_is_reported_as_an_error() -> None:
    out = io.StringIO()
    objects = [make_object("a"), make_object("broken"), make_object("c")]

    result = await ValidationOrchestrator(_UnnameableClient("broken"), out).run(objects, 2)

    assert result.status is JobStatus.ABORTED
    assert isinstance(result.cause, SchemaLookupError)
    assert result.cause.escalates
    assert "cannot parse apiVersion of broken" in result.describe()
    assert isinstance(result.cause.__cause__, ValueError)
    assert result.stats.total == len(objects)
    assert result.stats.errors == ("ConfigMap broken",)
    assert result.stats.valid_count == 2
    assert len(_report_lines(out.getvalue())) == len(objects)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_reduced_event_reports_peak_concurrency() -> None:
    client = FakeSchemaClient({"ConfigMap": StaticValidator()}, lookup_delay=0.02)
    objects = [make_object(f"cm-{index}") for index in range(6)]

    with capture_logs() as logs:
        await ValidationOrchestrator(client, io.StringIO()).run(objects, 3)

    [reduced] = [entry for entry in logs if entry["event"] == "validation_run_reduced"]
    assert 1 <= reduced["peak_concurrency"] <= 3
    assert reduced["peak_concurrency"] >= client.peak_in_flight
