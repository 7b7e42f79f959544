"""Dataclass domain models for candidate objects, outcomes and job results."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, NoReturn

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]

_CORE_GROUP_LABEL = "core"


class OutcomeKind(StrEnum):
    VALID = "valid"
    INVALID = "invalid"
    UNKNOWN = "unknown"
    ERROR = "error"


class JobStatus(StrEnum):
    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"
    ABORTED = "aborted"


def _fail(path: str, message: str) -> NoReturn:
    raise ValueError(f"{path}: {message}")


def _as_str(value: object, path: str) -> str:
    if not isinstance(value, str):
        _fail(path, f"expected string, got {type(value).__name__}")
    normalized = value.strip()
    if not normalized:
        _fail(path, "must not be empty")
    return normalized


def _as_optional_str(value: object, path: str) -> str | None:
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return _as_str(value, path)


@dataclass(frozen=True, slots=True)
class TypeDiscriminator:
    """Structural type identity (group/version/kind) used to select a validator."""

    group: str
    version: str
    kind: str

    def __post_init__(self) -> None:
        if not isinstance(self.group, str):
            _fail("TypeDiscriminator.group", f"expected string, got {type(self.group).__name__}")
        _as_str(self.version, "TypeDiscriminator.version")
        _as_str(self.kind, "TypeDiscriminator.kind")

    @classmethod
    def from_api_version(cls, api_version: str, kind: str) -> TypeDiscriminator:
        """Split ``apps/v1`` into group ``apps`` and version ``v1``; ``v1`` is the core group."""

        text = _as_str(api_version, "apiVersion")
        group, _, version = text.rpartition("/")
        return cls(group=group, version=version, kind=_as_str(kind, "kind"))

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version

    @property
    def group_label(self) -> str:
        return self.group or _CORE_GROUP_LABEL

    def __str__(self) -> str:
        return f"{self.api_version}, Kind={self.kind}"


@dataclass(frozen=True, slots=True)
class CandidateObject:
    """One configuration unit submitted for validation. Read-only to the validator."""

    api_version: str
    kind: str
    name: str
    namespace: str | None = None
    component: str | None = None
    content: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self) -> None:
        _as_str(self.api_version, "CandidateObject.api_version")
        _as_str(self.kind, "CandidateObject.kind")
        try:
            TypeDiscriminator.from_api_version(self.api_version, self.kind)
        except ValueError as exc:
            _fail("CandidateObject.api_version", f"cannot parse {self.api_version!r}: {exc}")
        _as_str(self.name, "CandidateObject.name")
        _as_optional_str(self.namespace, "CandidateObject.namespace")
        _as_optional_str(self.component, "CandidateObject.component")
        if not isinstance(self.content, Mapping):
            _fail("CandidateObject.content", f"expected object, got {type(self.content).__name__}")

    @classmethod
    def from_manifest(
        cls,
        manifest: Mapping[str, Any],
        *,
        component: str | None = None,
    ) -> CandidateObject:
        """Build a candidate from a decoded manifest mapping."""

        if not isinstance(manifest, Mapping):
            _fail("manifest", f"expected object, got {type(manifest).__name__}")
        metadata = manifest.get("metadata")
        if not isinstance(metadata, Mapping):
            _fail("manifest.metadata", "missing or not an object")
        return cls(
            api_version=_as_str(manifest.get("apiVersion"), "manifest.apiVersion"),
            kind=_as_str(manifest.get("kind"), "manifest.kind"),
            name=_as_str(metadata.get("name"), "manifest.metadata.name"),
            namespace=_as_optional_str(metadata.get("namespace"), "manifest.metadata.namespace"),
            component=component,
            content=manifest,
        )

    @property
    def type_discriminator(self) -> TypeDiscriminator:
        return TypeDiscriminator.from_api_version(self.api_version, self.kind)


@dataclass(frozen=True, slots=True)
class Outcome:
    """Per-object classification. Invalid outcomes carry reasons, errors a message."""

    kind: OutcomeKind
    reasons: tuple[str, ...] = ()
    message: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.kind, OutcomeKind):
            object.__setattr__(self, "kind", OutcomeKind(self.kind))
        object.__setattr__(self, "reasons", tuple(self.reasons))
        if self.kind is OutcomeKind.INVALID and not self.reasons:
            _fail("Outcome.reasons", "invalid outcome requires at least one reason")
        if self.kind is not OutcomeKind.INVALID and self.reasons:
            _fail("Outcome.reasons", f"{self.kind} outcome must not carry reasons")
        if self.kind is OutcomeKind.ERROR:
            if self.message is None:
                _fail("Outcome.message", "error outcome requires a message")
        elif self.message is not None:
            _fail("Outcome.message", f"{self.kind} outcome must not carry a message")

    @classmethod
    def valid(cls) -> Outcome:
        return cls(OutcomeKind.VALID)

    @classmethod
    def invalid(cls, reasons: Sequence[str]) -> Outcome:
        return cls(OutcomeKind.INVALID, reasons=tuple(str(reason) for reason in reasons))

    @classmethod
    def unknown(cls) -> Outcome:
        return cls(OutcomeKind.UNKNOWN)

    @classmethod
    def error(cls, message: str) -> Outcome:
        return cls(OutcomeKind.ERROR, message=str(message))


@dataclass(frozen=True, slots=True)
class StatsSnapshot:
    """Immutable view of validation statistics taken after all writers finished."""

    valid_count: int = 0
    unknown: tuple[str, ...] = ()
    invalid: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()

    @property
    def total(self) -> int:
        return self.valid_count + len(self.unknown) + len(self.invalid) + len(self.errors)

    def to_dict(self) -> dict[str, JSONValue]:
        """Serialize, omitting empty buckets."""

        payload: dict[str, JSONValue] = {}
        if self.valid_count:
            payload["valid"] = self.valid_count
        if self.unknown:
            payload["unknown"] = list(self.unknown)
        if self.invalid:
            payload["invalid"] = list(self.invalid)
        if self.errors:
            payload["errors"] = list(self.errors)
        return payload


@dataclass(frozen=True, slots=True)
class JobResult:
    """Run-level verdict reduced from the final statistics and any propagated error."""

    status: JobStatus
    stats: StatsSnapshot = field(default_factory=StatsSnapshot)
    invalid_count: int = 0
    cause: BaseException | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.status is JobStatus.ABORTED and self.cause is None:
            _fail("JobResult.cause", "aborted result requires a cause")
        if self.status is JobStatus.PARTIAL_FAILURE and self.invalid_count < 1:
            _fail("JobResult.invalid_count", "partial failure requires invalid objects")

    @property
    def ok(self) -> bool:
        return self.status is JobStatus.SUCCESS

    def describe(self) -> str:
        if self.status is JobStatus.ABORTED:
            return str(self.cause) or type(self.cause).__name__
        if self.status is JobStatus.PARTIAL_FAILURE:
            return f"{self.invalid_count} invalid objects found"
        return "all objects valid"


__all__ = [
    "CandidateObject",
    "JSONScalar",
    "JSONValue",
    "JobResult",
    "JobStatus",
    "Outcome",
    "OutcomeKind",
    "StatsSnapshot",
    "TypeDiscriminator",
]
