"""Component and kind filters applied to an environment's objects before validation."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from manifest_validator.domain.models import CandidateObject


def _names(values: Iterable[str] | None) -> frozenset[str]:
    # Each flag value may itself be a comma-separated list.
    names: set[str] = set()
    for value in values or ():
        names.update(part.strip() for part in value.split(",") if part.strip())
    return frozenset(names)


@dataclass(frozen=True, slots=True)
class ObjectFilter:
    """Include or exclude objects by component name and kind.

    A dimension may be filtered by inclusion or by exclusion, not both. Kinds
    match case-insensitively; components match exactly. An object without a
    component never passes a component inclusion list.
    """

    include_components: frozenset[str] = frozenset()
    exclude_components: frozenset[str] = frozenset()
    include_kinds: frozenset[str] = frozenset()
    exclude_kinds: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if self.include_components and self.exclude_components:
            raise ValueError("--include-components and --exclude-components are mutually exclusive")
        if self.include_kinds and self.exclude_kinds:
            raise ValueError("--include-kinds and --exclude-kinds are mutually exclusive")
        object.__setattr__(self, "include_kinds", _lowered(self.include_kinds))
        object.__setattr__(self, "exclude_kinds", _lowered(self.exclude_kinds))

    @classmethod
    def from_flags(
        cls,
        *,
        include_components: Iterable[str] | None = None,
        exclude_components: Iterable[str] | None = None,
        include_kinds: Iterable[str] | None = None,
        exclude_kinds: Iterable[str] | None = None,
    ) -> ObjectFilter:
        return cls(
            include_components=_names(include_components),
            exclude_components=_names(exclude_components),
            include_kinds=_names(include_kinds),
            exclude_kinds=_names(exclude_kinds),
        )

    @property
    def active(self) -> bool:
        return bool(
            self.include_components
            or self.exclude_components
            or self.include_kinds
            or self.exclude_kinds
        )

    def matches(self, obj: CandidateObject) -> bool:
        if self.include_components and obj.component not in self.include_components:
            return False
        if self.exclude_components and obj.component in self.exclude_components:
            return False
        kind = obj.kind.lower()
        if self.include_kinds and kind not in self.include_kinds:
            return False
        return kind not in self.exclude_kinds

    def apply(self, objects: Sequence[CandidateObject]) -> list[CandidateObject]:
        """Return the matching objects in their original order."""

        return [obj for obj in objects if self.matches(obj)]


def _lowered(names: frozenset[str]) -> frozenset[str]:
    return frozenset(name.lower() for name in names)


__all__ = ["ObjectFilter"]
