"""Thread-safe aggregation of per-object validation outcomes."""

from __future__ import annotations

import threading

from manifest_validator.domain.models import Outcome, OutcomeKind, StatsSnapshot


class ValidationStats:
    """Outcome recorder shared by concurrent validators.

    Every mutation goes through one of the ``record_*`` methods, which share a
    single lock; buckets keep the order in which outcomes were recorded.
    """

    __slots__ = ("_errors", "_invalid", "_lock", "_unknown", "_valid_count")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._valid_count = 0
        self._unknown: list[str] = []
        self._invalid: list[str] = []
        self._errors: list[str] = []

    def record_valid(self) -> None:
        with self._lock:
            self._valid_count += 1

    def record_unknown(self, name: str) -> None:
        with self._lock:
            self._unknown.append(name)

    def record_invalid(self, name: str) -> None:
        with self._lock:
            self._invalid.append(name)

    def record_error(self, name: str) -> None:
        with self._lock:
            self._errors.append(name)

    def record(self, name: str, outcome: Outcome) -> None:
        """Route ``outcome`` to its bucket."""

        if outcome.kind is OutcomeKind.VALID:
            self.record_valid()
        elif outcome.kind is OutcomeKind.UNKNOWN:
            self.record_unknown(name)
        elif outcome.kind is OutcomeKind.INVALID:
            self.record_invalid(name)
        else:
            self.record_error(name)

    def snapshot(self) -> StatsSnapshot:
        with self._lock:
            return StatsSnapshot(
                valid_count=self._valid_count,
                unknown=tuple(self._unknown),
                invalid=tuple(self._invalid),
                errors=tuple(self._errors),
            )


__all__ = ["ValidationStats"]
