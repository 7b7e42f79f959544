"""Per-object validation: resolve schema, validate, classify, record, report.

Classification policy:

- no schema registered for the type -> ``unknown``; recorded, never raised
- schema lookup fails for any other reason -> ``error``; recorded, then the
  tagged ``SchemaLookupError`` propagates so the job aborts
- validation yields no violations -> ``valid``
- validation yields violations -> ``invalid``; recorded only, surfaced through
  the aggregate count

Blocking schema client calls run in worker threads so concurrent validations
overlap on network waits.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog

from manifest_validator.domain.models import CandidateObject, Outcome
from manifest_validator.observability import correlation_scope
from manifest_validator.remote.errors import LookupFailureKind, SchemaLookupError
from manifest_validator.ui.render import Palette
from manifest_validator.validation.reporter import format_outcome

if TYPE_CHECKING:
    from manifest_validator.remote import SchemaClient, Validator
    from manifest_validator.ui.render import SynchronizedWriter
    from manifest_validator.validation.stats import ValidationStats


class ObjectValidator:
    """Validate one candidate object at a time against a shared stats/writer pair."""

    def __init__(
        self,
        client: SchemaClient,
        stats: ValidationStats,
        writer: SynchronizedWriter,
        *,
        palette: Palette | None = None,
        logger: Any | None = None,
    ) -> None:
        self._client = client
        self._stats = stats
        self._writer = writer
        self._palette = palette or Palette.plain()
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    async def validate(self, obj: CandidateObject) -> Outcome:
        """Classify ``obj``, writing one report block and one stats contribution.

        Raises ``SchemaLookupError`` for escalating lookup failures, after the
        failure has been reported and recorded. An object whose name or type
        cannot be resolved is reported as an ``error`` the same way.
        """

        fallback = f"{obj.kind} {obj.name}"
        try:
            name = self._client.display_name(obj).strip() or fallback
            type_discriminator = obj.type_discriminator
        except Exception as exc:  # noqa: BLE001 - reported like any escalating lookup failure.
            detail = str(exc).strip() or type(exc).__name__
            failure = SchemaLookupError(f"cannot resolve object type: {detail}")
            failure.__cause__ = exc
            with correlation_scope(object=fallback):
                return self._lookup_failed(fallback, failure)

        with correlation_scope(object=name):
            self._logger.debug(
                "object_validation_started",
                object_name=name,
                type_discriminator=str(type_discriminator),
            )

            try:
                validator = await asyncio.to_thread(
                    self._client.validator_for, type_discriminator
                )
            except Exception as exc:  # noqa: BLE001 - normalized into a tagged lookup failure.
                failure = SchemaLookupError.wrap(exc, type_discriminator=type_discriminator)
                return self._lookup_failed(name, failure)

            return await self._run_validator(name, obj, validator)

    async def _run_validator(
        self,
        name: str,
        obj: CandidateObject,
        validator: Validator,
    ) -> Outcome:
        try:
            violations = await asyncio.to_thread(validator.validate, obj.content)
        except Exception as exc:  # noqa: BLE001 - normalized into a tagged lookup failure.
            detail = str(exc).strip() or type(exc).__name__
            failure = SchemaLookupError(
                f"validator failed: {detail}",
                kind=LookupFailureKind.VALIDATOR_FAILED,
                type_discriminator=obj.type_discriminator,
            )
            self._logger.error(
                "object_validator_failed",
                object_name=name,
                detail=detail,
            )
            self._publish(name, Outcome.error(failure.message))
            raise failure from exc

        outcome = Outcome.invalid(list(violations)) if violations else Outcome.valid()
        self._publish(name, outcome)
        return outcome

    def _lookup_failed(self, name: str, failure: SchemaLookupError) -> Outcome:
        if not failure.escalates:
            outcome = Outcome.unknown()
            self._publish(name, outcome)
            return outcome

        self._logger.error(
            "schema_lookup_failed",
            object_name=name,
            failure_kind=failure.kind.value,
            detail=failure.message,
        )
        self._publish(name, Outcome.error(failure.message))
        raise failure

    def _publish(self, name: str, outcome: Outcome) -> None:
        self._writer.write_line(format_outcome(name, outcome, self._palette))
        self._stats.record(name, outcome)
        self._logger.info(
            "object_validation_classified",
            object_name=name,
            outcome=outcome.kind.value,
            violations=len(outcome.reasons),
        )


__all__ = ["ObjectValidator"]
