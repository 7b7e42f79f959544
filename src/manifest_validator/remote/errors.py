"""Kind-tagged schema lookup failures.

Classification never compares error identity: callers branch on
``SchemaLookupError.kind`` and its ``escalates`` flag, so new failure kinds only
need a new ``LookupFailureKind`` member.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from manifest_validator.domain.models import TypeDiscriminator


class LookupFailureKind(StrEnum):
    NOT_FOUND = "not_found"
    FETCH_FAILED = "fetch_failed"
    INVALID_SCHEMA = "invalid_schema"
    VALIDATOR_FAILED = "validator_failed"

    @property
    def escalates(self) -> bool:
        """Whether this failure aborts the whole validation job."""

        return self is not LookupFailureKind.NOT_FOUND


class SchemaLookupError(RuntimeError):
    """Schema resolution or validator execution failed for one type."""

    def __init__(
        self,
        message: str,
        *,
        kind: LookupFailureKind = LookupFailureKind.FETCH_FAILED,
        type_discriminator: TypeDiscriminator | None = None,
    ) -> None:
        if not isinstance(kind, LookupFailureKind):
            kind = LookupFailureKind(kind)
        self.kind = kind
        self.type_discriminator = type_discriminator
        self.message = str(message).strip() or kind.value
        super().__init__(self.message)

    @property
    def escalates(self) -> bool:
        return self.kind.escalates

    @classmethod
    def wrap(
        cls,
        exc: BaseException,
        *,
        kind: LookupFailureKind = LookupFailureKind.FETCH_FAILED,
        type_discriminator: TypeDiscriminator | None = None,
    ) -> SchemaLookupError:
        """Normalize an arbitrary exception into a tagged lookup failure."""

        if isinstance(exc, SchemaLookupError):
            return exc
        detail = str(exc).strip() or type(exc).__name__
        wrapped = cls(detail, kind=kind, type_discriminator=type_discriminator)
        wrapped.__cause__ = exc
        return wrapped


class SchemaNotFoundError(SchemaLookupError):
    """No schema is registered for the requested type."""

    def __init__(
        self,
        message: str = "no schema found",
        *,
        type_discriminator: TypeDiscriminator | None = None,
    ) -> None:
        super().__init__(
            message,
            kind=LookupFailureKind.NOT_FOUND,
            type_discriminator=type_discriminator,
        )


__all__ = [
    "LookupFailureKind",
    "SchemaLookupError",
    "SchemaNotFoundError",
]
