"""Human-readable rendering of validation outcomes and run statistics."""

from __future__ import annotations

import yaml

from manifest_validator.constants import GLYPH_CHECK, GLYPH_CROSS, GLYPH_QUESTION
from manifest_validator.domain.models import Outcome, OutcomeKind, StatsSnapshot
from manifest_validator.ui.render import Palette

_REASON_SEPARATOR = "\n\t- "


def format_outcome(name: str, outcome: Outcome, palette: Palette | None = None) -> str:
    """Render one object's outcome as a (possibly multi-line) report block.

    The whole block is wrapped in one color and reset once at its end. Invalid
    outcomes list every violation on its own tab-indented line.
    """

    colors = palette or Palette.plain()
    if outcome.kind is OutcomeKind.VALID:
        return f"{colors.green}{GLYPH_CHECK} {name} is valid{colors.reset}"
    if outcome.kind is OutcomeKind.UNKNOWN:
        return (
            f"{colors.dim}{GLYPH_QUESTION} {name}: no schema found, cannot validate"
            f"{colors.reset}"
        )
    if outcome.kind is OutcomeKind.INVALID:
        reasons = _REASON_SEPARATOR.join(outcome.reasons)
        return (
            f"{colors.red}{GLYPH_CROSS} {name} is invalid{_REASON_SEPARATOR}{reasons}"
            f"{colors.reset}"
        )
    return f"{colors.red}{GLYPH_CROSS} {name}: schema fetch error {outcome.message}{colors.reset}"


def format_summary(stats: StatsSnapshot) -> str:
    """Render the run summary as a YAML document; empty buckets are omitted."""

    body = yaml.safe_dump(
        {"stats": stats.to_dict()},
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )
    return f"---\n{body.rstrip()}"


__all__ = ["format_outcome", "format_summary"]
