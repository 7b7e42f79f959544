"""Output surface for validation reports.

File: src/manifest_validator/ui/render.py

Purpose
- Decide whether report lines are colored (``--no-color``, ``NO_COLOR``, config,
  and whether the stream is a terminal).
- Provide the ANSI palette used by the outcome reporter.
- Serialize concurrent writers so each report block lands as one unit.

Non-functional requirements
- No dependencies beyond the standard library.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from manifest_validator.constants import ESC_DIM, ESC_GREEN, ESC_RED, ESC_RESET

if TYPE_CHECKING:
    from typing import TextIO


def color_allowed(
    stream: TextIO,
    *,
    mode: str = "auto",
    no_color_flag: bool = False,
    environ: Mapping[str, str] | None = None,
) -> bool:
    """Check whether color output should be attempted for ``stream``."""

    if no_color_flag or mode == "never":
        return False
    if mode == "always":
        return True
    env = os.environ if environ is None else environ
    if env.get("NO_COLOR", ""):
        return False
    isatty = getattr(stream, "isatty", None)
    return callable(isatty) and bool(isatty())


@dataclass(frozen=True, slots=True)
class Palette:
    """Escape sequences wrapped around report blocks; empty strings when plain."""

    green: str = ""
    red: str = ""
    dim: str = ""
    reset: str = ""

    @classmethod
    def plain(cls) -> Palette:
        return cls()

    @classmethod
    def ansi(cls) -> Palette:
        return cls(green=ESC_GREEN, red=ESC_RED, dim=ESC_DIM, reset=ESC_RESET)

    @classmethod
    def for_colors(cls, colors: bool) -> Palette:
        return cls.ansi() if colors else cls.plain()


class SynchronizedWriter:
    """Line writer whose writes never interleave across threads."""

    __slots__ = ("_lock", "_stream")

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream
        self._lock = threading.Lock()

    @property
    def stream(self) -> TextIO:
        return self._stream

    def write_line(self, text: str) -> None:
        """Write ``text`` (which may span lines) plus a newline as one unit."""

        payload = text if text.endswith("\n") else text + "\n"
        with self._lock:
            self._stream.write(payload)
            self._stream.flush()


__all__ = ["Palette", "SynchronizedWriter", "color_allowed"]
