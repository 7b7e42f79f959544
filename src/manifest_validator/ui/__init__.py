"""UI package exports for rendering surfaces.

The CLI router lives in ``manifest_validator.ui.cli`` and is imported lazily by
``manifest_validator.main`` because it depends on the validation package.
"""

from manifest_validator.ui.render import Palette, SynchronizedWriter, color_allowed

__all__ = ["Palette", "SynchronizedWriter", "color_allowed"]
