"""Math typesetting backends that turn LaTeX into terminal-friendly text."""

from __future__ import annotations

import logging
from typing import Protocol

from pylatexenc.latex2text import LatexNodes2Text

LOGGER = logging.getLogger(__name__)


class MathTypesetter(Protocol):
    """Anything that can turn a LaTeX expression into display text."""

    def typeset(self, latex: str, display: bool = False) -> str: ...


class UnicodeMathTypesetter:
    """Convert LaTeX to Unicode text with pylatexenc.

    Expressions pylatexenc cannot parse are returned unchanged so the reader
    still sees the source.
    """

    def __init__(self) -> None:
        self._converter = LatexNodes2Text(
            math_mode="text",
            strict_latex_spaces=False,
        )

    def typeset(self, latex: str, display: bool = False) -> str:
        source = latex.strip()
        if not source:
            return ""
        try:
            converted = self._converter.latex_to_text(source).strip()
        except Exception as exc:  # noqa: BLE001 - third-party parser errors vary.
            LOGGER.debug(
                "render.math.fallback",
                extra={"event": "render.math.fallback", "reason": str(exc)},
            )
            return source
        return converted or source
