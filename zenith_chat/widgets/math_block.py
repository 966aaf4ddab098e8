"""Math segment widget: shows LaTeX source until it has been typeset."""

from __future__ import annotations

from typing import Any

from rich.text import Text
from textual.widgets import Static


class MathBlock(Static):
    """Display one inline or display math expression."""

    DEFAULT_CSS = """
    MathBlock {
        height: auto;
        color: $accent;
    }
    MathBlock.display-math {
        margin: 1 0;
        padding: 0 2;
        text-align: center;
    }
    """

    def __init__(self, latex: str, display: bool = False, **kwargs: Any) -> None:
        super().__init__(Text(latex, style="italic"), **kwargs)
        self.latex = latex
        self.display_math = display
        self.typeset_text: str | None = None
        if display:
            self.add_class("display-math")

    def set_typeset(self, text: str) -> None:
        """Replace the LaTeX source with its typeset form."""
        self.typeset_text = text
        self.update(Text(text))
