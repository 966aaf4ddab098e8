"""Message bubble widget for transcript entries."""

from __future__ import annotations

from typing import Any

from rich.markdown import Markdown
from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widget import Widget
from textual.widgets import Static

from ..renderer import RenderedBlock, SegmentKind
from .code_block import CodeBlock
from .math_block import MathBlock


class MessageBubble(Vertical):
    """Render one transcript entry: a header line plus its rendered segments."""

    DEFAULT_CSS = """
    MessageBubble {
        height: auto;
    }
    MessageBubble > #header-block {
        padding: 0;
    }
    MessageBubble > .prose-segment {
        height: auto;
        padding: 0;
    }
    MessageBubble.placeholder {
        color: $text-muted;
        text-style: italic;
    }
    """

    def __init__(
        self,
        block: RenderedBlock,
        role: str,
        timestamp: str = "",
        code_theme: str = "monokai",
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.block = block
        self.role = role
        self.timestamp = timestamp
        self.code_theme = code_theme
        self.add_class(f"role-{role}")
        # Segment index -> widget, so typesetting can find math widgets later.
        self._segment_widgets: dict[int, Widget] = {}

    @property
    def role_prefix(self) -> str:
        """Return a human-friendly role label."""
        return "You" if self.role == "user" else "Assistant"

    @property
    def message_content(self) -> str:
        return self.block.text

    def _compose_header(self) -> str:
        if self.timestamp:
            return f"**{self.role_prefix}**  _{self.timestamp}_"
        return f"**{self.role_prefix}**"

    def _segment_widget(self, index: int) -> Widget:
        segment = self.block.segments[index]
        if segment.kind is SegmentKind.CODE:
            return CodeBlock(
                code=segment.content,
                language=segment.language or "",
                highlight=segment.highlight,
                theme=self.code_theme,
            )
        if segment.kind is SegmentKind.MATH:
            return MathBlock(segment.content, display=segment.display)
        renderable = (
            Markdown(segment.content.strip()) if segment.markdown else Text(segment.content)
        )
        return Static(renderable, classes="prose-segment")

    def compose(self) -> ComposeResult:
        yield Static(Markdown(self._compose_header()), id="header-block")
        for index in range(len(self.block.segments)):
            widget = self._segment_widget(index)
            self._segment_widgets[index] = widget
            yield widget

    def math_widgets(self) -> list[MathBlock]:
        return [w for w in self._segment_widgets.values() if isinstance(w, MathBlock)]

    def apply_typesetting(self, typeset: dict[int, str]) -> None:
        """Swap LaTeX source for typeset text in the matching math widgets."""
        for index, text in typeset.items():
            widget = self._segment_widgets.get(index)
            if isinstance(widget, MathBlock):
                widget.set_typeset(text)

    def on_code_block_copy_requested(self, event: CodeBlock.CopyRequested) -> None:
        """Forward copy request to the app clipboard."""
        event.stop()
        self.app.copy_to_clipboard(event.code)
        self.app.sub_title = "Code copied to clipboard."
