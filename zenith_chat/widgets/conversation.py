"""Scrollable transcript view hosting message bubbles."""

from __future__ import annotations

import itertools
import logging
from typing import Any

from textual.containers import VerticalScroll

from ..renderer import RenderedBlock, TranscriptRenderer
from .message import MessageBubble

LOGGER = logging.getLogger(__name__)

PLACEHOLDER_ID = "pending-placeholder"


class ConversationView(VerticalScroll):
    """Append-only transcript surface.

    Entries are only ever added at the bottom. The pending placeholder is the
    one entry that gets removed again, by its id. ``clear()`` wipes everything
    and restores the welcome entry when one is configured.
    """

    def __init__(
        self,
        welcome_message: str = "",
        thinking_text: str = "Thinking...",
        code_theme: str = "monokai",
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.welcome_message = welcome_message
        self.thinking_text = thinking_text
        self.code_theme = code_theme
        self._plain = TranscriptRenderer().render_plain
        self._entry_ids = itertools.count(1)

    async def on_mount(self) -> None:
        await self._add_welcome()

    async def _add_welcome(self) -> None:
        if self.welcome_message:
            await self._append(
                self._plain(self.welcome_message), role="assistant", classes="welcome"
            )

    async def _append(
        self,
        block: RenderedBlock,
        role: str,
        timestamp: str = "",
        entry_id: str | None = None,
        classes: str = "",
    ) -> MessageBubble:
        bubble = MessageBubble(
            block=block,
            role=role,
            timestamp=timestamp,
            code_theme=self.code_theme,
            id=entry_id or f"entry-{next(self._entry_ids)}",
            classes=f"message-{role} {classes}".strip(),
        )
        await self.mount(bubble)
        self.scroll_end(animate=False)
        return bubble

    async def add_user_entry(self, text: str, timestamp: str = "") -> MessageBubble:
        """Show user text literally, without any markup interpretation."""
        return await self._append(self._plain(text), role="user", timestamp=timestamp)

    async def add_assistant_entry(
        self, block: RenderedBlock, timestamp: str = ""
    ) -> MessageBubble:
        return await self._append(block, role="assistant", timestamp=timestamp)

    async def show_placeholder(self) -> str:
        """Show the "awaiting response" entry and return its id."""
        if self.query(f"#{PLACEHOLDER_ID}"):
            return PLACEHOLDER_ID
        await self._append(
            self._plain(self.thinking_text),
            role="assistant",
            entry_id=PLACEHOLDER_ID,
            classes="placeholder",
        )
        return PLACEHOLDER_ID

    async def remove_entry(self, entry_id: str) -> None:
        for widget in self.query(f"#{entry_id}"):
            await widget.remove()

    async def apply_typesetting(self, entry: MessageBubble, typeset: dict[int, str]) -> None:
        entry.apply_typesetting(typeset)

    async def clear(self) -> None:
        await self.remove_children()
        await self._add_welcome()
        LOGGER.debug("transcript.cleared", extra={"event": "transcript.cleared"})

    def bubbles(self) -> list[MessageBubble]:
        return [child for child in self.children if isinstance(child, MessageBubble)]
