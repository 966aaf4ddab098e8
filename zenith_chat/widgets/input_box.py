"""Input row containing the message field, send button, and clear button."""

from __future__ import annotations

from typing import Any

from textual.containers import Horizontal
from textual.message import Message
from textual.widgets import Button, Input


class InputBox(Horizontal):
    """Message entry surface the lifecycle controller locks while sending.

    Setting ``disabled`` on the box disables the field and both buttons.
    """

    DEFAULT_CSS = """
    InputBox {
        height: auto;
    }
    InputBox > #message_input {
        width: 1fr;
    }
    InputBox > Button {
        width: auto;
        min-width: 10;
        margin-left: 1;
    }
    """

    class SendRequested(Message):
        """Posted when the user submits the field or clicks Send."""

        def __init__(self, text: str) -> None:
            super().__init__()
            self.text = text

    class ResetRequested(Message):
        """Posted when the user clicks Clear."""

    def __init__(self, max_length: int = 500, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.max_length = max_length

    def compose(self):  # type: ignore[override]
        yield Input(
            placeholder="Type your message...",
            max_length=self.max_length,
            id="message_input",
        )
        yield Button("Send", id="send_button", variant="success")
        yield Button("Clear", id="clear_button", variant="default")

    @property
    def _input(self) -> Input:
        return self.query_one("#message_input", Input)

    @property
    def value(self) -> str:
        return self._input.value

    @value.setter
    def value(self, text: str) -> None:
        self._input.value = text

    def focus(self, scroll_visible: bool = True) -> InputBox:
        self._input.focus(scroll_visible)
        return self

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "message_input":
            event.stop()
            self.post_message(self.SendRequested(event.value))

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send_button":
            event.stop()
            self.post_message(self.SendRequested(self.value))
        elif event.button.id == "clear_button":
            event.stop()
            self.post_message(self.ResetRequested())
