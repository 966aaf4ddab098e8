"""Main Textual application for chatting with a remote completion endpoint."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.widgets import Footer, Header

from .client import CompletionClient
from .config import load_config
from .controller import ExchangeOutcome, MessageLifecycleController
from .conversation import ConversationState
from .logging_utils import configure_logging
from .renderer import TranscriptRenderer
from .typesetting import MathTypesetter, UnicodeMathTypesetter
from .widgets.conversation import ConversationView
from .widgets.input_box import InputBox

LOGGER = logging.getLogger(__name__)

RESET_COMMAND = "/clear"


class ZenithChatApp(App[None]):
    """Scrolling chat transcript backed by a remote completion endpoint."""

    CSS = """
    Screen {
        layout: vertical;
        background: $background;
    }

    #app-root {
        layout: vertical;
        width: 100%;
        height: 1fr;
    }

    #conversation {
        height: 1fr;
        padding: 1;
    }

    InputBox {
        padding: 0 1 1 1;
        border-top: solid $panel;
        background: $surface;
    }

    MessageBubble {
        width: 85%;
        margin: 1 0;
        padding: 1 2;
        border: round $panel;
    }

    .message-user {
        align-horizontal: right;
        background: $primary;
    }

    .message-assistant {
        align-horizontal: left;
        background: $surface;
    }
    """

    DEFAULT_ACTION_DESCRIPTIONS: dict[str, str] = {
        "send_message": "Send",
        "new_conversation": "New Chat",
        "quit": "Quit",
        "scroll_up": "Scroll Up",
        "scroll_down": "Scroll Down",
    }

    def __init__(
        self,
        config_path: Path | None = None,
        overrides: dict[str, Any] | None = None,
        client: CompletionClient | None = None,
    ) -> None:
        self.config = load_config(config_path, overrides=overrides)
        configure_logging(self.config["logging"])
        LOGGER.info(
            "app.python",
            extra={
                "event": "app.python",
                "executable": sys.executable,
                "version": sys.version.split()[0],
            },
        )
        self.window_title = str(self.config["app"]["title"])

        endpoint_cfg = self.config["endpoint"]
        self.client = client or CompletionClient(
            url=str(endpoint_cfg["url"]),
            model=str(endpoint_cfg["model"]),
            timeout=float(endpoint_cfg["timeout_seconds"]),
            headers=dict(endpoint_cfg["headers"]),
        )
        self.conversation = ConversationState()
        self.renderer = TranscriptRenderer()
        self.typesetter: MathTypesetter | None = (
            UnicodeMathTypesetter() if self.config["render"]["typeset_math"] else None
        )
        self.controller: MessageLifecycleController | None = None
        self._binding_specs = self._binding_specs_from_config(self.config)
        super().__init__()

    @classmethod
    def _binding_specs_from_config(
        cls, config: dict[str, dict[str, Any]]
    ) -> list[Binding]:
        keybinds = config.get("keybinds", {})
        bindings: list[Binding] = []
        for action_name, description in cls.DEFAULT_ACTION_DESCRIPTIONS.items():
            binding_key = keybinds.get(action_name)
            if isinstance(binding_key, str) and binding_key.strip():
                bindings.append(
                    Binding(
                        key=binding_key.strip(),
                        action=action_name,
                        description=description,
                        show=True,
                    )
                )
        return bindings

    def compose(self) -> ComposeResult:
        ui_cfg = self.config["ui"]
        yield Header()
        with Container(id="app-root"):
            yield ConversationView(
                welcome_message=str(ui_cfg["welcome_message"]),
                thinking_text=str(ui_cfg["thinking_text"]),
                code_theme=str(ui_cfg["code_theme"]),
                id="conversation",
            )
            yield InputBox(max_length=int(ui_cfg["max_input_chars"]), id="input_box")
        yield Footer()

    async def on_mount(self) -> None:
        self.title = self.window_title
        self.sub_title = "Ready"
        for binding in self._binding_specs:
            self.bind(
                binding.key,
                binding.action,
                description=binding.description,
                show=binding.show,
            )
        input_box = self.query_one(InputBox)
        self.controller = MessageLifecycleController(
            conversation=self.conversation,
            client=self.client,
            view=self.query_one(ConversationView),
            input_surface=input_box,
            renderer=self.renderer,
            typesetter=self.typesetter,
            render_markdown=bool(self.config["render"]["markdown"]),
            show_timestamps=bool(self.config["ui"]["show_timestamps"]),
        )
        input_box.focus()

    async def on_unmount(self) -> None:
        await self.client.aclose()

    async def send_user_message(self, text: str) -> None:
        """Route one submission through the lifecycle controller."""
        if self.controller is None:
            return
        if text.strip() == RESET_COMMAND:
            self.query_one(InputBox).value = ""
            await self.action_new_conversation()
            return

        self.sub_title = "Waiting for response..."
        try:
            outcome = await self.controller.submit(text)
        except Exception:  # noqa: BLE001 - already logged by the controller.
            self.sub_title = "Unexpected error while showing the reply."
            return
        self.sub_title = {
            ExchangeOutcome.IGNORED: "Cannot send an empty message.",
            ExchangeOutcome.BUSY: "Busy. Wait for current request to finish.",
            ExchangeOutcome.SUCCEEDED: "Ready",
            ExchangeOutcome.FAILED: "Request failed",
        }[outcome]

    async def on_input_box_send_requested(self, event: InputBox.SendRequested) -> None:
        await self.send_user_message(event.text)

    async def on_input_box_reset_requested(self, _event: InputBox.ResetRequested) -> None:
        await self.action_new_conversation()

    async def action_send_message(self) -> None:
        await self.send_user_message(self.query_one(InputBox).value)

    async def action_new_conversation(self) -> None:
        """Clear the transcript and forget all turns."""
        if self.controller is None:
            return
        if await self.controller.reset():
            self.sub_title = "New conversation"
        else:
            self.sub_title = "Busy. Wait for current request to finish."

    async def action_quit(self) -> None:
        self.exit()

    def action_scroll_up(self) -> None:
        self.query_one(ConversationView).scroll_relative(y=-10, animate=False)

    def action_scroll_down(self) -> None:
        self.query_one(ConversationView).scroll_relative(y=10, animate=False)
