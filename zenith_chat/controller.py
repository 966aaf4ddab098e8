"""Message lifecycle controller: one send/receive exchange at a time."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from enum import Enum
import logging
from typing import TYPE_CHECKING, Any, Protocol, Sequence

from .conversation import ConversationState, Turn
from .exceptions import CompletionError, ErrorKind
from .renderer import RenderedBlock, TranscriptRenderer, typeset_block
from .state import ExchangeState, StateManager

if TYPE_CHECKING:
    from .typesetting import MathTypesetter

LOGGER = logging.getLogger(__name__)

_ERROR_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.UNREACHABLE: "Sorry, I can't reach the chat service right now. ({detail})",
    ErrorKind.REQUEST_REJECTED: "Sorry, the request was rejected: {detail}",
    ErrorKind.MALFORMED_RESPONSE: (
        "Sorry, the service sent a response in an unexpected format."
    ),
    ErrorKind.INCOMPLETE_RESPONSE: "Sorry, the service sent an incomplete response.",
}


class CompletionBackend(Protocol):
    async def complete(self, history: Sequence[Turn], new_message: str) -> str: ...


class TranscriptView(Protocol):
    """Append-only transcript surface the controller writes into."""

    async def add_user_entry(self, text: str, timestamp: str) -> Any: ...

    async def add_assistant_entry(self, block: RenderedBlock, timestamp: str) -> Any: ...

    async def show_placeholder(self) -> str: ...

    async def remove_entry(self, entry_id: str) -> None: ...

    async def apply_typesetting(self, entry: Any, typeset: dict[int, str]) -> None: ...

    async def clear(self) -> None: ...


class InputSurface(Protocol):
    value: str
    disabled: bool

    def focus(self) -> Any: ...


class ExchangeOutcome(str, Enum):
    """What a call to :meth:`MessageLifecycleController.submit` did."""

    IGNORED = "IGNORED"
    BUSY = "BUSY"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


def describe_error(error: CompletionError) -> str:
    """Return the user-facing transcript text for a failed exchange."""
    template = _ERROR_MESSAGES[error.kind]
    detail = error.detail or (
        str(error.status_code) if error.status_code is not None else error.kind.value
    )
    return template.format(detail=detail)


def generate_timestamp(now: datetime | None = None) -> str:
    """Format a wall-clock time for message headers (e.g. "3:45 PM")."""
    now = now or datetime.now()
    if now.hour < 12:
        period = "AM"
        hour = now.hour if now.hour != 0 else 12
    else:
        period = "PM"
        hour = now.hour if now.hour <= 12 else now.hour - 12
    return f"{hour}:{now.minute:02d} {period}"


class MessageLifecycleController:
    """Drive ``IDLE -> SENDING -> SUCCEEDED | FAILED -> IDLE`` for each submission.

    The controller owns no UI. It writes to an injected transcript view,
    locks an injected input surface, reads and appends an injected
    :class:`ConversationState`, and asks an injected completion backend for
    replies. Only one exchange can be in flight per instance.
    """

    def __init__(
        self,
        conversation: ConversationState,
        client: CompletionBackend,
        view: TranscriptView,
        input_surface: InputSurface,
        renderer: TranscriptRenderer | None = None,
        typesetter: MathTypesetter | None = None,
        render_markdown: bool = True,
        show_timestamps: bool = True,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.conversation = conversation
        self.client = client
        self.view = view
        self.input = input_surface
        self.renderer = renderer or TranscriptRenderer()
        self.typesetter = typesetter
        self.render_markdown = render_markdown
        self.show_timestamps = show_timestamps
        self._clock = clock or datetime.now
        self.state = StateManager()

    @property
    def is_busy(self) -> bool:
        return self.state.current is not ExchangeState.IDLE

    def _timestamp(self) -> str:
        return generate_timestamp(self._clock()) if self.show_timestamps else ""

    async def _transition(self, new_state: ExchangeState) -> None:
        previous = self.state.current
        await self.state.transition_to(new_state)
        LOGGER.info(
            "app.state.transition",
            extra={
                "event": "app.state.transition",
                "from_state": previous.value,
                "to_state": new_state.value,
            },
        )

    async def submit(self, raw_text: str) -> ExchangeOutcome:
        """Send one user message and write the outcome to the transcript."""
        user_text = raw_text.strip()
        if not user_text:
            return ExchangeOutcome.IGNORED

        # Compare-and-set so a second submission can never enter SENDING.
        if not await self.state.transition_if(ExchangeState.IDLE, ExchangeState.SENDING):
            LOGGER.info("app.submit.busy", extra={"event": "app.submit.busy"})
            return ExchangeOutcome.BUSY
        LOGGER.info(
            "app.state.transition",
            extra={
                "event": "app.state.transition",
                "from_state": ExchangeState.IDLE.value,
                "to_state": ExchangeState.SENDING.value,
            },
        )

        self.input.disabled = True
        placeholder_id: str | None = None
        try:
            await self.view.add_user_entry(user_text, self._timestamp())
            self.input.value = ""
            placeholder_id = await self.view.show_placeholder()

            try:
                reply = await self.client.complete(
                    self.conversation.snapshot(), user_text
                )
            except CompletionError as exc:
                await self.view.remove_entry(placeholder_id)
                placeholder_id = None
                await self._transition(ExchangeState.FAILED)
                await self.view.add_assistant_entry(
                    self.renderer.render_plain(describe_error(exc)), self._timestamp()
                )
                return ExchangeOutcome.FAILED

            await self.view.remove_entry(placeholder_id)
            placeholder_id = None
            block = (
                self.renderer.render(reply)
                if self.render_markdown
                else self.renderer.render_plain(reply)
            )
            entry = await self.view.add_assistant_entry(block, self._timestamp())
            self.conversation.append_exchange(user_text, reply)
            await self._transition(ExchangeState.SUCCEEDED)

            typeset = await typeset_block(block, self.typesetter)
            if typeset:
                await self.view.apply_typesetting(entry, typeset)
            return ExchangeOutcome.SUCCEEDED
        except Exception:
            LOGGER.exception(
                "chat.exchange.error", extra={"event": "chat.exchange.error"}
            )
            raise
        finally:
            try:
                if placeholder_id is not None:
                    await self.view.remove_entry(placeholder_id)
            finally:
                try:
                    self.input.disabled = False
                    self.input.focus()
                finally:
                    await self._transition(ExchangeState.IDLE)

    async def reset(self) -> bool:
        """Forget the conversation and clear the transcript while idle."""
        if not await self.state.can_send_message():
            LOGGER.info("app.reset.busy", extra={"event": "app.reset.busy"})
            return False
        self.conversation.reset()
        await self.view.clear()
        LOGGER.info("app.conversation.reset", extra={"event": "app.conversation.reset"})
        return True
