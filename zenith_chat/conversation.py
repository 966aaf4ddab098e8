"""Ordered, append-only conversation history shared across turns."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Literal

Role = Literal["user", "assistant"]
Message = dict[str, str]

_ROLES: frozenset[str] = frozenset({"user", "assistant"})


@dataclass(frozen=True)
class Turn:
    """A single message attributed to the user or the assistant."""

    role: Role
    content: str

    def __post_init__(self) -> None:
        if self.role not in _ROLES:
            raise ValueError(f"Unsupported turn role {self.role!r}.")

    def as_message(self) -> Message:
        """Return the wire representation used in request payloads."""
        return {"role": self.role, "content": self.content}


class ConversationState:
    """Hold the chronological turn history for one chat session.

    The history only grows during normal operation. ``reset()`` is the one
    operation that discards turns, and it discards all of them.
    """

    def __init__(self) -> None:
        self._turns: list[Turn] = []

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(self.snapshot())

    def append(self, turn: Turn) -> None:
        """Add a turn to the end of the history."""
        self._turns.append(turn)

    def append_exchange(self, user_text: str, assistant_text: str) -> None:
        """Record a completed (user, assistant) pair in a single step."""
        pair = (
            Turn(role="user", content=user_text),
            Turn(role="assistant", content=assistant_text),
        )
        self._turns.extend(pair)

    def reset(self) -> None:
        """Drop every turn."""
        self._turns = []

    def snapshot(self) -> tuple[Turn, ...]:
        """Return the current turns as an immutable sequence."""
        return tuple(self._turns)

    def messages(self) -> list[Message]:
        """Return fresh wire-format dicts for every turn, oldest first."""
        return [turn.as_message() for turn in self._turns]
