"""Exchange state machine and lock-protected transitions."""

from __future__ import annotations

import asyncio
from enum import Enum


class ExchangeState(str, Enum):
    """Lifecycle of a single send/receive exchange."""

    IDLE = "IDLE"
    SENDING = "SENDING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class StateManager:
    """Manage state transitions with async lock semantics."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._state = ExchangeState.IDLE

    @property
    def current(self) -> ExchangeState:
        """Return the last committed state without taking the lock."""
        return self._state

    async def get_state(self) -> ExchangeState:
        """Return the current state under lock."""
        async with self._lock:
            return self._state

    async def transition_to(self, new_state: ExchangeState) -> ExchangeState:
        """Transition to a new state and return it."""
        async with self._lock:
            self._state = new_state
            return self._state

    async def transition_if(
        self,
        expected_state: ExchangeState,
        new_state: ExchangeState,
    ) -> bool:
        """Transition only when current state matches expected state."""
        async with self._lock:
            if self._state != expected_state:
                return False
            self._state = new_state
            return True

    async def can_send_message(self) -> bool:
        """Return True when message submission is allowed."""
        async with self._lock:
            return self._state == ExchangeState.IDLE
