"""Top-level package for zenith-chat."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .app import ZenithChatApp
    from .client import CompletionClient
    from .config import ensure_config_dir, load_config
    from .controller import ExchangeOutcome, MessageLifecycleController
    from .conversation import ConversationState, Turn
    from .exceptions import (
        CompletionError,
        ConfigValidationError,
        ErrorKind,
        ZenithChatError,
    )
    from .renderer import RenderedBlock, Segment, SegmentKind, TranscriptRenderer

__all__ = [
    "CompletionClient",
    "CompletionError",
    "ConfigValidationError",
    "ConversationState",
    "ErrorKind",
    "ExchangeOutcome",
    "MessageLifecycleController",
    "RenderedBlock",
    "Segment",
    "SegmentKind",
    "TranscriptRenderer",
    "Turn",
    "ZenithChatApp",
    "ZenithChatError",
    "ensure_config_dir",
    "load_config",
]

_LAZY_EXPORTS: dict[str, str] = {
    "CompletionClient": ".client",
    "CompletionError": ".exceptions",
    "ConfigValidationError": ".exceptions",
    "ConversationState": ".conversation",
    "ErrorKind": ".exceptions",
    "ExchangeOutcome": ".controller",
    "MessageLifecycleController": ".controller",
    "RenderedBlock": ".renderer",
    "Segment": ".renderer",
    "SegmentKind": ".renderer",
    "TranscriptRenderer": ".renderer",
    "Turn": ".conversation",
    "ZenithChatApp": ".app",
    "ZenithChatError": ".exceptions",
    "ensure_config_dir": ".config",
    "load_config": ".config",
}


def __getattr__(name: str) -> Any:
    """Lazily import symbols to keep optional UI dependencies optional at import time."""
    module_name = _LAZY_EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    from importlib import import_module

    return getattr(import_module(module_name, __name__), name)
