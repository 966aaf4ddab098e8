"""Widget exports for zenith_chat UI."""

from .code_block import CodeBlock
from .conversation import ConversationView
from .input_box import InputBox
from .math_block import MathBlock
from .message import MessageBubble

__all__ = ["CodeBlock", "ConversationView", "InputBox", "MathBlock", "MessageBubble"]
