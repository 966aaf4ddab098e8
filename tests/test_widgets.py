"""Unit tests for individual widget classes."""

from __future__ import annotations

import unittest

from zenith_chat.renderer import RenderedBlock, Segment, SegmentKind, TranscriptRenderer

try:
    from textual.app import App, ComposeResult
    from textual.widgets import Button, Input

    from zenith_chat.widgets.code_block import CodeBlock
    from zenith_chat.widgets.conversation import PLACEHOLDER_ID, ConversationView
    from zenith_chat.widgets.input_box import InputBox
    from zenith_chat.widgets.math_block import MathBlock
    from zenith_chat.widgets.message import MessageBubble
except ModuleNotFoundError:
    App = None  # type: ignore[assignment,misc]
    CodeBlock = None  # type: ignore[assignment,misc]
    ConversationView = None  # type: ignore[assignment,misc]
    InputBox = None  # type: ignore[assignment,misc]
    MathBlock = None  # type: ignore[assignment,misc]
    MessageBubble = None  # type: ignore[assignment,misc]


def _mixed_block() -> RenderedBlock:
    return RenderedBlock(
        segments=(
            Segment(SegmentKind.TEXT, "The area is "),
            Segment(SegmentKind.MATH, "x^2"),
            Segment(SegmentKind.CODE, "print(1)\n", language="python", highlight=True),
            Segment(SegmentKind.MATH, "E = mc^2", display=True),
        )
    )


@unittest.skipIf(MessageBubble is None, "textual is not installed")
class MessageBubbleTests(unittest.IsolatedAsyncioTestCase):
    """Validate MessageBubble content management and rendering."""

    def _make_bubble(self, content: str = "", role: str = "user") -> MessageBubble:
        assert MessageBubble is not None
        return MessageBubble(TranscriptRenderer().render_plain(content), role=role)

    def test_message_content_is_block_text(self) -> None:
        self.assertEqual(self._make_bubble("hello").message_content, "hello")

    def test_role_class_and_prefix(self) -> None:
        user = self._make_bubble(role="user")
        assistant = self._make_bubble(role="assistant")
        self.assertIn("role-user", user.classes)
        self.assertEqual(user.role_prefix, "You")
        self.assertIn("role-assistant", assistant.classes)
        self.assertEqual(assistant.role_prefix, "Assistant")

    def test_header_with_and_without_timestamp(self) -> None:
        assert MessageBubble is not None
        bubble = MessageBubble(
            TranscriptRenderer().render_plain("hi"), role="user", timestamp="3:05 PM"
        )
        self.assertIn("3:05 PM", bubble._compose_header())
        self.assertNotIn("_", self._make_bubble(role="assistant")._compose_header())

    def test_compose_builds_one_widget_per_segment(self) -> None:
        assert MessageBubble is not None
        bubble = MessageBubble(_mixed_block(), role="assistant")
        children = list(bubble.compose())
        # Header plus four segments.
        self.assertEqual(len(children), 5)
        self.assertIsInstance(children[2], MathBlock)
        self.assertIsInstance(children[3], CodeBlock)
        self.assertEqual(len(bubble.math_widgets()), 2)

    async def test_apply_typesetting_updates_math_widgets_only(self) -> None:
        assert MessageBubble is not None

        class _TestApp(App[None]):
            def compose(self) -> ComposeResult:
                yield MessageBubble(_mixed_block(), role="assistant", id="bubble")

        app = _TestApp()
        async with app.run_test():
            bubble = app.query_one("#bubble", MessageBubble)
            bubble.apply_typesetting({1: "x²", 2: "ignored", 3: "E = mc²"})
            inline, display = bubble.math_widgets()
            self.assertEqual(inline.typeset_text, "x²")
            self.assertEqual(display.typeset_text, "E = mc²")
            self.assertIn("display-math", display.classes)


@unittest.skipIf(CodeBlock is None, "textual is not installed")
class CodeBlockWidgetTests(unittest.IsolatedAsyncioTestCase):
    """Validate CodeBlock widget composition and copy message."""

    def test_code_and_language_stored(self) -> None:
        assert CodeBlock is not None
        block = CodeBlock(code="print('hi')\n", language="python")
        self.assertEqual(block.code, "print('hi')")
        self.assertEqual(block.language, "python")

    def test_missing_language_falls_back_to_text(self) -> None:
        assert CodeBlock is not None
        self.assertEqual(CodeBlock(code="x", language="").language, "text")

    async def test_copy_requested_message_posted(self) -> None:
        assert CodeBlock is not None
        received: list[str] = []

        class _TestApp(App[None]):
            def compose(self) -> ComposeResult:
                yield CodeBlock(code="x = 1", language="python", id="cb")

            def on_code_block_copy_requested(
                self, event: CodeBlock.CopyRequested
            ) -> None:
                received.append(event.code)

        app = _TestApp()
        async with app.run_test() as pilot:
            await pilot.click("#copy-btn")
            await pilot.pause()
        self.assertEqual(received, ["x = 1"])


@unittest.skipIf(InputBox is None, "textual is not installed")
class InputBoxTests(unittest.IsolatedAsyncioTestCase):
    """Validate InputBox composition, locking, and messages."""

    def _app(self, received: list[object]) -> App[None]:
        class _TestApp(App[None]):
            def compose(self) -> ComposeResult:
                yield InputBox(max_length=5, id="ib")

            def on_input_box_send_requested(self, event: InputBox.SendRequested) -> None:
                received.append(event.text)

            def on_input_box_reset_requested(
                self, event: InputBox.ResetRequested
            ) -> None:
                received.append("reset")

        return _TestApp()

    async def test_compose_yields_input_and_buttons(self) -> None:
        app = self._app([])
        async with app.run_test() as pilot:
            await pilot.pause()
            field = app.query_one("#message_input", Input)
            self.assertEqual(field.max_length, 5)
            app.query_one("#send_button", Button)
            app.query_one("#clear_button", Button)

    async def test_value_property_reads_and_writes_field(self) -> None:
        app = self._app([])
        async with app.run_test() as pilot:
            box = app.query_one("#ib", InputBox)
            box.value = "hey"
            await pilot.pause()
            self.assertEqual(app.query_one("#message_input", Input).value, "hey")
            self.assertEqual(box.value, "hey")

    async def test_disabling_box_disables_children(self) -> None:
        app = self._app([])
        async with app.run_test() as pilot:
            box = app.query_one("#ib", InputBox)
            box.disabled = True
            await pilot.pause()
            self.assertTrue(app.query_one("#message_input", Input).is_disabled)
            self.assertTrue(app.query_one("#send_button", Button).is_disabled)

    async def test_send_and_clear_buttons_post_messages(self) -> None:
        received: list[object] = []
        app = self._app(received)
        async with app.run_test() as pilot:
            app.query_one("#ib", InputBox).value = "hi"
            await pilot.click("#send_button")
            await pilot.pause()
            await pilot.click("#clear_button")
            await pilot.pause()
        self.assertEqual(received, ["hi", "reset"])


@unittest.skipIf(ConversationView is None, "textual is not installed")
class ConversationViewTests(unittest.IsolatedAsyncioTestCase):
    """Validate ConversationView entry mounting behavior."""

    def _app(self, welcome: str = "") -> App[None]:
        class _TestApp(App[None]):
            def compose(self) -> ComposeResult:
                yield ConversationView(welcome_message=welcome, id="conv")

        return _TestApp()

    async def test_welcome_entry_shown_and_restored_on_clear(self) -> None:
        app = self._app("Hi there")
        async with app.run_test() as pilot:
            await pilot.pause()
            conv = app.query_one("#conv", ConversationView)
            self.assertEqual([b.message_content for b in conv.bubbles()], ["Hi there"])
            await conv.add_user_entry("question")
            await conv.clear()
            self.assertEqual([b.message_content for b in conv.bubbles()], ["Hi there"])

    async def test_user_entry_is_literal_text(self) -> None:
        app = self._app()
        async with app.run_test():
            conv = app.query_one("#conv", ConversationView)
            bubble = await conv.add_user_entry("**not bold**", "3:05 PM")
            self.assertIsInstance(bubble, MessageBubble)
            self.assertIn("message-user", bubble.classes)
            self.assertFalse(bubble.block.segments[0].markdown)
            self.assertEqual(bubble.timestamp, "3:05 PM")

    async def test_entries_append_in_order(self) -> None:
        app = self._app()
        async with app.run_test():
            conv = app.query_one("#conv", ConversationView)
            await conv.add_user_entry("a")
            await conv.add_assistant_entry(TranscriptRenderer().render("b"))
            self.assertEqual(
                [b.role for b in conv.bubbles()], ["user", "assistant"]
            )

    async def test_placeholder_is_single_and_removable(self) -> None:
        app = self._app()
        async with app.run_test():
            conv = app.query_one("#conv", ConversationView)
            first = await conv.show_placeholder()
            second = await conv.show_placeholder()
            self.assertEqual(first, PLACEHOLDER_ID)
            self.assertEqual(second, PLACEHOLDER_ID)
            self.assertEqual(len(conv.query(f"#{PLACEHOLDER_ID}")), 1)
            await conv.remove_entry(first)
            self.assertEqual(len(conv.query(f"#{PLACEHOLDER_ID}")), 0)

    async def test_apply_typesetting_reaches_bubble(self) -> None:
        app = self._app()
        async with app.run_test():
            conv = app.query_one("#conv", ConversationView)
            bubble = await conv.add_assistant_entry(_mixed_block())
            await conv.apply_typesetting(bubble, {1: "x²"})
            self.assertEqual(bubble.math_widgets()[0].typeset_text, "x²")


if __name__ == "__main__":
    unittest.main()
