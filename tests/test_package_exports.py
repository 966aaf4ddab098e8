"""Tests for top-level package lazy exports."""

from __future__ import annotations

import unittest

import zenith_chat


class PackageExportTests(unittest.TestCase):
    """Ensure __getattr__ and exported symbols behave as expected."""

    def test_lazy_exports_resolve_known_symbols(self) -> None:
        self.assertTrue(callable(zenith_chat.load_config))
        self.assertTrue(callable(zenith_chat.ensure_config_dir))
        self.assertIsNotNone(zenith_chat.CompletionClient)
        self.assertIsNotNone(zenith_chat.CompletionError)
        self.assertIsNotNone(zenith_chat.ErrorKind)
        self.assertIsNotNone(zenith_chat.ZenithChatError)
        self.assertIsNotNone(zenith_chat.ConfigValidationError)
        self.assertIsNotNone(zenith_chat.ConversationState)
        self.assertIsNotNone(zenith_chat.Turn)
        self.assertIsNotNone(zenith_chat.MessageLifecycleController)
        self.assertIsNotNone(zenith_chat.ExchangeOutcome)
        self.assertIsNotNone(zenith_chat.TranscriptRenderer)

    def test_every_name_in_all_resolves(self) -> None:
        for name in zenith_chat.__all__:
            if name == "ZenithChatApp":
                continue
            with self.subTest(name=name):
                self.assertIsNotNone(getattr(zenith_chat, name))

    def test_unknown_symbol_raises_attribute_error(self) -> None:
        with self.assertRaises(AttributeError):
            getattr(zenith_chat, "THIS_DOES_NOT_EXIST")


if __name__ == "__main__":
    unittest.main()
