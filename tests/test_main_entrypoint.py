"""Tests for CLI entrypoint wiring."""

from __future__ import annotations

import io
from contextlib import redirect_stdout
from pathlib import Path
import unittest
from unittest.mock import patch

from zenith_chat.__main__ import main
from zenith_chat.exceptions import ConfigValidationError


class MainEntrypointTests(unittest.TestCase):
    """Validate top-level main() behavior."""

    def test_main_ensures_config_and_runs_app(self) -> None:
        with patch("zenith_chat.__main__.ensure_config_dir") as ensure_mock, patch(
            "zenith_chat.__main__.ZenithChatApp"
        ) as app_cls_mock:
            app_instance = app_cls_mock.return_value
            main([])
            ensure_mock.assert_called_once()
            app_cls_mock.assert_called_once_with(config_path=None, overrides=None)
            app_instance.run.assert_called_once()

    def test_url_and_config_flags_are_forwarded(self) -> None:
        with patch("zenith_chat.__main__.ensure_config_dir"), patch(
            "zenith_chat.__main__.ZenithChatApp"
        ) as app_cls_mock:
            main(["--config", "/tmp/zc.toml", "--url", "http://localhost:9/chat"])
            app_cls_mock.assert_called_once_with(
                config_path=Path("/tmp/zc.toml"),
                overrides={"endpoint": {"url": "http://localhost:9/chat"}},
            )

    def test_invalid_config_exits_with_status_two(self) -> None:
        with patch("zenith_chat.__main__.ensure_config_dir"), patch(
            "zenith_chat.__main__.ZenithChatApp",
            side_effect=ConfigValidationError("Invalid [endpoint] configuration"),
        ), patch("sys.stderr", new_callable=io.StringIO) as stderr:
            with self.assertRaises(SystemExit) as ctx:
                main([])
        self.assertEqual(ctx.exception.code, 2)
        self.assertIn("Invalid [endpoint] configuration", stderr.getvalue())

    def test_version_flag_prints_and_exits(self) -> None:
        with patch("zenith_chat.__main__.ZenithChatApp") as app_cls_mock:
            buffer = io.StringIO()
            with redirect_stdout(buffer):
                main(["--version"])
            self.assertTrue(buffer.getvalue().startswith("zenith-chat "))
            app_cls_mock.assert_not_called()


if __name__ == "__main__":
    unittest.main()
