"""CLI entrypoint for zenith-chat."""

from __future__ import annotations

import argparse
from importlib import metadata
from pathlib import Path
from typing import Any, Sequence

from .app import ZenithChatApp
from .config import ensure_config_dir
from .exceptions import ConfigValidationError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="zenith-chat", description="Zenith Chat TUI")
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a config.toml (default: ~/.config/zenith-chat/config.toml)",
    )
    parser.add_argument(
        "--url",
        default=None,
        help="Override endpoint.url for this session",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Ensure configuration exists, handle CLI flags, and run the TUI."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.version:
        try:
            version = metadata.version("zenith-chat")
        except metadata.PackageNotFoundError:
            version = "0.0.0"
        print(f"zenith-chat {version}")
        return

    overrides: dict[str, Any] = {}
    if args.url:
        overrides["endpoint"] = {"url": args.url}

    ensure_config_dir()
    try:
        app = ZenithChatApp(config_path=args.config, overrides=overrides or None)
    except ConfigValidationError as exc:
        parser.exit(2, f"zenith-chat: {exc}\n")
    app.run()


if __name__ == "__main__":
    main()
