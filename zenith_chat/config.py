"""Configuration loading and validation for the Zenith chat TUI."""

from __future__ import annotations

from copy import deepcopy
import logging
import os
from pathlib import Path
import re
import tomllib
from typing import Any
from urllib.parse import urlparse

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .exceptions import ConfigValidationError

LOGGER = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "zenith-chat"
CONFIG_PATH = CONFIG_DIR / "config.toml"

VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
HEADER_NAME_PATTERN = re.compile(r"^[A-Za-z0-9!#$%&'*+.^_`|~-]+$")


def _non_empty_string(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("Expected a string value.")
    normalized = value.strip()
    if not normalized:
        raise ValueError("String value must not be empty.")
    return normalized


class AppConfig(BaseModel):
    """Application metadata and terminal integration options."""

    model_config = ConfigDict(populate_by_name=True)
    title: str = "Zenith Chat"
    window_class: str = Field(default="zenith-chat", alias="class")

    @field_validator("title", "window_class", mode="before")
    @classmethod
    def _validate_non_empty_string(cls, value: Any) -> str:
        return _non_empty_string(value)


class EndpointConfig(BaseModel):
    """Remote chat completion endpoint settings."""

    url: str = "https://dut-zenith.top/"
    model: str = "deepseek-chat"
    timeout_seconds: int = Field(default=60, ge=1, le=600)
    headers: dict[str, str] = Field(default_factory=dict)

    @field_validator("url", mode="before")
    @classmethod
    def _validate_url(cls, value: Any) -> str:
        return _non_empty_string(value)

    @field_validator("model", mode="before")
    @classmethod
    def _normalize_model(cls, value: Any) -> str:
        if value is None:
            return ""
        if not isinstance(value, str):
            raise ValueError("model must be a string.")
        return value.strip()

    @field_validator("headers", mode="before")
    @classmethod
    def _validate_headers(cls, value: Any) -> dict[str, str]:
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("headers must be a table/dict of name -> value.")
        headers: dict[str, str] = {}
        for name, header_value in value.items():
            if not isinstance(name, str) or not HEADER_NAME_PATTERN.match(name.strip()):
                raise ValueError(f"Invalid header name {name!r}.")
            if not isinstance(header_value, str):
                raise ValueError("Header values must be strings.")
            headers[name.strip()] = header_value.strip()
        return headers


class UIConfig(BaseModel):
    """Transcript and input settings."""

    show_timestamps: bool = True
    max_input_chars: int = Field(default=500, ge=1, le=100_000)
    welcome_message: str = "Hi! Ask me anything."
    thinking_text: str = "Thinking..."
    code_theme: str = "monokai"

    @field_validator("welcome_message", mode="before")
    @classmethod
    def _normalize_welcome(cls, value: Any) -> str:
        if value is None:
            return ""
        if not isinstance(value, str):
            raise ValueError("welcome_message must be a string.")
        return value.strip()

    @field_validator("thinking_text", "code_theme", mode="before")
    @classmethod
    def _validate_required_string(cls, value: Any) -> str:
        return _non_empty_string(value)


class RenderConfig(BaseModel):
    """Assistant reply rendering pipeline switches."""

    markdown: bool = True
    typeset_math: bool = True


class KeybindsConfig(BaseModel):
    """Keyboard action mapping."""

    send_message: str = "ctrl+enter"
    new_conversation: str = "ctrl+n"
    quit: str = "ctrl+q"
    scroll_up: str = "ctrl+k"
    scroll_down: str = "ctrl+j"

    @field_validator("*", mode="before")
    @classmethod
    def _validate_keybind(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Keybind must be a string.")
        normalized = value.strip()
        if not normalized:
            raise ValueError("Keybind must not be empty.")
        return normalized


class SecurityConfig(BaseModel):
    """Policy for which endpoint hosts may be contacted."""

    allow_remote_hosts: bool = True
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "::1"]

    @field_validator("allowed_hosts", mode="before")
    @classmethod
    def _validate_allowed_hosts(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            raise ValueError("allowed_hosts must be a list.")
        normalized_hosts = [
            item.strip().lower()
            for item in value
            if isinstance(item, str) and item.strip()
        ]
        if not normalized_hosts:
            raise ValueError("allowed_hosts must contain at least one host.")
        return normalized_hosts


class LoggingConfig(BaseModel):
    """Logging behavior and output destinations."""

    level: str = "INFO"
    structured: bool = True
    log_to_file: bool = False
    log_file_path: str = "~/.local/state/zenith-chat/app.log"

    @field_validator("level", mode="before")
    @classmethod
    def _validate_level(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Logging level must be a string.")
        normalized = value.strip().upper()
        if normalized not in VALID_LOG_LEVELS:
            raise ValueError(f"Unsupported log level {normalized!r}.")
        return normalized

    @field_validator("log_file_path", mode="before")
    @classmethod
    def _validate_log_file_path(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("log_file_path must be a string.")
        normalized = value.strip()
        if not normalized:
            raise ValueError("log_file_path must not be empty.")
        return normalized


class Config(BaseModel):
    """Root configuration model for all sections."""

    model_config = ConfigDict(populate_by_name=True)
    app: AppConfig = AppConfig()
    endpoint: EndpointConfig = EndpointConfig()
    ui: UIConfig = UIConfig()
    render: RenderConfig = RenderConfig()
    keybinds: KeybindsConfig = KeybindsConfig()
    security: SecurityConfig = SecurityConfig()
    logging: LoggingConfig = LoggingConfig()

    @model_validator(mode="after")
    def _validate_security_policy(self) -> Config:
        parsed = urlparse(self.endpoint.url)
        scheme = parsed.scheme.lower()
        hostname = (parsed.hostname or "").strip().lower()

        if scheme not in {"http", "https"}:
            raise ValueError("endpoint.url must use http or https scheme.")
        if not hostname:
            raise ValueError("endpoint.url must include a hostname.")
        if not self.security.allow_remote_hosts and hostname not in set(
            self.security.allowed_hosts
        ):
            raise ValueError(
                "endpoint.url is not in security.allowed_hosts while allow_remote_hosts is false."
            )
        return self


DEFAULT_CONFIG: dict[str, dict[str, Any]] = Config().model_dump(by_alias=True)


def ensure_config_dir(config_dir: Path | None = None) -> Path:
    """Ensure that the config directory exists and return its path."""
    directory = config_dir or CONFIG_DIR
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        LOGGER.warning("Unable to create config directory %s: %s", directory, exc)
    return directory


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override values onto base values."""
    merged: dict[str, Any] = deepcopy(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _enforce_private_permissions(path: Path) -> None:
    """Best-effort enforcement of private file permissions on POSIX systems."""
    if os.name != "posix" or not path.exists():
        return
    try:
        path.chmod(0o600)
    except OSError as exc:
        LOGGER.warning("Unable to enforce 0600 permissions for %s: %s", path, exc)


# Sections that never fall back to defaults.
_ENDPOINT_SECTIONS = frozenset({"endpoint", "security"})


def _validate_section(name: str, model: type[BaseModel], value: Any) -> BaseModel:
    """Validate one section; non-endpoint sections fall back to defaults."""
    try:
        return model.model_validate(value)
    except ValidationError as exc:
        if name in _ENDPOINT_SECTIONS:
            raise ConfigValidationError(f"Invalid [{name}] configuration: {exc}") from exc
        LOGGER.warning("Invalid [%s] configuration, using defaults: %s", name, exc)
        return model()


def _validate_config(raw: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Validate merged config section by section, then the endpoint policy."""
    sections = {
        name: _validate_section(name, field.annotation, raw.get(name, {}))
        for name, field in Config.model_fields.items()
    }
    try:
        config = Config(**sections)
    except ValidationError as exc:
        raise ConfigValidationError(f"Endpoint rejected: {exc}") from exc
    return config.model_dump(by_alias=True)


def load_config(
    config_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> dict[str, dict[str, Any]]:
    """
    Load configuration from TOML, merge with defaults, and validate.

    ``overrides`` is applied on top of the file (command-line flags use it);
    ``config_path`` defaults to ``~/.config/zenith-chat/config.toml``.

    Raises :class:`ConfigValidationError` when the file cannot be parsed or
    its ``[endpoint]``/``[security]`` settings are invalid.
    Other invalid sections are replaced by their defaults with a warning.
    """
    target_path = config_path or CONFIG_PATH
    ensure_config_dir(target_path.parent)

    raw_data: dict[str, Any] = {}
    if target_path.exists():
        _enforce_private_permissions(target_path)
        try:
            raw_data = tomllib.loads(target_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
            raise ConfigValidationError(
                f"Failed to read config at {target_path}: {exc}"
            ) from exc

    merged = _deep_merge(DEFAULT_CONFIG, raw_data)
    if overrides:
        merged = _deep_merge(merged, overrides)
    return _validate_config(merged)
