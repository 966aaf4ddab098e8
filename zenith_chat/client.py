"""Async client for an OpenAI-compatible chat completion endpoint."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from .conversation import Message, Turn
from .exceptions import CompletionError, ErrorKind

LOGGER = logging.getLogger(__name__)

_CONTENT_PATH = "choices[0].message.content"


class CompletionClient:
    """Send the full conversation context and extract the assistant reply.

    The endpoint is stateless: every call carries the whole history followed by
    the new user message. Failures are reported as :class:`CompletionError`
    with an :class:`ErrorKind` chosen by the first check that fails.
    """

    def __init__(
        self,
        url: str,
        model: str = "",
        timeout: float = 60.0,
        headers: Mapping[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.model = model.strip()
        self.timeout = timeout
        self.headers = {"Content-Type": "application/json", **dict(headers or {})}
        self._owns_client = client is None
        # Redirects are followed; 307/308 keep the POST body.
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> CompletionClient:
        return self

    async def __aexit__(self, *_exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client when this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    def build_payload(self, history: Sequence[Turn], new_message: str) -> dict[str, Any]:
        """Return the request body: prior turns, then the new user turn."""
        messages: list[Message] = [turn.as_message() for turn in history]
        messages.append(Turn(role="user", content=new_message).as_message())
        payload: dict[str, Any] = {"messages": messages}
        if self.model:
            payload["model"] = self.model
        return payload

    async def complete(self, history: Sequence[Turn], new_message: str) -> str:
        """Return the assistant text for ``new_message`` given ``history``."""
        payload = self.build_payload(history, new_message)
        LOGGER.info(
            "chat.request.start",
            extra={
                "event": "chat.request.start",
                "url": self.url,
                "message_count": len(payload["messages"]),
            },
        )
        started = time.monotonic()
        try:
            response = await self._client.post(
                self.url, json=payload, headers=self.headers, timeout=self.timeout
            )
        except httpx.TransportError as exc:
            raise self._failed(
                CompletionError(ErrorKind.UNREACHABLE, str(exc) or type(exc).__name__)
            ) from exc

        if not response.is_success:
            raise self._failed(
                CompletionError(
                    ErrorKind.REQUEST_REJECTED,
                    _rejection_detail(response),
                    status_code=response.status_code,
                )
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise self._failed(
                CompletionError(
                    ErrorKind.MALFORMED_RESPONSE,
                    "Response body is not valid JSON.",
                    status_code=response.status_code,
                )
            ) from exc
        if not isinstance(body, dict):
            raise self._failed(
                CompletionError(
                    ErrorKind.MALFORMED_RESPONSE,
                    "Response body is not a JSON object.",
                    status_code=response.status_code,
                )
            )

        content = _extract_content(body, response.status_code)
        LOGGER.info(
            "chat.request.complete",
            extra={
                "event": "chat.request.complete",
                "status_code": response.status_code,
                "elapsed_ms": int((time.monotonic() - started) * 1000),
                "reply_chars": len(content),
            },
        )
        return content

    @staticmethod
    def _failed(error: CompletionError) -> CompletionError:
        LOGGER.warning(
            "chat.request.failed",
            extra={
                "event": "chat.request.failed",
                "kind": error.kind.value,
                "status_code": error.status_code,
                "detail": error.detail,
            },
        )
        return error


def _rejection_detail(response: httpx.Response) -> str:
    """Prefer the server's ``error`` message, else the status line."""
    fallback = f"{response.status_code} {response.reason_phrase}".strip()
    try:
        body = response.json()
    except ValueError:
        return fallback
    if not isinstance(body, dict):
        return fallback
    error = body.get("error")
    if isinstance(error, dict):
        error = error.get("message")
    if isinstance(error, str) and error.strip():
        return error.strip()
    return fallback


def _extract_content(body: dict[str, Any], status_code: int) -> str:
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices:
        raise _incomplete("choices", status_code)
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    if not isinstance(message, dict):
        raise _incomplete("choices[0].message", status_code)
    content = message.get("content")
    if not isinstance(content, str):
        raise _incomplete(_CONTENT_PATH, status_code)
    if not content.strip():
        raise _incomplete(_CONTENT_PATH, status_code, "Response content is empty.")
    return content


def _incomplete(field: str, status_code: int, detail: str = "") -> CompletionError:
    error = CompletionError(
        ErrorKind.INCOMPLETE_RESPONSE,
        detail or f"Response is missing {field}.",
        status_code=status_code,
        missing_field=field,
    )
    return CompletionClient._failed(error)
