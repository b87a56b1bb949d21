from __future__ import annotations

import json
import logging
from collections.abc import Callable

import httpx

from .chat.persona import (
    CHAT_SYSTEM_PROMPT,
    REVIEW_SYSTEM_PROMPT,
    REVIEW_TOOL,
    REVIEW_TOOL_NAME,
    build_review_prompt,
)
from .chat.stream_assembler import ErrorKind, StreamingAssembler
from .config import GatewayConfig
from .models import ReviewResult, sanitize_review

logger = logging.getLogger(__name__)

_COMPLETIONS_PATH = "/chat/completions"

_RATE_LIMIT_TEXT = "Rate limit exceeded. Please try again later. Easy, relax. 😎"
_CREDITS_TEXT = "AI credits depleted. Please add credits to continue."


def _extract_error_text(data: object) -> str | None:
    """Best-effort extraction of human-readable error text from gateway JSON."""
    if not isinstance(data, dict):
        return None

    for item in (data.get("error"), data.get("message"), data.get("detail")):
        if isinstance(item, str) and item.strip():
            return item.strip()
        if isinstance(item, dict):
            for key in ("message", "error", "detail"):
                value = item.get(key)
                if isinstance(value, str) and value.strip():
                    return value.strip()
    return None


def _extract_response_error_detail(response: httpx.Response) -> str | None:
    """Extract best available human-readable error detail from a read response."""
    try:
        data: object = response.json()
    except ValueError:
        data = None
    message = _extract_error_text(data)
    if message:
        return message

    text = response.text.strip()
    if text:
        return text[:300]
    return None


def _describe_status(response: httpx.Response) -> str:
    """Status-specific message for a failed completion request."""
    if response.status_code == 429:
        return _RATE_LIMIT_TEXT
    if response.status_code == 402:
        return _CREDITS_TEXT
    detail = f"Gateway returned HTTP {response.status_code}"
    response_detail = _extract_response_error_detail(response)
    if response_detail:
        detail = f"{detail}: {response_detail}"
    return detail


def _extract_tool_arguments(data: object) -> object:
    """Pull the parsed ``provide_review`` arguments out of a completion body."""
    try:
        tool_call = data["choices"][0]["message"]["tool_calls"][0]  # type: ignore[index]
        arguments = tool_call["function"]["arguments"]
    except (KeyError, IndexError, TypeError) as exc:
        raise GatewayError("No tool call in AI response") from exc

    if isinstance(arguments, dict):
        return arguments
    if not isinstance(arguments, str) or not arguments:
        raise GatewayError("No tool call in AI response")
    try:
        return json.loads(arguments)
    except ValueError as exc:
        raise GatewayError(f"Tool call arguments are not valid JSON: {exc}") from exc


class GatewayError(Exception):
    """Base error for gateway communication."""
    pass


class AuthError(GatewayError):
    """Authentication failed (401/403)."""
    pass


class RateLimitError(GatewayError):
    """Gateway rate limit hit (429)."""
    pass


class CreditsError(GatewayError):
    """Workspace is out of AI credits (402)."""
    pass


class GatewayClient:
    def __init__(self, config: GatewayConfig) -> None:
        self.config = config
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create reusable HTTP client."""
        if self._client is None or self._client.is_closed:
            headers: dict[str, str] = {}
            if self.config.api_key:
                headers["Authorization"] = f"Bearer {self.config.api_key}"
            self._client = httpx.Client(
                base_url=self.config.base_url,
                headers=headers,
                timeout=httpx.Timeout(self.config.timeout, connect=10.0),
            )
            logger.info("Gateway client created for %s", self.config.base_url)
        return self._client

    def stream_chat(
        self,
        messages: list[dict[str, str]],
        assembler: StreamingAssembler,
        *,
        system_prompt: str = CHAT_SYSTEM_PROMPT,
        is_cancelled: Callable[[], bool] | None = None,
    ) -> None:
        """Stream a persona reply for ``messages`` into ``assembler``.

        POST /chat/completions with ``stream: true``. Every outcome is reported
        through the assembler: a non-success status fails it with
        ``ErrorKind.REQUEST`` before any chunk is pushed, transport problems
        fail it with ``ErrorKind.TRANSPORT``, and a body that ends without
        ``[DONE]`` is flushed with ``finish()``.

        When ``is_cancelled`` returns True between chunks the stream is
        abandoned without a terminal callback. Never raises for gateway errors.
        """
        client = self._get_client()
        payload = {
            "model": self.config.model,
            "messages": [{"role": "system", "content": system_prompt}, *messages],
            "stream": True,
        }
        logger.info("Starting chat stream with %d messages", len(messages))

        try:
            with client.stream("POST", _COMPLETIONS_PATH, json=payload) as response:
                if response.status_code != 200:
                    response.read()
                    detail = _describe_status(response)
                    logger.warning("Chat stream request failed: %s", detail)
                    assembler.fail(ErrorKind.REQUEST, detail)
                    return

                for chunk in response.iter_bytes():
                    if is_cancelled is not None and is_cancelled():
                        logger.info("Chat stream abandoned by caller")
                        return
                    assembler.push(chunk)
                    if assembler.is_terminal:
                        break
        except httpx.TimeoutException as exc:
            logger.warning("Chat stream timed out: %s", exc)
            assembler.fail(ErrorKind.TRANSPORT, f"Gateway request timed out: {exc}")
            return
        except httpx.HTTPError as exc:
            logger.warning("Chat stream transport error: %s", exc)
            assembler.fail(ErrorKind.TRANSPORT, f"Gateway connection error: {exc}")
            return

        if is_cancelled is not None and is_cancelled():
            return
        assembler.finish()
        if assembler.dropped_frames:
            logger.warning("Chat stream dropped %d malformed frames", assembler.dropped_frames)

    def review_code(self, code: str, description: str) -> ReviewResult:
        """Score a code/architecture snippet for over-engineering.

        POST /chat/completions forcing the ``provide_review`` tool, then
        sanitises the tool arguments (see ``models.sanitize_review``).

        Raises ConnectionError if gateway unreachable.
        Raises AuthError if 401/403, RateLimitError if 429, CreditsError if 402.
        Raises GatewayError on any other failure status or a reply without
        a usable tool call.
        """
        client = self._get_client()
        payload = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": REVIEW_SYSTEM_PROMPT},
                {"role": "user", "content": build_review_prompt(code, description)},
            ],
            "tools": [REVIEW_TOOL],
            "tool_choice": {"type": "function", "function": {"name": REVIEW_TOOL_NAME}},
        }
        logger.info(
            "Analyzing code submission: description=%d chars code=%d chars",
            len(description),
            len(code),
        )

        try:
            response = client.post(_COMPLETIONS_PATH, json=payload)
        except httpx.ConnectError as exc:
            logger.warning("Gateway connection failed: %s", exc)
            raise ConnectionError(f"Cannot reach gateway at {self.config.base_url}: {exc}") from exc
        except httpx.TimeoutException as exc:
            logger.warning("Gateway request timed out: %s", exc)
            raise ConnectionError(f"Gateway request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            logger.warning("Gateway request error: %s", exc)
            raise ConnectionError(f"Gateway request error: {exc}") from exc

        if response.status_code in (401, 403):
            logger.warning("Gateway auth failed: HTTP %d", response.status_code)
            raise AuthError(f"Authentication failed: HTTP {response.status_code}")
        if response.status_code == 429:
            logger.warning("Gateway rate limited review request")
            raise RateLimitError(_RATE_LIMIT_TEXT)
        if response.status_code == 402:
            logger.warning("Gateway credits depleted")
            raise CreditsError(_CREDITS_TEXT)
        if response.status_code != 200:
            detail = _describe_status(response)
            logger.warning("review_code failed: %s", detail)
            raise GatewayError(detail)

        try:
            data = response.json()
        except ValueError as exc:
            logger.warning("review_code invalid JSON response")
            raise GatewayError("Gateway returned invalid JSON") from exc

        result = sanitize_review(_extract_tool_arguments(data), description)
        logger.info("Review scored %d/10: %s", result.score, result.title)
        return result

    def close(self) -> None:
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            self._client.close()
            logger.info("Gateway client closed")
