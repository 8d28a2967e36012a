"""Streaming chat-completions client (raw httpx, OpenAI wire format)."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

import httpx

from skyops.config import LLMConfig
from skyops.models.messages import ChatMessage, ChatRequest

logger = logging.getLogger(__name__)

_DETAIL_LIMIT = 2_000


class TransportError(RuntimeError):
    """The completion stream could not be opened or was cut by the network."""

    def __init__(self, message: str, *, status_code: int | None = None, detail: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class ChatCompletionClient:
    def __init__(
        self,
        config: LLMConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._owns_client = http_client is None
        # Injectable for tests.
        self._http = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.read_timeout_s, connect=config.connect_timeout_s),
        )

    def build_request(self, messages: Sequence[ChatMessage]) -> ChatRequest:
        return ChatRequest(
            model=self._config.model,
            messages=list(messages),
            temperature=self._config.temperature,
            stream=True,
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "text/event-stream"}
        api_key = self._config.resolve_api_key()
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    async def send(self, request: ChatRequest) -> httpx.Response:
        """POST *request* and return the open, successful streaming response.

        The caller owns the response and must ``aclose()`` it.
        """
        http_request = self._http.build_request(
            "POST",
            self._config.endpoint,
            json=request.model_dump(mode="json"),
            headers=self._headers(),
        )
        try:
            response = await self._http.send(http_request, stream=True)
        except httpx.HTTPError as exc:
            logger.error("Completion request failed: %s", exc)
            raise TransportError(f"completion request failed: {exc}") from exc

        if response.is_success:
            return response

        try:
            body = (await response.aread()).decode("utf-8", errors="replace")
        except httpx.HTTPError:
            body = ""
        finally:
            await response.aclose()
        logger.error("Completion endpoint returned %d", response.status_code)
        raise TransportError(
            f"completion endpoint returned HTTP {response.status_code}",
            status_code=response.status_code,
            detail=body[:_DETAIL_LIMIT],
        )

    @asynccontextmanager
    async def read_stream(self, response: httpx.Response) -> AsyncIterator[AsyncIterator[bytes]]:
        """Yield an iterator over *response* bytes; closes the response on exit."""
        try:
            yield response.aiter_bytes()
        except httpx.HTTPError as exc:
            logger.error("Completion stream failed mid-read: %s", exc)
            raise TransportError(f"completion stream failed: {exc}") from exc
        finally:
            await response.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()


__all__ = ["ChatCompletionClient", "TransportError"]
