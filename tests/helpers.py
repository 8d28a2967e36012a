"""Shared test helpers."""

from __future__ import annotations

import asyncio
import inspect
import json
from collections.abc import Awaitable, Callable

from skyops.models.stream import DirectiveCandidate


async def wait_until(
    predicate: Callable[[], bool | Awaitable[bool]],
    timeout: float = 3.0,
    interval: float = 0.01,
) -> None:
    """Poll a condition until it passes or timeout is reached.

    Supports both sync and async predicates.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        result = predicate()
        if inspect.isawaitable(result):
            result = await result
        if result:
            return
        await asyncio.sleep(interval)
    raise TimeoutError("Condition not met within timeout")


def sse_frame(delta: str) -> str:
    """One OpenAI-style chunk frame carrying *delta*."""
    payload = {"choices": [{"index": 0, "delta": {"content": delta}}]}
    return f"data: {json.dumps(payload)}\n\n"


DONE_FRAME = "data: [DONE]\n\n"


def sse_body(*deltas: str, done: bool = True) -> bytes:
    body = "".join(sse_frame(delta) for delta in deltas)
    if done:
        body += DONE_FRAME
    return body.encode("utf-8")


def split_at(data: bytes, *cuts: int) -> list[bytes]:
    """Cut *data* at the given offsets (ascending)."""
    points = [0, *cuts, len(data)]
    return [data[a:b] for a, b in zip(points, points[1:], strict=False)]


TEST_ENDPOINT = "https://llm.test/v1/chat/completions"


def candidate(raw: str) -> DirectiveCandidate:
    return DirectiveCandidate(raw=raw, start=0, end=len(raw))
