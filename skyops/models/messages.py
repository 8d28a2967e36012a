from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(UTC)


class ChatRole(StrEnum):
    system = "system"
    user = "user"
    assistant = "assistant"


class ChatMessage(BaseModel):
    role: ChatRole
    content: str


class ChatRequest(BaseModel):
    """Body of the streaming chat-completions POST."""

    model: str
    messages: list[ChatMessage] = Field(default_factory=list)
    temperature: float = 0.7
    stream: bool = True


__all__ = ["ChatMessage", "ChatRequest", "ChatRole", "utc_now"]
