from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class EnvelopeKind(StrEnum):
    token = "token"
    end = "end"
    malformed = "malformed"


class Envelope(BaseModel):
    """One decoded ``data:`` frame of the completion stream."""

    model_config = ConfigDict(frozen=True)

    kind: EnvelopeKind
    delta: str = ""
    raw: str | None = None

    @classmethod
    def token(cls, delta: str) -> Envelope:
        return cls(kind=EnvelopeKind.token, delta=delta)

    @classmethod
    def end(cls) -> Envelope:
        return cls(kind=EnvelopeKind.end)

    @classmethod
    def malformed(cls, raw: str) -> Envelope:
        return cls(kind=EnvelopeKind.malformed, raw=raw)


class DirectiveCandidate(BaseModel):
    """Raw inner text of a closed ``<action>`` block and its buffer offsets."""

    model_config = ConfigDict(frozen=True)

    raw: str
    start: int
    end: int


__all__ = ["DirectiveCandidate", "Envelope", "EnvelopeKind"]
