"""Line reassembly and ``data:`` frame decoding for the completion stream.

The transport may cut the byte stream anywhere: mid-line, mid-frame, or in
the middle of a multi-byte UTF-8 sequence. ``FrameReassembler`` turns those
fragments back into whole lines and ``EventFrameParser`` turns each line into
an ``Envelope``.
"""

from __future__ import annotations

import codecs
import json
import logging
from collections.abc import Sequence

from skyops.models.stream import Envelope, EnvelopeKind
from skyops.stream.session import StreamSession

logger = logging.getLogger(__name__)

DEFAULT_DATA_PREFIX = "data: "
DEFAULT_DONE_SENTINEL = "[DONE]"
DEFAULT_DELTA_PATHS: tuple[tuple[str | int, ...], ...] = (
    ("choices", 0, "delta", "content"),
    ("delta",),
)


def _lookup(payload: object, path: Sequence[str | int]) -> object | None:
    current = payload
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, list) or not -len(current) <= key < len(current):
                return None
            current = current[key]
        else:
            if not isinstance(current, dict) or key not in current:
                return None
            current = current[key]
    return current


class EventFrameParser:
    def __init__(
        self,
        *,
        data_prefix: str = DEFAULT_DATA_PREFIX,
        done_sentinel: str = DEFAULT_DONE_SENTINEL,
        delta_paths: Sequence[Sequence[str | int]] = DEFAULT_DELTA_PATHS,
    ) -> None:
        self._prefix = data_prefix
        self._sentinel = done_sentinel
        self._paths = tuple(tuple(path) for path in delta_paths)

    def parse(self, line: str) -> Envelope | None:
        """Decode one line; ``None`` for anything that is not a data frame."""
        if not line.startswith(self._prefix):
            return None

        payload = line[len(self._prefix) :].strip()
        if payload == self._sentinel:
            return Envelope.end()

        try:
            decoded = json.loads(payload)
        except json.JSONDecodeError:
            return Envelope.malformed(payload)
        if not isinstance(decoded, dict):
            return Envelope.malformed(payload)

        # Absent delta is valid (role announcements, finish_reason frames).
        for path in self._paths:
            value = _lookup(decoded, path)
            if isinstance(value, str):
                return Envelope.token(value)
        return Envelope.token("")

    def is_complete(self, line: str) -> bool:
        envelope = self.parse(line)
        return envelope is not None and envelope.kind != EnvelopeKind.malformed


_DEFAULT_PARSER = EventFrameParser()


def parse_frame(line: str) -> Envelope | None:
    """Decode *line* with the default OpenAI-style frame conventions."""
    return _DEFAULT_PARSER.parse(line)


class FrameReassembler:
    """Split arbitrary fragments into complete protocol lines.

    The unterminated remainder of the latest fragment is carried in
    ``session.raw_tail`` until the next fragment (or ``finish``) arrives.
    """

    def __init__(self, session: StreamSession, parser: EventFrameParser | None = None) -> None:
        self._session = session
        self._parser = parser or _DEFAULT_PARSER
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, fragment: bytes | str) -> list[str]:
        text = self._decoder.decode(fragment) if isinstance(fragment, bytes) else fragment
        if not text:
            return []
        *lines, tail = (self._session.raw_tail + text).split("\n")
        self._session.raw_tail = tail
        return [line.removesuffix("\r") for line in lines]

    def finish(self) -> list[str]:
        """Flush the carry-over at stream end.

        A trailing line without terminator is kept only when it is a complete
        frame on its own; anything else is a truncated frame and is dropped.
        """
        tail = self._session.raw_tail + self._decoder.decode(b"", final=True)
        self._session.raw_tail = ""
        line = tail.removesuffix("\r")
        if not line.strip():
            return []
        if self._parser.is_complete(line):
            return [line]
        logger.warning("Discarding truncated frame at stream end (%d chars)", len(line))
        return []


__all__ = [
    "DEFAULT_DATA_PREFIX",
    "DEFAULT_DELTA_PATHS",
    "DEFAULT_DONE_SENTINEL",
    "EventFrameParser",
    "FrameReassembler",
    "parse_frame",
]
