from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeAlias

from skyops.directives.extractor import DirectiveExtractor
from skyops.models.stream import DirectiveCandidate, Envelope, EnvelopeKind
from skyops.protocols.display import DisplaySink
from skyops.stream.session import StreamSession

logger = logging.getLogger(__name__)

CandidateCallback: TypeAlias = Callable[[DirectiveCandidate], None]


class TokenAccumulator:
    """Append token deltas to the session buffer and surface closed blocks.

    Each ``accept`` call runs to completion (display, extraction, candidate
    callback) before returning, so candidates are handled in buffer order.
    """

    def __init__(
        self,
        session: StreamSession,
        extractor: DirectiveExtractor | None = None,
        *,
        sink: DisplaySink | None = None,
        on_candidate: CandidateCallback | None = None,
    ) -> None:
        self._session = session
        self._extractor = extractor or DirectiveExtractor()
        self._sink = sink
        self._on_candidate = on_candidate

    @property
    def text(self) -> str:
        return self._session.text_buffer

    def accept(self, envelope: Envelope) -> list[DirectiveCandidate]:
        if envelope.kind != EnvelopeKind.token:
            return []
        return self.append(envelope.delta)

    def append(self, delta: str) -> list[DirectiveCandidate]:
        if not delta:
            return []
        self._session.append(delta)
        self._display(delta)

        candidates = self._extractor.scan(self._session)
        if self._on_candidate is not None:
            for candidate in candidates:
                self._on_candidate(candidate)
        return candidates

    def _display(self, delta: str) -> None:
        if self._sink is None:
            return
        try:
            self._sink(delta)
        except Exception:
            logger.warning("Display sink failed; continuing stream", exc_info=True)


__all__ = ["CandidateCallback", "TokenAccumulator"]
