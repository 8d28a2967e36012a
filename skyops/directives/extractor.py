"""Incremental scanner for ``<action>...</action>`` blocks in streamed text.

The scanner keeps a single open block per session. A block that spans any
number of appends is emitted exactly once, when its end marker arrives, and
the result does not depend on where the stream was cut. A second start marker
inside an open block is ordinary inner text, which gives the same blocks as a
lazy regex run over the finished reply.
"""

from __future__ import annotations

import logging

from skyops.models.stream import DirectiveCandidate
from skyops.stream.session import StreamSession

logger = logging.getLogger(__name__)

START_MARKER = "<action>"
END_MARKER = "</action>"


class DirectiveExtractor:
    def __init__(self, start_marker: str = START_MARKER, end_marker: str = END_MARKER) -> None:
        self.start_marker = start_marker
        self.end_marker = end_marker

    def scan(self, session: StreamSession) -> list[DirectiveCandidate]:
        """Return blocks closed since the previous scan, in buffer order."""
        buffer = session.text_buffer
        found: list[DirectiveCandidate] = []

        while True:
            if session.open_block_start is None:
                search_from = max(session.start_scan_from, session.emitted_length)
                start = buffer.find(self.start_marker, search_from)
                if start == -1:
                    # A start marker may be split across this append and the next.
                    session.start_scan_from = max(
                        session.emitted_length,
                        len(buffer) - len(self.start_marker) + 1,
                    )
                    return found
                session.open_block_start = start
                session.end_scan_from = start + len(self.start_marker)

            inner_start = session.open_block_start + len(self.start_marker)
            end = buffer.find(self.end_marker, max(inner_start, session.end_scan_from))
            if end == -1:
                session.end_scan_from = max(inner_start, len(buffer) - len(self.end_marker) + 1)
                return found

            block_end = end + len(self.end_marker)
            found.append(
                DirectiveCandidate(
                    raw=buffer[inner_start:end],
                    start=session.open_block_start,
                    end=block_end,
                )
            )
            logger.debug(
                "Closed directive block at [%d, %d)", session.open_block_start, block_end
            )
            session.emitted_length = block_end
            session.start_scan_from = block_end
            session.open_block_start = None
            session.end_scan_from = block_end


__all__ = ["END_MARKER", "START_MARKER", "DirectiveExtractor"]
