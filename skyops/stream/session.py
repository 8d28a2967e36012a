from __future__ import annotations

import uuid
from dataclasses import dataclass, field


@dataclass(slots=True)
class StreamSession:
    """Mutable per-turn stream state.

    ``text_buffer`` only ever grows. ``emitted_length`` marks the end of the
    last closed directive block; the scanner never looks before it.
    """

    turn_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    raw_tail: str = ""
    text_buffer: str = ""
    emitted_length: int = 0
    open_block_start: int | None = None
    # Lookback cursors so a marker split across appends is still found.
    start_scan_from: int = 0
    end_scan_from: int = 0
    ended: bool = False
    aborted: bool = False

    def append(self, delta: str) -> None:
        self.text_buffer += delta

    @property
    def closed(self) -> bool:
        return self.ended or self.aborted


__all__ = ["StreamSession"]
