"""Prometheus metrics for the directive pipeline.

All metric objects are module-level singletons registered on the default
``prometheus_client`` registry.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager

from prometheus_client import Counter, Histogram, generate_latest

TURNS_TOTAL = Counter("skyops_turns_total", "Conversational turns by outcome", ["outcome"])
TURN_DURATION_SECONDS = Histogram("skyops_turn_duration_seconds", "Turn duration in seconds")
FRAMES_MALFORMED_TOTAL = Counter(
    "skyops_frames_malformed_total", "Stream frames whose payload was not a JSON object"
)
DIRECTIVES_EXTRACTED_TOTAL = Counter(
    "skyops_directives_extracted_total", "Closed directive blocks found in reply text"
)
DIRECTIVES_DROPPED_TOTAL = Counter(
    "skyops_directives_dropped_total", "Directive candidates dropped", ["reason"]
)
DIRECTIVES_DISPATCHED_TOTAL = Counter(
    "skyops_directives_dispatched_total", "Dispatch attempts", ["type", "outcome"]
)
APPROVALS_CREATED_TOTAL = Counter(
    "skyops_approvals_created_total", "Approval records created", ["impact"]
)
APPROVALS_DECIDED_TOTAL = Counter(
    "skyops_approvals_decided_total", "Approval records decided", ["status"]
)

metrics_generate_latest = generate_latest


@contextmanager
def observe_turn_duration() -> Iterator[None]:
    """Observe wall-clock duration of the enclosed turn."""
    start = time.monotonic()
    try:
        yield
    finally:
        TURN_DURATION_SECONDS.observe(time.monotonic() - start)


__all__ = [
    "APPROVALS_CREATED_TOTAL",
    "APPROVALS_DECIDED_TOTAL",
    "DIRECTIVES_DISPATCHED_TOTAL",
    "DIRECTIVES_DROPPED_TOTAL",
    "DIRECTIVES_EXTRACTED_TOTAL",
    "FRAMES_MALFORMED_TOTAL",
    "TURNS_TOTAL",
    "TURN_DURATION_SECONDS",
    "metrics_generate_latest",
    "observe_turn_duration",
]
