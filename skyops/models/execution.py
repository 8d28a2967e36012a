from __future__ import annotations

from enum import StrEnum


class DispatchOutcome(StrEnum):
    dispatched = "dispatched"
    handler_missing = "handler_missing"
    handler_failed = "handler_failed"


__all__ = ["DispatchOutcome"]
