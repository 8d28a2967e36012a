from __future__ import annotations

from typing import Protocol, runtime_checkable

from skyops.models.approval import ApprovalRecord


@runtime_checkable
class DisplaySink(Protocol):
    """Receives each text delta as soon as it is accumulated."""

    def __call__(self, delta: str) -> None: ...


@runtime_checkable
class ApprovalListener(Protocol):
    """Notified whenever a record is created or decided."""

    def __call__(self, record: ApprovalRecord) -> None: ...


__all__ = ["ApprovalListener", "DisplaySink"]
