from __future__ import annotations

from skyops.models.approval import ApprovalRecord, ApprovalStatus
from skyops.models.directives import (
    AdjustPrice,
    CancelFlight,
    DelayFlight,
    Directive,
    DirectiveType,
    ImpactLevel,
    OpenPrStatement,
    ReassignCrew,
    ScheduleMaint,
    SetFuelPolicy,
    SwapAircraft,
)
from skyops.models.execution import DispatchOutcome
from skyops.models.messages import ChatMessage, ChatRequest, ChatRole, utc_now
from skyops.models.stream import DirectiveCandidate, Envelope, EnvelopeKind

__all__ = [
    "AdjustPrice",
    "ApprovalRecord",
    "ApprovalStatus",
    "CancelFlight",
    "ChatMessage",
    "ChatRequest",
    "ChatRole",
    "DelayFlight",
    "Directive",
    "DirectiveCandidate",
    "DirectiveType",
    "DispatchOutcome",
    "Envelope",
    "EnvelopeKind",
    "ImpactLevel",
    "OpenPrStatement",
    "ReassignCrew",
    "ScheduleMaint",
    "SetFuelPolicy",
    "SwapAircraft",
    "utc_now",
]
