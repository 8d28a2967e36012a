from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from skyops.models.directives import Directive, ImpactLevel
from skyops.models.messages import utc_now


class ApprovalStatus(StrEnum):
    pending = "PENDING"
    approved = "APPROVED"
    rejected = "REJECTED"


class ApprovalRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    directive: Directive
    impact: ImpactLevel
    status: ApprovalStatus = ApprovalStatus.pending
    reason: str | None = None
    turn_id: str | None = None
    requested_at: datetime = Field(default_factory=utc_now)
    resolved_at: datetime | None = None
    resolved_by: str | None = None

    @field_validator("requested_at", "resolved_at")
    @classmethod
    def _ensure_timezone_aware(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
            raise ValueError("datetime fields must be timezone-aware")
        return value

    @model_validator(mode="after")
    def _validate_resolution_fields(self) -> ApprovalRecord:
        if self.status == ApprovalStatus.pending:
            if self.resolved_at is not None or self.resolved_by is not None:
                raise ValueError("resolved fields require a decision")
            return self
        if self.resolved_at is None or self.resolved_by is None:
            raise ValueError("resolved_at and resolved_by are required once decided")
        return self

    @property
    def is_pending(self) -> bool:
        return self.status == ApprovalStatus.pending

    def as_display(self) -> dict[str, object]:
        """External ``{id, action, impact, status, reason}`` shape."""
        return {
            "id": self.id,
            "action": self.directive.as_action(),
            "impact": self.impact.value,
            "status": self.status.value,
            "reason": self.reason,
        }


__all__ = ["ApprovalRecord", "ApprovalStatus"]
