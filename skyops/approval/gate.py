"""Risk-tiered approval gate for validated directives.

LOW-impact directives go straight to the dispatcher. MEDIUM and HIGH ones are
parked as PENDING ``ApprovalRecord`` entries until an operator calls
``approve`` or ``reject``. Each record moves out of PENDING once and can
trigger at most one dispatch.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable

from skyops.core.logging import correlation_scope
from skyops.core.metrics import APPROVALS_CREATED_TOTAL, APPROVALS_DECIDED_TOTAL
from skyops.directives.impact import classify_impact, requires_approval
from skyops.models.approval import ApprovalRecord, ApprovalStatus
from skyops.models.directives import Directive
from skyops.models.messages import utc_now
from skyops.protocols.display import ApprovalListener
from skyops.protocols.execution import Dispatcher

logger = logging.getLogger(__name__)

# Ids handed out by any gate in this process.
_ISSUED_IDS: set[str] = set()


def new_approval_id() -> str:
    while True:
        candidate = f"APP-{uuid.uuid4().hex[:10].upper()}"
        if candidate not in _ISSUED_IDS:
            _ISSUED_IDS.add(candidate)
            return candidate


class ApprovalGate:
    def __init__(
        self,
        dispatcher: Dispatcher,
        *,
        on_change: ApprovalListener | None = None,
        id_factory: Callable[[], str] = new_approval_id,
    ) -> None:
        self._dispatcher = dispatcher
        self._on_change = on_change
        self._id_factory = id_factory
        # Creation order; display reverses it.
        self._records: list[ApprovalRecord] = []
        self._positions: dict[str, int] = {}

    @property
    def records(self) -> list[ApprovalRecord]:
        """All records, newest first."""
        return list(reversed(self._records))

    def pending(self) -> list[ApprovalRecord]:
        return [record for record in self.records if record.is_pending]

    def get(self, approval_id: str) -> ApprovalRecord | None:
        position = self._positions.get(approval_id)
        if position is None:
            return None
        return self._records[position]

    def as_display(self) -> list[dict[str, object]]:
        return [record.as_display() for record in self.records]

    def propose(self, directive: Directive, *, turn_id: str | None = None) -> ApprovalRecord | None:
        """Admit LOW directives immediately; queue the rest for a decision.

        Returns the new PENDING record, or ``None`` when the directive was
        dispatched without review.
        """
        impact = classify_impact(directive)
        if not requires_approval(impact):
            logger.info("Auto-admitting %s (impact %s)", directive.directive_type.value, impact.value)
            self._dispatcher.dispatch(directive)
            return None

        approval_id = self._id_factory()
        if approval_id in self._positions:
            raise ValueError(f"approval id already in use: {approval_id}")

        record = ApprovalRecord(
            id=approval_id,
            directive=directive,
            impact=impact,
            reason=directive.reason,
            turn_id=turn_id,
        )
        self._positions[approval_id] = len(self._records)
        self._records.append(record)
        APPROVALS_CREATED_TOTAL.labels(impact=impact.value).inc()
        with correlation_scope(approval_id=approval_id):
            logger.info(
                "Queued %s for approval (impact %s)", directive.directive_type.value, impact.value
            )
        self._notify(record)
        return record

    def approve(self, approval_id: str, *, resolved_by: str = "operator") -> bool:
        """PENDING -> APPROVED and dispatch once. No-op otherwise."""
        record = self._decide(approval_id, ApprovalStatus.approved, resolved_by)
        if record is None:
            return False
        with correlation_scope(approval_id=approval_id):
            self._dispatcher.dispatch(record.directive)
        return True

    def reject(self, approval_id: str, *, resolved_by: str = "operator") -> bool:
        """PENDING -> REJECTED. Never dispatches."""
        return self._decide(approval_id, ApprovalStatus.rejected, resolved_by) is not None

    def _decide(
        self,
        approval_id: str,
        status: ApprovalStatus,
        resolved_by: str,
    ) -> ApprovalRecord | None:
        position = self._positions.get(approval_id)
        if position is None:
            logger.debug("Ignoring decision for unknown approval %s", approval_id)
            return None

        # Status is checked here, at mutation time, not when the list was rendered.
        current = self._records[position]
        if not current.is_pending:
            logger.debug(
                "Ignoring %s for approval %s already %s",
                status.value,
                approval_id,
                current.status.value,
            )
            return None

        decided = current.model_copy(
            update={"status": status, "resolved_at": utc_now(), "resolved_by": resolved_by}
        )
        self._records[position] = decided
        APPROVALS_DECIDED_TOTAL.labels(status=status.value).inc()
        with correlation_scope(approval_id=approval_id):
            logger.info("Approval %s by %s", status.value, resolved_by)
        self._notify(decided)
        return decided

    def _notify(self, record: ApprovalRecord) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(record)
        except Exception:
            logger.warning("Approval listener failed for %s", record.id, exc_info=True)


__all__ = ["ApprovalGate", "new_approval_id"]
