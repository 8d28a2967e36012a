"""Candidate -> directive -> gate, with logging of everything that is dropped."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from skyops.approval.gate import ApprovalGate
from skyops.config import DuplicatePolicy
from skyops.core.metrics import DIRECTIVES_DROPPED_TOTAL, DIRECTIVES_EXTRACTED_TOTAL
from skyops.directives.impact import classify_impact
from skyops.directives.validator import (
    DirectiveParseError,
    DirectiveValidationError,
    DirectiveValidator,
)
from skyops.models.approval import ApprovalRecord
from skyops.models.directives import Directive, ImpactLevel
from skyops.models.stream import DirectiveCandidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AdmittedDirective:
    directive: Directive
    impact: ImpactLevel
    # Set when the directive was queued instead of dispatched.
    record: ApprovalRecord | None = None


@dataclass(slots=True)
class DirectivePipeline:
    gate: ApprovalGate
    validator: DirectiveValidator = field(default_factory=DirectiveValidator)
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.allow
    _turn_id: str | None = field(default=None, init=False, repr=False)
    _turn_seen: set[str] = field(default_factory=set, init=False, repr=False)
    _session_seen: set[str] = field(default_factory=set, init=False, repr=False)

    def begin_turn(self, turn_id: str) -> None:
        self._turn_id = turn_id
        self._turn_seen.clear()

    def process(self, candidate: DirectiveCandidate) -> AdmittedDirective | None:
        DIRECTIVES_EXTRACTED_TOTAL.inc()
        try:
            directive = self.validator.validate(candidate)
        except DirectiveParseError as exc:
            DIRECTIVES_DROPPED_TOTAL.labels(reason="parse").inc()
            logger.warning("Dropping directive block at %d: %s", candidate.start, exc)
            return None
        except DirectiveValidationError as exc:
            DIRECTIVES_DROPPED_TOTAL.labels(reason="validation").inc()
            logger.warning("Dropping directive block at %d: %s", candidate.start, exc)
            return None

        if self._is_duplicate(directive):
            DIRECTIVES_DROPPED_TOTAL.labels(reason="duplicate").inc()
            logger.info("Suppressing repeated %s directive", directive.directive_type.value)
            return None

        record = self.gate.propose(directive, turn_id=self._turn_id)
        return AdmittedDirective(
            directive=directive,
            impact=classify_impact(directive),
            record=record,
        )

    def _is_duplicate(self, directive: Directive) -> bool:
        if self.duplicate_policy == DuplicatePolicy.allow:
            return False
        seen = (
            self._turn_seen
            if self.duplicate_policy == DuplicatePolicy.suppress_turn
            else self._session_seen
        )
        fingerprint = directive.fingerprint()
        if fingerprint in seen:
            return True
        seen.add(fingerprint)
        return False


__all__ = ["AdmittedDirective", "DirectivePipeline"]
