"""Route admitted directives to the state-mutation capability for their type.

The dispatcher holds no business logic. Handlers are plain callables supplied
by the operations collaborator and receive the validated fields positionally,
in the parameter order listed in ``HANDLER_ARGUMENTS``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from skyops.core.metrics import DIRECTIVES_DISPATCHED_TOTAL
from skyops.core.telemetry import get_tracer
from skyops.models.directives import Directive, DirectiveType
from skyops.models.execution import DispatchOutcome
from skyops.protocols.execution import DirectiveHandler

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

# (wire field name, default when the directive omits it)
HANDLER_ARGUMENTS: Mapping[DirectiveType, tuple[tuple[str, object], ...]] = {
    DirectiveType.delay_flight: (("flightId", None), ("minutes", None), ("reason", "GPT")),
    DirectiveType.cancel_flight: (("flightId", None), ("reason", "GPT")),
    DirectiveType.reassign_crew: (("flightId", None), ("crewIds", ())),
    DirectiveType.set_fuel_policy: (("policy", None), ("flightId", None), ("extraFuelKg", None)),
    DirectiveType.open_pr_statement: (("topic", None), ("keyPoints", ())),
    DirectiveType.schedule_maint: (("tail", None), ("slot", "next-available")),
    DirectiveType.swap_aircraft: (("fromFlightId", None), ("toFlightId", None), ("tail", None)),
    DirectiveType.adjust_price: (("market", None), ("delta", 0)),
}


def handler_arguments(directive: Directive) -> tuple[object, ...]:
    """Translate validated fields into the handler's positional parameters."""
    fields = directive.fields
    parameters = HANDLER_ARGUMENTS[directive.directive_type]
    return tuple(fields.get(name, default) for name, default in parameters)


class CapabilityRegistry:
    """Explicit directive-type -> handler mapping."""

    def __init__(
        self,
        handlers: Mapping[DirectiveType | str, DirectiveHandler] | None = None,
    ) -> None:
        self._handlers: dict[DirectiveType, DirectiveHandler] = {}
        for directive_type, handler in (handlers or {}).items():
            self.register(directive_type, handler)

    def register(self, directive_type: DirectiveType | str, handler: DirectiveHandler) -> None:
        if not callable(handler):
            raise TypeError(f"handler for {directive_type} must be callable")
        self._handlers[DirectiveType(directive_type)] = handler

    def unregister(self, directive_type: DirectiveType | str) -> None:
        self._handlers.pop(DirectiveType(directive_type), None)

    def get(self, directive_type: DirectiveType) -> DirectiveHandler | None:
        return self._handlers.get(directive_type)

    def registered_types(self) -> list[DirectiveType]:
        return sorted(self._handlers, key=lambda item: item.value)

    def __contains__(self, directive_type: object) -> bool:
        return directive_type in self._handlers


class ExecutionDispatcher:
    def __init__(self, registry: CapabilityRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> CapabilityRegistry:
        return self._registry

    def has_handler(self, directive_type: DirectiveType) -> bool:
        return directive_type in self._registry

    def dispatch(self, directive: Directive) -> DispatchOutcome:
        directive_type = directive.directive_type
        with _tracer.start_as_current_span("skyops.dispatch") as span:
            span.set_attribute("skyops.directive.type", directive_type.value)
            outcome = self._invoke(directive)
            span.set_attribute("skyops.dispatch.outcome", outcome.value)
        DIRECTIVES_DISPATCHED_TOTAL.labels(type=directive_type.value, outcome=outcome.value).inc()
        return outcome

    def _invoke(self, directive: Directive) -> DispatchOutcome:
        directive_type = directive.directive_type
        handler = self._registry.get(directive_type)
        if handler is None:
            logger.warning("No handler registered for %s; directive skipped", directive_type.value)
            return DispatchOutcome.handler_missing

        args = handler_arguments(directive)
        try:
            handler(*args)
        except Exception:
            logger.exception("Handler for %s raised", directive_type.value)
            return DispatchOutcome.handler_failed

        logger.info("Dispatched %s", directive_type.value)
        return DispatchOutcome.dispatched


__all__ = [
    "HANDLER_ARGUMENTS",
    "CapabilityRegistry",
    "ExecutionDispatcher",
    "handler_arguments",
]
