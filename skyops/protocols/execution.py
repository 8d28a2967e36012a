from __future__ import annotations

from typing import Protocol, runtime_checkable

from skyops.models.directives import Directive, DirectiveType
from skyops.models.execution import DispatchOutcome


@runtime_checkable
class DirectiveHandler(Protocol):
    """State-mutating capability invoked with positional directive fields."""

    def __call__(self, *args: object) -> object: ...


@runtime_checkable
class Dispatcher(Protocol):
    def dispatch(self, directive: Directive) -> DispatchOutcome: ...

    def has_handler(self, directive_type: DirectiveType) -> bool: ...


__all__ = ["DirectiveHandler", "Dispatcher"]
