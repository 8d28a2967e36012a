"""Trust boundary between model output and state-mutating code.

Inner block text is untrusted. It becomes a ``Directive`` only when it parses
as a JSON object whose ``type`` is allow-listed and whose fields satisfy that
type's schema; anything else raises and is dropped by the caller.
"""

from __future__ import annotations

import json
from collections.abc import Mapping

from pydantic import TypeAdapter, ValidationError

from skyops.models.directives import Directive, DirectiveType
from skyops.models.stream import DirectiveCandidate

_DIRECTIVE_ADAPTER: TypeAdapter[Directive] = TypeAdapter(Directive)
_ALLOWED_TYPES = frozenset(item.value for item in DirectiveType)


class DirectiveError(ValueError):
    """Base class for candidates that cannot become a directive."""


class DirectiveParseError(DirectiveError):
    """Inner text is not a JSON object."""


class DirectiveValidationError(DirectiveError):
    """Unknown type, or a required field is missing or mistyped."""

    def __init__(self, message: str, *, directive_type: str | None = None) -> None:
        super().__init__(message)
        self.directive_type = directive_type


def _reject_constant(token: str) -> object:
    raise ValueError(f"non-finite number {token!r} is not valid JSON")


class DirectiveValidator:
    def validate(self, candidate: DirectiveCandidate | str) -> Directive:
        raw = candidate.raw if isinstance(candidate, DirectiveCandidate) else candidate
        try:
            payload = json.loads(raw, parse_constant=_reject_constant)
        except ValueError as exc:
            raise DirectiveParseError(f"directive body is not valid JSON: {exc}") from exc
        if not isinstance(payload, Mapping):
            raise DirectiveParseError("directive body must be a JSON object")
        return self.validate_mapping(payload)

    def validate_mapping(self, payload: Mapping[str, object]) -> Directive:
        directive_type = payload.get("type")
        if not isinstance(directive_type, str) or directive_type not in _ALLOWED_TYPES:
            raise DirectiveValidationError(
                f"directive type {directive_type!r} is not allow-listed",
                directive_type=directive_type if isinstance(directive_type, str) else None,
            )
        try:
            return _DIRECTIVE_ADAPTER.validate_python(dict(payload))
        except ValidationError as exc:
            fields = ", ".join(
                ".".join(str(part) for part in error["loc"][1:]) or "<root>"
                for error in exc.errors()
            )
            raise DirectiveValidationError(
                f"{directive_type} failed schema validation: {fields}",
                directive_type=directive_type,
            ) from exc


__all__ = [
    "DirectiveError",
    "DirectiveParseError",
    "DirectiveValidationError",
    "DirectiveValidator",
]
