from skyops.directives.extractor import DirectiveExtractor
from skyops.directives.impact import classify_impact, requires_approval
from skyops.directives.validator import (
    DirectiveError,
    DirectiveParseError,
    DirectiveValidationError,
    DirectiveValidator,
)

__all__ = [
    "DirectiveError",
    "DirectiveExtractor",
    "DirectiveParseError",
    "DirectiveValidationError",
    "DirectiveValidator",
    "classify_impact",
    "requires_approval",
]
