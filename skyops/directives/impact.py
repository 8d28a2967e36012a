from __future__ import annotations

from types import MappingProxyType

from skyops.models.directives import Directive, DirectiveType, ImpactLevel

# Types missing from this table classify as LOW.
IMPACT_TABLE: MappingProxyType[DirectiveType, ImpactLevel] = MappingProxyType(
    {
        DirectiveType.delay_flight: ImpactLevel.low,
        DirectiveType.cancel_flight: ImpactLevel.high,
        DirectiveType.reassign_crew: ImpactLevel.medium,
        DirectiveType.set_fuel_policy: ImpactLevel.low,
        DirectiveType.open_pr_statement: ImpactLevel.low,
        DirectiveType.schedule_maint: ImpactLevel.low,
        DirectiveType.swap_aircraft: ImpactLevel.medium,
        DirectiveType.adjust_price: ImpactLevel.low,
    }
)


def classify_impact(directive: Directive | DirectiveType) -> ImpactLevel:
    """Map a directive (or its type) to the risk tier that gates it."""
    directive_type = (
        directive if isinstance(directive, DirectiveType) else directive.directive_type
    )
    return IMPACT_TABLE.get(directive_type, ImpactLevel.low)


def requires_approval(impact: ImpactLevel) -> bool:
    return impact != ImpactLevel.low


__all__ = ["IMPACT_TABLE", "classify_impact", "requires_approval"]
