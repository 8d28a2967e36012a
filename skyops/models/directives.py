"""Typed directive schemas.

Each allow-listed directive type is a frozen model keyed by its ``type``
literal; together they form the ``Directive`` tagged union that the validator
builds from untrusted ``<action>`` payloads. Field names follow the wire
format (``flightId``, ``crewIds``) through aliases.
"""

from __future__ import annotations

import json
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import (
    AllowInfNan,
    BaseModel,
    ConfigDict,
    Field,
    Strict,
    StrictInt,
    StrictStr,
    StringConstraints,
)


class DirectiveType(StrEnum):
    delay_flight = "DELAY_FLIGHT"
    cancel_flight = "CANCEL_FLIGHT"
    reassign_crew = "REASSIGN_CREW"
    set_fuel_policy = "SET_FUEL_POLICY"
    open_pr_statement = "OPEN_PR_STATEMENT"
    schedule_maint = "SCHEDULE_MAINT"
    swap_aircraft = "SWAP_AIRCRAFT"
    adjust_price = "ADJUST_PRICE"


class ImpactLevel(StrEnum):
    low = "LOW"
    medium = "MEDIUM"
    high = "HIGH"


# JSON strings only; blank identifiers are treated as missing.
Identifier = Annotated[StrictStr, StringConstraints(strip_whitespace=True, min_length=1)]
# JSON numbers only: booleans, numeric strings and NaN/Infinity are rejected.
Number = StrictInt | Annotated[float, Strict(), AllowInfNan(False)]


class _DirectiveBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    reason: StrictStr | None = None

    @property
    def directive_type(self) -> DirectiveType:
        return DirectiveType(getattr(self, "type"))

    @property
    def fields(self) -> dict[str, object]:
        """Validated fields under their wire names, without ``type``."""
        return self.model_dump(mode="json", by_alias=True, exclude={"type"}, exclude_none=True)

    def as_action(self) -> dict[str, object]:
        """Wire-shaped ``{type, ...fields}`` mapping used for display and audit."""
        return {"type": self.directive_type.value, **self.fields}

    def fingerprint(self) -> str:
        return json.dumps(self.as_action(), sort_keys=True, separators=(",", ":"))


class DelayFlight(_DirectiveBase):
    type: Literal["DELAY_FLIGHT"] = "DELAY_FLIGHT"
    flight_id: Identifier = Field(alias="flightId")
    minutes: Number


class CancelFlight(_DirectiveBase):
    type: Literal["CANCEL_FLIGHT"] = "CANCEL_FLIGHT"
    flight_id: Identifier = Field(alias="flightId")


class ReassignCrew(_DirectiveBase):
    type: Literal["REASSIGN_CREW"] = "REASSIGN_CREW"
    flight_id: Identifier = Field(alias="flightId")
    crew_ids: tuple[StrictStr, ...] = Field(alias="crewIds")


class SetFuelPolicy(_DirectiveBase):
    type: Literal["SET_FUEL_POLICY"] = "SET_FUEL_POLICY"
    policy: Identifier
    flight_id: Identifier | None = Field(default=None, alias="flightId")
    extra_fuel_kg: Number | None = Field(default=None, alias="extraFuelKg")


class OpenPrStatement(_DirectiveBase):
    type: Literal["OPEN_PR_STATEMENT"] = "OPEN_PR_STATEMENT"
    topic: Identifier
    key_points: tuple[StrictStr, ...] = Field(alias="keyPoints")


class ScheduleMaint(_DirectiveBase):
    type: Literal["SCHEDULE_MAINT"] = "SCHEDULE_MAINT"
    tail: Identifier
    slot: Identifier


class SwapAircraft(_DirectiveBase):
    type: Literal["SWAP_AIRCRAFT"] = "SWAP_AIRCRAFT"
    from_flight_id: Identifier = Field(alias="fromFlightId")
    to_flight_id: Identifier | None = Field(default=None, alias="toFlightId")
    tail: Identifier | None = None


class AdjustPrice(_DirectiveBase):
    type: Literal["ADJUST_PRICE"] = "ADJUST_PRICE"
    market: Identifier
    delta: Number


Directive = Annotated[
    DelayFlight
    | CancelFlight
    | ReassignCrew
    | SetFuelPolicy
    | OpenPrStatement
    | ScheduleMaint
    | SwapAircraft
    | AdjustPrice,
    Field(discriminator="type"),
]


__all__ = [
    "AdjustPrice",
    "CancelFlight",
    "DelayFlight",
    "Directive",
    "DirectiveType",
    "Identifier",
    "ImpactLevel",
    "Number",
    "OpenPrStatement",
    "ReassignCrew",
    "ScheduleMaint",
    "SetFuelPolicy",
    "SwapAircraft",
]
