"""In-memory operations board: the default owner of directive capabilities.

Holds the flight table and the side effects an approved directive can have
(delays, cancellations, crew and tail changes, maintenance slots, PR drafts,
fares, fuel policy). Every mutation is also written to the event feed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from enum import StrEnum

from pydantic import BaseModel, Field

from skyops.execution.dispatcher import CapabilityRegistry
from skyops.models.directives import DirectiveType
from skyops.models.messages import utc_now

logger = logging.getLogger(__name__)


class FlightStatus(StrEnum):
    on_time = "ON_TIME"
    delayed = "DELAYED"
    cancelled = "CANCELLED"


class Flight(BaseModel):
    id: str
    origin: str
    destination: str
    std: str
    sta: str
    etd: str
    eta: str
    tail: str
    status: FlightStatus = FlightStatus.on_time
    delay_min: int | float = 0
    notes: list[str] = Field(default_factory=list)
    wx: str = ""
    crew_ids: list[str] = Field(default_factory=list)
    fuel_policy: str | None = None
    extra_fuel_kg: int | float | None = None


class FeedEvent(BaseModel):
    level: str
    text: str
    at: datetime = Field(default_factory=utc_now)


class MaintenanceSlot(BaseModel):
    tail: str
    slot: str


class PrDraft(BaseModel):
    topic: str
    key_points: list[str]


def _shift_clock(hhmm: str, minutes: int | float) -> str:
    base = datetime.strptime(hhmm, "%H:%M")
    return (base + timedelta(minutes=minutes)).strftime("%H:%M")


def default_flights() -> list[Flight]:
    return [
        Flight(
            id="CA1347", origin="JFK", destination="LHR",
            std="10:20", sta="22:30", etd="10:50", eta="23:10",
            tail="N123CA", status=FlightStatus.delayed, delay_min=30,
            notes=["De-Icing Queue"], wx="Light snow",
        ),
        Flight(
            id="CA220", origin="ZRH", destination="JFK",
            std="12:10", sta="15:35", etd="12:10", eta="15:35",
            tail="HB-CAA", notes=["Crew ready"], wx="CAVOK",
        ),
    ]


class OpsBoard:
    def __init__(self, flights: list[Flight] | None = None) -> None:
        self.flights: dict[str, Flight] = {
            flight.id: flight for flight in (flights if flights is not None else default_flights())
        }
        self.feed: list[FeedEvent] = []
        self.maintenance: list[MaintenanceSlot] = []
        self.pr_drafts: list[PrDraft] = []
        self.fare_adjustments: dict[str, float] = {}
        self.fuel_policy: str = "standard"

    def _flight(self, flight_id: str) -> Flight:
        flight = self.flights.get(flight_id)
        if flight is None:
            raise KeyError(f"unknown flight: {flight_id}")
        return flight

    def _push(self, level: str, text: str) -> None:
        # Newest first, like the dashboard feed.
        self.feed.insert(0, FeedEvent(level=level, text=text))
        logger.info("[%s] %s", level, text)

    def apply_delay(self, flight_id: str, minutes: int | float, reason: str = "GPT") -> None:
        flight = self._flight(flight_id)
        flight.delay_min += minutes
        flight.etd = _shift_clock(flight.etd, minutes)
        flight.eta = _shift_clock(flight.eta, minutes)
        if flight.status != FlightStatus.cancelled:
            flight.status = FlightStatus.delayed
        flight.notes.append(reason)
        self._push("urgent", f"Flight {flight_id} delayed {minutes} min ({reason})")

    def cancel_flight(self, flight_id: str, reason: str = "GPT") -> None:
        flight = self._flight(flight_id)
        flight.status = FlightStatus.cancelled
        flight.notes.append(reason)
        self._push("urgent", f"Flight {flight_id} cancelled ({reason})")

    def reassign_crew(self, flight_id: str, crew_ids: list[str]) -> None:
        flight = self._flight(flight_id)
        flight.crew_ids = list(crew_ids)
        self._push("info", f"Crew for {flight_id}: {', '.join(crew_ids) or 'unassigned'}")

    def set_fuel_policy(
        self,
        policy: str,
        flight_id: str | None = None,
        extra_fuel_kg: int | float | None = None,
    ) -> None:
        if flight_id is None:
            self.fuel_policy = policy
            self._push("info", f"Fleet fuel policy set to {policy}")
            return
        flight = self._flight(flight_id)
        flight.fuel_policy = policy
        flight.extra_fuel_kg = extra_fuel_kg
        self._push("info", f"Fuel policy for {flight_id} set to {policy}")

    def open_pr_draft(self, topic: str, key_points: list[str]) -> None:
        self.pr_drafts.append(PrDraft(topic=topic, key_points=list(key_points)))
        self._push("info", f"PR statement drafted: {topic}")

    def schedule_maintenance(self, tail: str, slot: str = "next-available") -> None:
        self.maintenance.append(MaintenanceSlot(tail=tail, slot=slot))
        self._push("info", f"Maintenance check for {tail} at {slot}")

    def swap_aircraft(
        self,
        from_flight_id: str,
        to_flight_id: str | None = None,
        tail: str | None = None,
    ) -> None:
        source = self._flight(from_flight_id)
        if to_flight_id is not None:
            target = self._flight(to_flight_id)
            source.tail, target.tail = target.tail, source.tail
            self._push("urgent", f"Aircraft swapped between {from_flight_id} and {to_flight_id}")
        elif tail is not None:
            source.tail = tail
            self._push("urgent", f"Flight {from_flight_id} now operated by {tail}")
        else:
            source.notes.append("Aircraft swap requested")
            self._push("info", f"Aircraft swap requested for {from_flight_id}")

    def adjust_pricing(self, market: str, delta: int | float = 0) -> None:
        self.fare_adjustments[market] = self.fare_adjustments.get(market, 0) + delta
        self._push("info", f"Fares in {market} adjusted by {delta:+}")

    def summary(self) -> str:
        """Compact state description for the system prompt."""
        lines = [
            f"{f.id} {f.origin}->{f.destination} STD {f.std} ETD {f.etd} tail {f.tail} "
            f"{f.status.value} delay {f.delay_min}min wx {f.wx or '-'}"
            for f in self.flights.values()
        ]
        lines.append(f"Fleet fuel policy: {self.fuel_policy}")
        if self.maintenance:
            lines.append(
                "Maintenance: " + ", ".join(f"{m.tail}@{m.slot}" for m in self.maintenance)
            )
        return "\n".join(lines)

    def register_handlers(self, registry: CapabilityRegistry) -> CapabilityRegistry:
        registry.register(DirectiveType.delay_flight, self.apply_delay)
        registry.register(DirectiveType.cancel_flight, self.cancel_flight)
        registry.register(DirectiveType.reassign_crew, self.reassign_crew)
        registry.register(DirectiveType.set_fuel_policy, self.set_fuel_policy)
        registry.register(DirectiveType.open_pr_statement, self.open_pr_draft)
        registry.register(DirectiveType.schedule_maint, self.schedule_maintenance)
        registry.register(DirectiveType.swap_aircraft, self.swap_aircraft)
        registry.register(DirectiveType.adjust_price, self.adjust_pricing)
        return registry


__all__ = [
    "FeedEvent",
    "Flight",
    "FlightStatus",
    "MaintenanceSlot",
    "OpsBoard",
    "PrDraft",
    "default_flights",
]
