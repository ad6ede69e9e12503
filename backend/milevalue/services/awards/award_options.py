"""Award options: deduplication and display grouping.

Deduplication removes the same offer seen twice (identical flight, fare
bucket, carrier and flight numbers). Grouping is looser: it drops carrier and
flight numbers so code-share copies of one offer collapse into a primary
entry with alternatives.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from milevalue.services.awards.cabins import CABINS, cabin_display
from milevalue.services.awards.timestamps import to_hhmm
from milevalue.services.awards.valuation import value

logger = logging.getLogger(__name__)


@dataclass
class AwardOption:
    """One redemption offer extracted from an enrichment record."""

    id: str
    miles: int
    tax: float
    cabin: str
    carrier: str
    origin: str
    destination: str
    departure: str
    arrival: str
    duration_minutes: int = 0
    flight_numbers: list[str] = field(default_factory=list)
    layovers: list[str] = field(default_factory=list)
    seats: int = 0
    transfer_options: list[dict[str, Any]] = field(default_factory=list)
    itinerary: dict[str, Any] = field(default_factory=dict)

    # Route the option was extracted against, kept for matching
    route_origin: str = ""
    route_destination: str = ""
    source: str = "direct"           # "direct" | "legacy"

    @property
    def route(self) -> str:
        return f"{self.origin}-{self.destination}"

    def value(self, per_mile_value: float) -> float:
        return value(self.miles, self.tax, per_mile_value)

    def to_dict(self, per_mile_value: float | None = None) -> dict:
        d = {
            "id": self.id,
            "miles": self.miles,
            "tax": round(self.tax, 2),
            "cabin": self.cabin,
            "cabin_display": cabin_display(self.cabin),
            "carrier": self.carrier,
            "flight_numbers": self.flight_numbers,
            "origin": self.origin,
            "destination": self.destination,
            "departure": self.departure,
            "arrival": self.arrival,
            "duration_minutes": self.duration_minutes,
            "layovers": self.layovers,
            "seats": self.seats,
            "transfer_options": self.transfer_options,
            "route_origin": self.route_origin,
            "route_destination": self.route_destination,
            "source": self.source,
        }
        if per_mile_value is not None:
            d["value"] = round(self.value(per_mile_value), 2)
        return d


@dataclass
class AwardGroup:
    """Near-identical award options: the cheapest as primary, the rest as alternatives."""

    primary: AwardOption
    alternatives: list[AwardOption] = field(default_factory=list)

    @property
    def size(self) -> int:
        return 1 + len(self.alternatives)

    def to_dict(self, per_mile_value: float | None = None) -> dict:
        return {
            "primary": self.primary.to_dict(per_mile_value),
            "alternatives": [a.to_dict(per_mile_value) for a in self.alternatives],
        }


def dedup_key(option: AwardOption) -> str:
    return "-".join([
        option.origin,
        option.destination,
        to_hhmm(option.departure),
        to_hhmm(option.arrival),
        str(option.duration_minutes),
        str(option.miles),
        f"{option.tax:.2f}",
        option.cabin,
        option.carrier,
        ",".join(option.flight_numbers),
    ])


def group_key(option: AwardOption) -> str:
    return "|".join([
        option.route,
        to_hhmm(option.departure),
        to_hhmm(option.arrival),
        str(option.duration_minutes),
        option.cabin,
        str(option.miles),
        f"{option.tax:.2f}",
        ",".join(option.layovers),
    ])


def deduplicate_award_options(options: list[AwardOption]) -> list[AwardOption]:
    """Drop repeated offers, replacing a kept entry only when a duplicate has strictly more seats.

    First-seen order is preserved; a replacement takes its predecessor's slot.
    """
    unique: dict[str, AwardOption] = {}
    for option in options:
        key = dedup_key(option)
        existing = unique.get(key)
        if existing is None:
            unique[key] = option
        elif option.seats > existing.seats:
            unique[key] = option
    dropped = len(options) - len(unique)
    if dropped:
        logger.debug(f"Deduplicated {dropped} of {len(options)} award options")
    return list(unique.values())


def group_award_options(options: list[AwardOption], per_mile_value: float) -> list[AwardGroup]:
    """Cluster options by route, times, duration, cabin, miles, tax and layovers.

    Within a cluster the cheapest option is primary. Clusters are ordered by
    their primary's value, then by first appearance.
    """
    clusters: dict[str, list[AwardOption]] = {}
    for option in options:
        clusters.setdefault(group_key(option), []).append(option)

    groups = []
    for members in clusters.values():
        ranked = sorted(members, key=lambda o: o.value(per_mile_value))
        groups.append(AwardGroup(primary=ranked[0], alternatives=ranked[1:]))

    groups.sort(key=lambda g: g.primary.value(per_mile_value))
    return groups


def awards_by_cabin(options: list[AwardOption], per_mile_value: float) -> dict[str, list[AwardOption]]:
    """Bucket options by cabin in display order, each bucket sorted by value."""
    buckets: dict[str, list[AwardOption]] = {cabin: [] for cabin in CABINS}
    for option in options:
        buckets.setdefault(option.cabin, []).append(option)
    return {
        cabin: sorted(members, key=lambda o: o.value(per_mile_value))
        for cabin, members in buckets.items()
        if members
    }


def cheapest_per_cabin(options: list[AwardOption], per_mile_value: float) -> dict[str, AwardOption]:
    return {cabin: members[0] for cabin, members in awards_by_cabin(options, per_mile_value).items()}
