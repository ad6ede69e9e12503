"""Slice fingerprints and code-share detection.

A fingerprint identifies the physical routing of a slice independent of who
sells it: origin|destination|departure|arrival|stops, with times truncated to
the minute. Two itineraries whose first slices share a fingerprint but not an
operating carrier are code-share siblings.
"""

import logging
import re
from dataclasses import dataclass, field

from milevalue.schemas.flight import Itinerary, Slice
from milevalue.services.awards.cabins import normalize_cabin
from milevalue.services.awards.timestamps import to_minute

logger = logging.getLogger(__name__)

_CARRIER_PREFIX = re.compile(r"^([A-Z0-9]{2})(?=\d)|^([A-Z]+)")
_TRAILING_DIGITS = re.compile(r"(\d+)$")


def fingerprint(slice_: Slice) -> str:
    """Canonical routing key for a slice, ignoring carrier and cabin."""
    return "|".join([
        slice_.origin.code,
        slice_.destination.code,
        to_minute(slice_.departure),
        to_minute(slice_.arrival),
        ",".join(slice_.stop_codes),
    ])


def operating_carrier(slice_: Slice) -> str:
    """Carrier code of the first segment, falling back to the first flight designator's prefix."""
    for segment in slice_.segments:
        if segment.carrier and segment.carrier.code:
            return segment.carrier.code
        if segment.marketing_carrier:
            return segment.marketing_carrier
        break
    if slice_.flights:
        match = _CARRIER_PREFIX.match(slice_.flights[0])
        if match:
            return match.group(1) or match.group(2)
    return ""


def slice_cabin(slice_: Slice) -> str:
    """Normalized cabin of a slice, from its cabin list or its first segment."""
    if slice_.cabins:
        return normalize_cabin(slice_.cabins[0])
    if slice_.segments:
        return normalize_cabin(slice_.segments[0].cabin)
    return normalize_cabin("")


def first_flight_number(slice_: Slice) -> str:
    if slice_.flights:
        return slice_.flights[0]
    if slice_.segments:
        return slice_.segments[0].flight_number
    return ""


def is_code_share(a: Itinerary, b: Itinerary) -> bool:
    """True when both first slices fly the same routing under different operating carriers."""
    if not a.slices or not b.slices:
        return False
    first_a, first_b = a.slices[0], b.slices[0]
    if fingerprint(first_a) != fingerprint(first_b):
        return False
    carrier_a = operating_carrier(first_a)
    carrier_b = operating_carrier(first_b)
    return bool(carrier_a and carrier_b and carrier_a != carrier_b)


@dataclass
class CodeShareGroup:
    """Itineraries sharing one physical routing, split into a parent and its partners."""

    fingerprint: str
    parent: Itinerary
    children: list[Itinerary] = field(default_factory=list)

    @property
    def is_code_share(self) -> bool:
        return bool(self.children)

    def partners_of(self, itinerary: Itinerary) -> list[Itinerary]:
        members = [self.parent, *self.children]
        return [m for m in members if m is not itinerary]

    def to_dict(self) -> dict:
        return {
            "fingerprint": self.fingerprint,
            "parent": self.parent.id,
            "children": [child.id for child in self.children],
        }


def _flight_digit_count(itinerary: Itinerary) -> int:
    match = _TRAILING_DIGITS.search(first_flight_number(itinerary.slices[0]))
    return len(match.group(1)) if match else 0


def detect_code_shares(itineraries: list[Itinerary]) -> list[CodeShareGroup]:
    """Group itineraries by first-slice fingerprint and mark code-share parents.

    Within a group of more than one operating carrier the parent is the
    itinerary with the shorter flight number (3-digit before 4-digit), ties
    broken by carrier code. Groups keep first-seen order.
    """
    buckets: dict[str, list[Itinerary]] = {}
    for itinerary in itineraries:
        if not itinerary.slices:
            logger.debug(f"Itinerary {itinerary.id!r} has no slices, skipping code-share check")
            continue
        buckets.setdefault(fingerprint(itinerary.slices[0]), []).append(itinerary)

    groups: list[CodeShareGroup] = []
    for key, members in buckets.items():
        carriers = {operating_carrier(m.slices[0]) for m in members}
        if len(members) == 1 or len(carriers) == 1:
            for member in members:
                groups.append(CodeShareGroup(fingerprint=key, parent=member))
            continue

        ordered = sorted(
            members,
            key=lambda m: (_flight_digit_count(m), operating_carrier(m.slices[0])),
        )
        groups.append(CodeShareGroup(fingerprint=key, parent=ordered[0], children=ordered[1:]))

    return groups
