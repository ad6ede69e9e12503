"""Legacy mileage-breakdown resolution.

Two views over the same per-stop-pair candidate lists:

  group_mileage_by_program   one record per (carrier, cabin): the cheapest
                             candidate for every stop-pair segment, summed,
                             with a completeness classification
  find_best_mileage_for_slice  the single best way to cover a slice's full
                             origin -> destination: nonstop, then full-route
                             with stops, then a pieced chain of segments
"""

import logging
import math
import re
from dataclasses import dataclass, field

from milevalue.schemas.flight import MileageBreakdownSegment, MileageFlightCandidate, Slice
from milevalue.services.awards.cabins import normalize_cabin
from milevalue.services.awards.config import award_config
from milevalue.services.awards.valuation import value

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"(\d+)")

MATCH_EXACT = "exact"
MATCH_MIXED = "mixed"
MATCH_PARTIAL = "partial"

STRATEGY_NONSTOP = "nonstop"
STRATEGY_FULL_SEGMENT = "full-segment"
STRATEGY_PIECED = "pieced"

_STRATEGY_PRIORITY = {STRATEGY_NONSTOP: 0, STRATEGY_FULL_SEGMENT: 1, STRATEGY_PIECED: 2}


# ---------- Data structures ----------


@dataclass
class SegmentMatch:
    """The candidate resolved for one stop-pair segment; flight is None when nothing covered it."""

    segment_key: str
    origin: str
    destination: str
    flight: MileageFlightCandidate | None = None

    @property
    def mileage(self) -> int:
        return self.flight.mileage if self.flight else 0

    @property
    def price(self) -> float:
        return self.flight.price if self.flight else 0.0

    def to_dict(self) -> dict:
        return {
            "segment_key": self.segment_key,
            "origin": self.origin,
            "destination": self.destination,
            "flight": self.flight.model_dump(by_alias=True) if self.flight else None,
            "mileage": self.mileage,
            "price": round(self.price, 2),
        }


@dataclass
class MileageProgram:
    """One carrier + cabin redemption resolved across a slice's segments."""

    carrier_code: str
    carrier_name: str
    cabin: str
    total_mileage: int
    total_price: float
    match_type: str                  # "exact" | "mixed" | "partial"
    segment_matches: list[SegmentMatch] = field(default_factory=list)
    has_incomplete_segments: bool = False

    @property
    def segment_count(self) -> int:
        return sum(1 for m in self.segment_matches if m.flight is not None)

    @property
    def flights(self) -> list[MileageFlightCandidate]:
        return [m.flight for m in self.segment_matches if m.flight is not None]

    @property
    def blended_key(self) -> float:
        """Ranking key only (mileage + price * 100), not a monetary value."""
        return self.total_mileage + self.total_price * award_config.ranking.price_weight

    def value(self, per_mile_value: float) -> float:
        return value(self.total_mileage, self.total_price, per_mile_value)

    def to_dict(self, per_mile_value: float | None = None) -> dict:
        d = {
            "carrier_code": self.carrier_code,
            "carrier_name": self.carrier_name,
            "cabin": self.cabin,
            "total_mileage": self.total_mileage,
            "total_price": round(self.total_price, 2),
            "match_type": self.match_type,
            "segment_count": self.segment_count,
            "has_incomplete_segments": self.has_incomplete_segments,
            "segment_matches": [m.to_dict() for m in self.segment_matches],
        }
        if per_mile_value is not None:
            d["value"] = round(self.value(per_mile_value), 2)
        return d


@dataclass
class RouteLeg:
    origin: str
    destination: str
    mileage: int
    price: float
    cabin: str
    flight_number: str
    carrier: str
    exact_match: bool
    is_nonstop: bool

    def to_dict(self) -> dict:
        return {
            "origin": self.origin,
            "destination": self.destination,
            "mileage": self.mileage,
            "price": round(self.price, 2),
            "cabin": self.cabin,
            "flight_number": self.flight_number,
            "carrier": self.carrier,
            "exact_match": self.exact_match,
            "is_nonstop": self.is_nonstop,
        }


@dataclass
class MileageRoute:
    """Best mileage coverage of one slice (or a whole trip)."""

    total_mileage: int
    total_price: float
    total_value: float
    strategy: str                    # "nonstop" | "full-segment" | "pieced"
    cabin: str                       # canonical cabin, or "BUSINESS/ECONOMY" when mixed
    legs: list[RouteLeg] = field(default_factory=list)

    def value(self, per_mile_value: float) -> float:
        return value(self.total_mileage, self.total_price, per_mile_value)

    def to_dict(self) -> dict:
        return {
            "total_mileage": self.total_mileage,
            "total_price": round(self.total_price, 2),
            "total_value": round(self.total_value, 2),
            "strategy": self.strategy,
            "cabin": self.cabin,
            "legs": [leg.to_dict() for leg in self.legs],
        }


# ---------- Program grouping ----------


def _flight_number_key(flight_number: str) -> tuple[float, str]:
    match = _DIGITS.search(flight_number or "")
    number = int(match.group(1)) if match else math.inf
    return number, flight_number or ""


def _dedupe_code_shares(
    candidates: list[MileageFlightCandidate],
    segment: MileageBreakdownSegment,
) -> list[MileageFlightCandidate]:
    """Collapse code-shares (same origin, destination, mileage), keeping the lower flight number."""
    unique: dict[tuple[str, str, int], MileageFlightCandidate] = {}
    for candidate in candidates:
        key = (
            candidate.origin or segment.origin,
            candidate.destination or segment.destination,
            candidate.mileage,
        )
        existing = unique.get(key)
        if existing is None or _flight_number_key(candidate.flight_number) < _flight_number_key(existing.flight_number):
            unique[key] = candidate
    return list(unique.values())


def _classify(picked: list[MileageFlightCandidate]) -> str:
    exact = sum(1 for c in picked if c.exact_match)
    if picked and exact == len(picked):
        return MATCH_EXACT
    if exact:
        return MATCH_MIXED
    return MATCH_PARTIAL


def group_mileage_by_program(breakdown: list[MileageBreakdownSegment] | None) -> list[MileageProgram]:
    """Resolve a slice's mileage breakdown into ranked per-(carrier, cabin) programs.

    Each program takes the cheapest candidate (ties: lower mileage) for every
    segment it covers. Segments it does not cover appear as SegmentMatch
    entries with flight=None and set has_incomplete_segments. Output is
    sorted ascending by blended_key.
    """
    if not breakdown:
        return []

    segments: dict[str, MileageBreakdownSegment] = {}
    grouped: dict[tuple[str, str], dict[str, list[MileageFlightCandidate]]] = {}

    for segment in breakdown:
        key = segment.segment_key
        segments.setdefault(key, segment)
        for candidate in segment.all_matching_flights:
            if candidate.mileage <= 0:
                logger.debug(f"Skipping zero-mileage candidate {candidate.flight_number!r} on {key}")
                continue
            carrier = candidate.carrier
            if not carrier:
                logger.debug(f"Skipping mileage candidate without carrier on {key}")
                continue
            program_key = (carrier, normalize_cabin(candidate.cabin))
            grouped.setdefault(program_key, {}).setdefault(key, []).append(candidate)

    programs: list[MileageProgram] = []
    for (carrier, cabin), by_segment in grouped.items():
        matches: list[SegmentMatch] = []
        picked: list[MileageFlightCandidate] = []

        for key, segment in segments.items():
            candidates = by_segment.get(key)
            best = None
            if candidates:
                unique = _dedupe_code_shares(candidates, segment)
                best = min(unique, key=lambda c: (c.price, c.mileage))
                picked.append(best)
            matches.append(SegmentMatch(
                segment_key=key,
                origin=segment.origin,
                destination=segment.destination,
                flight=best,
            ))

        programs.append(MileageProgram(
            carrier_code=carrier,
            carrier_name=picked[0].operating_carrier or carrier,
            cabin=cabin,
            total_mileage=sum(c.mileage for c in picked),
            total_price=sum(c.price for c in picked),
            match_type=_classify(picked),
            segment_matches=matches,
            has_incomplete_segments=len(picked) < len(segments),
        ))

    programs.sort(key=lambda p: p.blended_key)
    return programs


# ---------- Route strategy ----------


def _leg(candidate: MileageFlightCandidate, segment: MileageBreakdownSegment, is_nonstop: bool) -> RouteLeg:
    return RouteLeg(
        origin=candidate.origin or segment.origin,
        destination=candidate.destination or segment.destination,
        mileage=candidate.mileage,
        price=candidate.price,
        cabin=normalize_cabin(candidate.cabin),
        flight_number=candidate.flight_number,
        carrier=candidate.carrier,
        exact_match=candidate.exact_match,
        is_nonstop=is_nonstop,
    )


def _joined_cabins(cabins: list[str]) -> str:
    return "/".join(dict.fromkeys(cabins))


def find_best_mileage_for_slice(slice_: Slice, per_mile_value: float) -> MileageRoute | None:
    """Best mileage coverage of a slice: nonstop, else full-route, else a pieced chain."""
    if not slice_.mileage_breakdown:
        return None

    origin = slice_.origin.code
    destination = slice_.destination.code

    pool: list[tuple[MileageFlightCandidate, MileageBreakdownSegment]] = [
        (candidate, segment)
        for segment in slice_.mileage_breakdown
        for candidate in segment.all_matching_flights
        if candidate.mileage > 0
    ]
    if not pool:
        return None

    def ends(item: tuple[MileageFlightCandidate, MileageBreakdownSegment]) -> tuple[str, str]:
        candidate, segment = item
        return candidate.origin or segment.origin, candidate.destination or segment.destination

    def item_value(item: tuple[MileageFlightCandidate, MileageBreakdownSegment]) -> float:
        return value(item[0].mileage, item[0].price, per_mile_value)

    full_route = [item for item in pool if ends(item) == (origin, destination)]
    nonstop = [item for item in full_route if item[0].number_of_stops == 0]

    for strategy, options in ((STRATEGY_NONSTOP, nonstop), (STRATEGY_FULL_SEGMENT, full_route)):
        if not options:
            continue
        candidate, segment = min(options, key=item_value)
        leg = _leg(candidate, segment, is_nonstop=strategy == STRATEGY_NONSTOP)
        return MileageRoute(
            total_mileage=leg.mileage,
            total_price=leg.price,
            total_value=value(leg.mileage, leg.price, per_mile_value),
            strategy=strategy,
            cabin=leg.cabin,
            legs=[leg],
        )

    by_origin: dict[str, list[tuple[MileageFlightCandidate, MileageBreakdownSegment]]] = {}
    for item in sorted(pool, key=item_value):
        by_origin.setdefault(ends(item)[0], []).append(item)

    def find_path(current: str, visited: frozenset[str]) -> list | None:
        if current in visited:
            return None
        for item in by_origin.get(current, []):
            hop_destination = ends(item)[1]
            if hop_destination == destination:
                return [item]
            rest = find_path(hop_destination, visited | {current})
            if rest is not None:
                return [item, *rest]
        return None

    path = find_path(origin, frozenset())
    if not path:
        return None

    legs = [_leg(candidate, segment, is_nonstop=False) for candidate, segment in path]
    total_mileage = sum(leg.mileage for leg in legs)
    total_price = sum(leg.price for leg in legs)
    return MileageRoute(
        total_mileage=total_mileage,
        total_price=total_price,
        total_value=value(total_mileage, total_price, per_mile_value),
        strategy=STRATEGY_PIECED,
        cabin=_joined_cabins([leg.cabin for leg in legs]),
        legs=legs,
    )


def calculate_best_mileage_for_trip(slices: list[Slice], per_mile_value: float) -> MileageRoute | None:
    """Aggregate per-slice best routes; None when any slice has no mileage coverage."""
    results = []
    for slice_ in slices:
        result = find_best_mileage_for_slice(slice_, per_mile_value)
        if result is None:
            return None
        results.append(result)

    if not results:
        return None

    total_mileage = sum(r.total_mileage for r in results)
    total_price = sum(r.total_price for r in results)
    worst = max(results, key=lambda r: _STRATEGY_PRIORITY[r.strategy])
    return MileageRoute(
        total_mileage=total_mileage,
        total_price=total_price,
        total_value=value(total_mileage, total_price, per_mile_value),
        strategy=worst.strategy,
        cabin=_joined_cabins([r.cabin for r in results]),
        legs=[leg for r in results for leg in r.legs],
    )
