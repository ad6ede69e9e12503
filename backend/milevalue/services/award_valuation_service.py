"""Award valuation service: runs the award engine end to end for one cash itinerary.

Per slice: enrichment extraction and matching, deduplication, grouping, time
buckets, legacy mileage programs and route strategy, all valued with the same
per-mile coefficient. Overall: best total alternative against the cash fare.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from milevalue.data.currency import convert_to_usd
from milevalue.schemas.flight import Itinerary, Slice
from milevalue.services.awards.award_options import (
    AwardGroup,
    AwardOption,
    cheapest_per_cabin,
    group_award_options,
)
from milevalue.services.awards.enrichment_matcher import (
    collect_award_options,
    match_enrichment,
    route_matches,
)
from milevalue.services.awards.fingerprint import fingerprint, operating_carrier, slice_cabin
from milevalue.services.awards.mileage_programs import (
    MileageProgram,
    MileageRoute,
    find_best_mileage_for_slice,
    group_mileage_by_program,
)
from milevalue.services.awards.pricing import parse_price
from milevalue.services.awards.time_buckets import TimeBuckets, bucket_by_time
from milevalue.services.awards.timestamps import to_minute
from milevalue.services.awards.valuation import best_value, is_beatable, is_segment_beatable, select_best

logger = logging.getLogger(__name__)


def _rounded(v: float | None) -> float | None:
    return None if v is None else round(v, 2)


@dataclass
class SliceValuation:
    index: int
    fingerprint: str
    carrier: str
    cabin: str
    cash_share: float
    programs: list[MileageProgram] = field(default_factory=list)
    mileage_route: MileageRoute | None = None
    best_award: AwardOption | None = None
    award_groups: list[AwardGroup] = field(default_factory=list)
    cheapest_by_cabin: dict[str, AwardOption] = field(default_factory=dict)
    buckets: TimeBuckets = field(default_factory=TimeBuckets)
    best_mileage_value: float | None = None
    best_value: float | None = None
    segment_beatable: bool = False

    def to_dict(self, per_mile_value: float) -> dict:
        return {
            "index": self.index,
            "fingerprint": self.fingerprint,
            "carrier": self.carrier,
            "cabin": self.cabin,
            "cash_share": round(self.cash_share, 2),
            "programs": [p.to_dict(per_mile_value) for p in self.programs],
            "mileage_route": self.mileage_route.to_dict() if self.mileage_route else None,
            "best_award": self.best_award.to_dict(per_mile_value) if self.best_award else None,
            "award_groups": [g.to_dict(per_mile_value) for g in self.award_groups],
            "cheapest_by_cabin": {
                cabin: option.to_dict(per_mile_value) for cabin, option in self.cheapest_by_cabin.items()
            },
            "buckets": self.buckets.to_dict(lambda option: option.to_dict(per_mile_value)),
            "best_mileage_value": _rounded(self.best_mileage_value),
            "best_value": _rounded(self.best_value),
            "segment_beatable": self.segment_beatable,
        }


@dataclass
class ItineraryValuation:
    itinerary_id: str
    per_mile_value: float
    cash_price: float
    slices: list[SliceValuation] = field(default_factory=list)
    total_best_value: float | None = None
    beatable: bool = False

    @property
    def savings(self) -> float | None:
        if self.total_best_value is None or self.cash_price <= 0:
            return None
        return self.cash_price - self.total_best_value

    def to_dict(self) -> dict:
        return {
            "itinerary_id": self.itinerary_id,
            "per_mile_value": self.per_mile_value,
            "cash_price": round(self.cash_price, 2),
            "total_best_value": _rounded(self.total_best_value),
            "savings": _rounded(self.savings),
            "beatable": self.beatable,
            "slices": [s.to_dict(self.per_mile_value) for s in self.slices],
        }


class AwardValuationService:
    """Values a cash itinerary against every award and mileage alternative available for it."""

    def cash_price(self, itinerary: Itinerary) -> float:
        """Cash fare in USD. Strings carry their own currency; bare numbers use the itinerary's."""
        raw = itinerary.display_total if itinerary.display_total is not None else itinerary.total_amount
        if isinstance(raw, str):
            return parse_price(raw)
        amount = parse_price(raw)
        if amount and itinerary.currency:
            return convert_to_usd(amount, itinerary.currency.upper())
        return amount

    def evaluate_slice(
        self,
        index: int,
        slice_: Slice,
        carrier_batches: dict[str, list[Any]],
        per_mile_value: float,
        cash_share: float,
    ) -> SliceValuation:
        carrier = operating_carrier(slice_)
        result = SliceValuation(
            index=index,
            fingerprint=fingerprint(slice_),
            carrier=carrier,
            cabin=slice_cabin(slice_),
            cash_share=cash_share,
        )

        # Legacy mileage breakdown
        result.programs = group_mileage_by_program(slice_.mileage_breakdown)
        result.mileage_route = find_best_mileage_for_slice(slice_, per_mile_value)
        complete_programs = [p for p in result.programs if not p.has_incomplete_segments]
        mileage_candidates = [*complete_programs]
        if result.mileage_route is not None:
            mileage_candidates.append(result.mileage_route)
        best_mileage = select_best(mileage_candidates, per_mile_value)
        if best_mileage is not None:
            result.best_mileage_value = best_mileage.value(per_mile_value)
            result.segment_beatable = is_segment_beatable(result.best_mileage_value, cash_share)

        # Direct enrichment
        if carrier:
            route_options = [
                option
                for option in collect_award_options(carrier_batches, carrier)
                if route_matches(option, slice_)
            ]
            route_options.sort(key=lambda option: to_minute(option.departure))
            result.best_award = match_enrichment(carrier_batches, slice_, per_mile_value)
            result.award_groups = group_award_options(route_options, per_mile_value)
            result.cheapest_by_cabin = cheapest_per_cabin(route_options, per_mile_value)
            result.buckets = bucket_by_time(route_options, slice_.departure)

        candidates = [*mileage_candidates]
        if result.best_award is not None:
            candidates.append(result.best_award)
        result.best_value = best_value(candidates, per_mile_value)
        return result

    def evaluate(
        self,
        itinerary: Itinerary,
        carrier_batches: dict[str, list[Any]],
        per_mile_value: float,
    ) -> ItineraryValuation:
        cash = self.cash_price(itinerary)
        share = cash / len(itinerary.slices) if itinerary.slices else 0.0
        result = ItineraryValuation(
            itinerary_id=itinerary.id,
            per_mile_value=per_mile_value,
            cash_price=cash,
        )
        result.slices = [
            self.evaluate_slice(i, slice_, carrier_batches, per_mile_value, share)
            for i, slice_ in enumerate(itinerary.slices)
        ]

        slice_bests = [s.best_value for s in result.slices]
        if slice_bests and all(v is not None for v in slice_bests):
            result.total_best_value = sum(slice_bests)
        result.beatable = is_beatable(result.total_best_value, cash)

        logger.info(
            f"Valued itinerary {itinerary.id or '<unnamed>'}: cash={cash:.2f} "
            f"best={result.total_best_value} beatable={result.beatable}"
        )
        return result


award_valuation_service = AwardValuationService()
