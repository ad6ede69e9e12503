"""Valuation engine: turns (miles, tax) into one comparable cash-equivalent.

    value = miles * per_mile_value + tax

Candidates are anything exposing `value(per_mile_value)` (award options,
mileage programs) or a plain (miles, tax) pair.
"""

from typing import Any, Iterable

from milevalue.services.awards.config import award_config


def value(miles: float, tax: float, per_mile_value: float) -> float:
    return miles * per_mile_value + tax


def candidate_value(candidate: Any, per_mile_value: float) -> float | None:
    """Value of one candidate, or None if it carries neither a value method nor a (miles, tax) pair."""
    valuer = getattr(candidate, "value", None)
    if callable(valuer):
        return valuer(per_mile_value)
    if isinstance(candidate, (tuple, list)) and len(candidate) == 2:
        miles, tax = candidate
        if isinstance(miles, (int, float)) and isinstance(tax, (int, float)):
            return value(miles, tax, per_mile_value)
    return None


def select_best(candidates: Iterable[Any], per_mile_value: float) -> Any | None:
    """Lowest-valued candidate; the first one wins ties."""
    best = None
    best_value = None
    for candidate in candidates:
        v = candidate_value(candidate, per_mile_value)
        if v is None:
            continue
        if best_value is None or v < best_value:
            best, best_value = candidate, v
    return best


def best_value(candidates: Iterable[Any], per_mile_value: float) -> float | None:
    """Minimum value across candidates, or None when there are none."""
    values = [v for v in (candidate_value(c, per_mile_value) for c in candidates) if v is not None]
    if not values:
        return None
    return min(values)


def is_beatable(alternative_value: float | None, cash_price: float, ratio: float | None = None) -> bool:
    """Whole-itinerary rule: the alternative beats cash when it is under 90% of the cash price."""
    if ratio is None:
        ratio = award_config.beatable.itinerary_ratio
    if alternative_value is None or cash_price <= 0:
        return False
    return alternative_value < cash_price * ratio


def is_segment_beatable(candidate_value_: float | None, cash_share: float) -> bool:
    """Intra-slice rule: a single mileage candidate beats its cash share under 85%."""
    return is_beatable(candidate_value_, cash_share, award_config.beatable.segment_ratio)
