"""Time bucketing of award and mileage candidates relative to the cash departure.

"near" holds candidates departing within the configured window (300 minutes)
of the reference, "far" the rest. Candidates whose departure cannot be read
go to "far". Input order is kept in both lists.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from milevalue.services.awards.config import award_config
from milevalue.services.awards.timestamps import minutes_between

NEAR = "near"
FAR = "far"


@dataclass
class TimeBuckets:
    near: list[Any] = field(default_factory=list)
    far: list[Any] = field(default_factory=list)
    active: str = NEAR              # "near" | "far"

    @property
    def active_items(self) -> list[Any]:
        return self.near if self.active == NEAR else self.far

    def to_dict(self, serialize: Callable[[Any], Any] | None = None) -> dict:
        convert = serialize or (lambda item: item)
        return {
            "near": [convert(item) for item in self.near],
            "far": [convert(item) for item in self.far],
            "active": self.active,
        }


def departure_of(candidate: Any) -> Any:
    """Departure timestamp of an award option, mileage candidate or raw timestamp."""
    if isinstance(candidate, (str, datetime)):
        return candidate
    for attr in ("departure", "departs_at"):
        found = getattr(candidate, attr, None)
        if isinstance(found, (str, datetime)):
            return found
    return None


def bucket_by_time(
    candidates: list[Any],
    reference: Any,
    preferred: str = NEAR,
    window_minutes: int | None = None,
    key: Callable[[Any], Any] | None = None,
) -> TimeBuckets:
    """Split candidates into near/far of `reference`.

    The active bucket is `preferred` unless that bucket is empty and the
    other is not, in which case it switches. Both lists are always returned.
    """
    if window_minutes is None:
        window_minutes = award_config.time_window.near_minutes
    extract = key or departure_of

    buckets = TimeBuckets()
    for candidate in candidates:
        distance = minutes_between(extract(candidate), reference)
        if distance is not None and distance <= window_minutes:
            buckets.near.append(candidate)
        else:
            buckets.far.append(candidate)

    active = preferred if preferred in (NEAR, FAR) else NEAR
    other = FAR if active == NEAR else NEAR
    if not getattr(buckets, active) and getattr(buckets, other):
        active = other
    buckets.active = active
    return buckets


def sort_by_proximity(
    candidates: list[Any],
    reference: Any,
    key: Callable[[Any], Any] | None = None,
) -> list[Any]:
    """Order candidates by distance from the reference departure; unreadable times sort last."""
    extract = key or departure_of

    def distance(candidate: Any) -> tuple[int, float]:
        minutes = minutes_between(extract(candidate), reference)
        return (1, 0.0) if minutes is None else (0, minutes)

    return sorted(candidates, key=distance)
