"""Award engine configuration: single source for every threshold the engine uses.

The per-mile value is not here: it comes from milevalue.config.Settings and
is passed into each engine call.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class BeatableThresholds:
    """When an award alternative is flagged as beating the cash fare. The two ratios are independent."""
    itinerary_ratio: float = 0.90   # whole-itinerary best vs cash price
    segment_ratio: float = 0.85     # single intra-slice mileage candidate vs slice cash share


@dataclass(frozen=True)
class TimeWindow:
    """Near/far split around the cash departure."""
    near_minutes: int = 300


@dataclass(frozen=True)
class RankingWeights:
    """Blended sort key for legacy mileage programs: mileage + price * weight."""
    price_weight: float = 100.0


@dataclass(frozen=True)
class AwardEngineConfig:
    """Top-level config aggregating all sub-configs."""
    beatable: BeatableThresholds = field(default_factory=BeatableThresholds)
    time_window: TimeWindow = field(default_factory=TimeWindow)
    ranking: RankingWeights = field(default_factory=RankingWeights)


# Singleton, import this everywhere
award_config = AwardEngineConfig()
