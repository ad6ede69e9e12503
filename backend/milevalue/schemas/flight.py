"""Cash itinerary and legacy mileage-breakdown shapes as produced by the search step.

Field names are camelCase on the wire and snake_case in Python. Lists of
provider items are validated one item at a time so a single malformed entry
is dropped instead of failing the whole payload.
"""

import logging
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from milevalue.services.awards.pricing import parse_miles, parse_price

logger = logging.getLogger(__name__)


class WireModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True, "extra": "ignore"}


def valid_items(model: type[BaseModel], items: Any, label: str) -> list:
    """Validate each item on its own, skipping the ones that fail."""
    if not isinstance(items, list):
        return []
    valid = []
    for item in items:
        try:
            valid.append(model.model_validate(item))
        except ValidationError as e:
            logger.debug(f"Skipping malformed {label}: {e.error_count()} validation errors")
    return valid


def _code_dict(value: Any) -> Any:
    """Accept a bare airport code where an {code, name} object is expected."""
    if isinstance(value, str):
        return {"code": value}
    if value is None:
        return {}
    return value


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (str, int, float)):
        return str(value)
    return value


class Airport(WireModel):
    code: str = ""
    name: str | None = None

    @field_validator("code", mode="before")
    @classmethod
    def _code_text(cls, v):
        return _text(v)


class Carrier(WireModel):
    code: str = ""
    name: str | None = None
    short_name: str | None = None


class Endpoint(WireModel):
    """Departure or arrival point of a mileage candidate."""

    iata_code: str = ""
    at: str = ""

    @field_validator("iata_code", "at", mode="before")
    @classmethod
    def _endpoint_text(cls, v):
        return _text(v)


class Segment(WireModel):
    """One physical flight of a cash slice."""

    carrier: Carrier | None = None
    marketing_carrier: str | None = None
    flight_number: str = ""
    origin: str = ""
    destination: str = ""
    departure: str = ""
    arrival: str = ""
    cabin: str = ""

    @field_validator("carrier", mode="before")
    @classmethod
    def _carrier_dict(cls, v):
        if isinstance(v, str):
            return {"code": v}
        return v

    @field_validator("origin", "destination", mode="before")
    @classmethod
    def _airport_code(cls, v):
        if isinstance(v, dict):
            return _text(v.get("code") or v.get("iataCode"))
        return _text(v)

    @field_validator("flight_number", "departure", "arrival", "cabin", mode="before")
    @classmethod
    def _segment_text(cls, v):
        return _text(v)


class MileageFlightCandidate(WireModel):
    """A raw candidate from the legacy mileage provider for one origin-destination pair."""

    flight_number: str = ""
    carrier_code: str = ""
    operating_carrier: str = ""
    departure: Endpoint | None = None
    arrival: Endpoint | None = None
    mileage: int = 0
    mileage_price: float | str | None = None
    cabin: str = ""
    exact_match: bool = False
    number_of_stops: int = 0
    stops: list[str] = []

    @field_validator("flight_number", "carrier_code", "operating_carrier", "cabin", mode="before")
    @classmethod
    def _candidate_text(cls, v):
        return _text(v)

    @field_validator("mileage", "number_of_stops", mode="before")
    @classmethod
    def _lenient_int(cls, v):
        return parse_miles(v)

    @field_validator("exact_match", mode="before")
    @classmethod
    def _lenient_bool(cls, v):
        return _flag(v)

    @field_validator("stops", mode="before")
    @classmethod
    def _stop_codes(cls, v):
        if not isinstance(v, list):
            return []
        codes = []
        for stop in v:
            if isinstance(stop, str):
                codes.append(stop)
            elif isinstance(stop, dict):
                code = stop.get("code") or stop.get("iataCode")
                if isinstance(code, str):
                    codes.append(code)
        return codes

    @property
    def carrier(self) -> str:
        return self.carrier_code or self.operating_carrier

    @property
    def origin(self) -> str:
        return self.departure.iata_code if self.departure else ""

    @property
    def destination(self) -> str:
        return self.arrival.iata_code if self.arrival else ""

    @property
    def departs_at(self) -> str:
        return self.departure.at if self.departure else ""

    @property
    def arrives_at(self) -> str:
        return self.arrival.at if self.arrival else ""

    @property
    def price(self) -> float:
        return parse_price(self.mileage_price)


class MileageBreakdownSegment(WireModel):
    """One stop-pair of a slice with every mileage candidate the legacy provider matched."""

    flight_number: str = ""
    carrier: str = ""
    origin: str = ""
    destination: str = ""
    date: str = ""
    mileage: int = 0
    mileage_price: float | str | None = None
    exact_match: bool = False
    all_matching_flights: list[MileageFlightCandidate] = []

    @field_validator("flight_number", "carrier", "origin", "destination", "date", mode="before")
    @classmethod
    def _breakdown_text(cls, v):
        return _text(v)

    @field_validator("mileage", mode="before")
    @classmethod
    def _lenient_mileage(cls, v):
        return parse_miles(v)

    @field_validator("exact_match", mode="before")
    @classmethod
    def _lenient_bool(cls, v):
        return _flag(v)

    @field_validator("all_matching_flights", mode="before")
    @classmethod
    def _each_candidate(cls, v):
        return valid_items(MileageFlightCandidate, v, "mileage candidate")

    @property
    def segment_key(self) -> str:
        return f"{self.origin}-{self.destination}"


class Slice(WireModel):
    """One directional leg of a cash itinerary."""

    origin: Airport = Field(default_factory=Airport)
    destination: Airport = Field(default_factory=Airport)
    departure: str = ""
    arrival: str = ""
    duration: int = 0
    flights: list[str] = []
    cabins: list[str] = []
    stops: list[Airport] = []
    segments: list[Segment] = []
    mileage_breakdown: list[MileageBreakdownSegment] | None = None

    @field_validator("origin", "destination", mode="before")
    @classmethod
    def _airport(cls, v):
        return _code_dict(v)

    @field_validator("stops", mode="before")
    @classmethod
    def _stop_airports(cls, v):
        if not isinstance(v, list):
            return []
        return [_code_dict(stop) for stop in v]

    @field_validator("departure", "arrival", mode="before")
    @classmethod
    def _timestamp_text(cls, v):
        return _text(v)

    @field_validator("duration", mode="before")
    @classmethod
    def _lenient_duration(cls, v):
        return parse_miles(v)

    @field_validator("segments", mode="before")
    @classmethod
    def _each_segment(cls, v):
        return valid_items(Segment, v, "segment")

    @field_validator("mileage_breakdown", mode="before")
    @classmethod
    def _each_breakdown(cls, v):
        if v is None:
            return None
        return valid_items(MileageBreakdownSegment, v, "mileage breakdown segment")

    @property
    def stop_codes(self) -> list[str]:
        return [stop.code for stop in self.stops if stop.code]


class Itinerary(WireModel):
    """A cash fare: ordered slices plus the fare amount."""

    id: str = ""
    total_amount: float | str | None = None
    display_total: float | str | None = None
    currency: str = "USD"
    slices: list[Slice] = []

    @field_validator("id", mode="before")
    @classmethod
    def _id_text(cls, v):
        return _text(v)
