"""Third-party award enrichment records.

Two schema generations are supported side by side as a tagged union keyed
on the `provider` field:

    DirectRecord  provider == "awardtool-direct"; carries a cabinPrices map
                  keyed by display cabin name
    LegacyRecord  any other provider; carries an itinerary whose slices hold
                  a mileageBreakdown tree

New generations are added as new union members.
"""

import logging
from typing import Annotated, Any, Union

from pydantic import Discriminator, Field, Tag, TypeAdapter, ValidationError, field_validator

from milevalue.schemas.flight import Airport, Endpoint, Slice, WireModel, valid_items
from milevalue.services.awards.pricing import parse_miles

logger = logging.getLogger(__name__)

DIRECT_PROVIDER = "awardtool-direct"


class OperatingCarrier(WireModel):
    carrier_code: str = ""


class AwardSegment(WireModel):
    carrier_code: str = ""
    number: str = ""
    departure: Endpoint | None = None
    arrival: Endpoint | None = None
    operating: OperatingCarrier | None = None

    @field_validator("carrier_code", "number", mode="before")
    @classmethod
    def _segment_text(cls, v):
        if v is None:
            return ""
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @property
    def operating_carrier(self) -> str:
        if self.operating and self.operating.carrier_code:
            return self.operating.carrier_code
        return self.carrier_code

    @property
    def flight_number(self) -> str:
        if not self.number or self.number.startswith(self.carrier_code):
            return self.number
        return f"{self.carrier_code}{self.number}"


class Layover(WireModel):
    airport: Airport | None = None
    duration_minutes: int = 0

    @field_validator("airport", mode="before")
    @classmethod
    def _airport_dict(cls, v):
        if isinstance(v, str):
            return {"code": v}
        return v

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def _lenient_minutes(cls, v):
        return parse_miles(v)


class AwardItinerary(WireModel):
    segments: list[AwardSegment] = []
    duration: int = 0
    layovers: list[Layover] = []

    @field_validator("segments", mode="before")
    @classmethod
    def _each_segment(cls, v):
        return valid_items(AwardSegment, v, "award segment")

    @field_validator("layovers", mode="before")
    @classmethod
    def _each_layover(cls, v):
        return valid_items(Layover, v, "layover")

    @field_validator("duration", mode="before")
    @classmethod
    def _lenient_duration(cls, v):
        return parse_miles(v)


class CabinPrice(WireModel):
    miles: int = 0
    tax: float | str | None = None
    seats: int = 0
    transfer_options: list[dict[str, Any]] = []

    @field_validator("miles", "seats", mode="before")
    @classmethod
    def _lenient_int(cls, v):
        return parse_miles(v)

    @field_validator("transfer_options", mode="before")
    @classmethod
    def _option_dicts(cls, v):
        if not isinstance(v, list):
            return []
        return [option for option in v if isinstance(option, dict)]


class DirectPayload(WireModel):
    id: str = ""
    origin: str = ""
    destination: str = ""
    itineraries: list[AwardItinerary] = []
    cabin_prices: dict[str, CabinPrice] = {}

    @field_validator("id", "origin", "destination", mode="before")
    @classmethod
    def _payload_text(cls, v):
        if v is None:
            return ""
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @field_validator("itineraries", mode="before")
    @classmethod
    def _each_itinerary(cls, v):
        return valid_items(AwardItinerary, v, "award itinerary")

    @field_validator("cabin_prices", mode="before")
    @classmethod
    def _each_cabin_price(cls, v):
        if not isinstance(v, dict):
            return {}
        prices = {}
        for name, entry in v.items():
            try:
                prices[str(name)] = CabinPrice.model_validate(entry)
            except ValidationError as e:
                logger.debug(f"Skipping malformed cabin price {name!r}: {e.error_count()} validation errors")
        return prices


class DirectRecord(WireModel):
    provider: str = DIRECT_PROVIDER
    type: str = "solution"
    data: DirectPayload = Field(default_factory=DirectPayload)


class LegacyItinerary(WireModel):
    slices: list[Slice] = []

    @field_validator("slices", mode="before")
    @classmethod
    def _each_slice(cls, v):
        return valid_items(Slice, v, "legacy slice")


class LegacyRecord(WireModel):
    provider: str = ""
    itinerary: LegacyItinerary = Field(default_factory=LegacyItinerary)


def record_kind(value: Any) -> str:
    if isinstance(value, DirectRecord):
        return "direct"
    if isinstance(value, LegacyRecord):
        return "legacy"
    if isinstance(value, dict) and value.get("provider") == DIRECT_PROVIDER:
        return "direct"
    return "legacy"


EnrichmentRecord = Annotated[
    Union[
        Annotated[DirectRecord, Tag("direct")],
        Annotated[LegacyRecord, Tag("legacy")],
    ],
    Discriminator(record_kind),
]

_record_adapter = TypeAdapter(EnrichmentRecord)


def parse_record(raw: Any) -> DirectRecord | LegacyRecord | None:
    """Validate one raw provider record. Returns None (and logs) when it cannot be read."""
    if not isinstance(raw, (dict, DirectRecord, LegacyRecord)):
        logger.debug(f"Skipping enrichment record of type {type(raw).__name__}")
        return None
    try:
        return _record_adapter.validate_python(raw)
    except ValidationError as e:
        logger.debug(f"Skipping malformed enrichment record: {e.error_count()} validation errors")
        return None
