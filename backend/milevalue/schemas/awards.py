"""Request shapes for the awards API."""

from typing import Any

from pydantic import Field

from milevalue.schemas.flight import Itinerary, Slice, WireModel


class ValueRequest(WireModel):
    miles: int = Field(ge=0)
    tax: float = Field(default=0.0, ge=0)
    per_mile_value: float | None = Field(default=None, gt=0, le=1)


class ProgramsRequest(WireModel):
    slice: Slice
    per_mile_value: float | None = Field(default=None, gt=0, le=1)


class EvaluateRequest(WireModel):
    itinerary: Itinerary
    carrier_batches: dict[str, list[Any]] = {}
    per_mile_value: float | None = Field(default=None, gt=0, le=1)


class EnrichRequest(WireModel):
    itinerary: Itinerary
    per_mile_value: float | None = Field(default=None, gt=0, le=1)
    reset: bool = False
