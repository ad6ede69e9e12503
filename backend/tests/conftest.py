import pytest

from milevalue.schemas.flight import Itinerary, Slice
from milevalue.services.cache_service import enrichment_key

DEPARTS = "2026-03-01T10:00:00"
ARRIVES = "2026-03-02T14:00:00"


def candidate(
    flight_number: str,
    mileage,
    price,
    origin: str = "SFO",
    destination: str = "NRT",
    carrier: str = "UA",
    cabin: str = "BUSINESS",
    exact: bool = True,
    stops: int = 0,
    departs: str = DEPARTS,
    arrives: str = ARRIVES,
) -> dict:
    return {
        "flightNumber": flight_number,
        "carrierCode": carrier,
        "departure": {"iataCode": origin, "at": departs},
        "arrival": {"iataCode": destination, "at": arrives},
        "mileage": mileage,
        "mileagePrice": price,
        "cabin": cabin,
        "exactMatch": exact,
        "numberOfStops": stops,
    }


def breakdown_segment(origin: str, destination: str, flights: list[dict]) -> dict:
    return {"origin": origin, "destination": destination, "allMatchingFlights": flights}


def slice_payload(
    origin: str = "SFO",
    destination: str = "NRT",
    carrier: str = "UA",
    flight: str = "UA837",
    cabin: str = "Business",
    departs: str = DEPARTS,
    arrives: str = ARRIVES,
    stops: list[str] | None = None,
    breakdown: list[dict] | None = None,
) -> dict:
    payload = {
        "origin": {"code": origin},
        "destination": {"code": destination},
        "departure": departs,
        "arrival": arrives,
        "duration": 660,
        "flights": [flight],
        "cabins": [cabin],
        "stops": [{"code": code} for code in stops or []],
        "segments": [{
            "carrier": {"code": carrier},
            "flightNumber": flight,
            "origin": origin,
            "destination": destination,
            "departure": departs,
            "arrival": arrives,
            "cabin": cabin,
        }],
    }
    if breakdown is not None:
        payload["mileageBreakdown"] = breakdown
    return payload


def direct_record(
    cabin_prices: dict,
    record_id: str = "sol-1",
    carrier: str = "UA",
    number: str = "837",
    origin: str = "SFO",
    destination: str = "NRT",
    departs: str = DEPARTS,
    arrives: str = ARRIVES,
) -> dict:
    return {
        "provider": "awardtool-direct",
        "type": "solution",
        "data": {
            "id": record_id,
            "origin": origin,
            "destination": destination,
            "itineraries": [{
                "segments": [{
                    "carrierCode": carrier,
                    "number": number,
                    "departure": {"iataCode": origin, "at": departs},
                    "arrival": {"iataCode": destination, "at": arrives},
                    "operating": {"carrierCode": carrier},
                }],
                "duration": 660,
                "layovers": [],
            }],
            "cabinPrices": cabin_prices,
        },
    }


def legacy_record(flights: list[dict], origin: str = "SFO", destination: str = "NRT") -> dict:
    return {
        "provider": "seats-legacy",
        "itinerary": {
            "slices": [{
                "origin": origin,
                "destination": destination,
                "mileageBreakdown": [breakdown_segment(origin, destination, flights)],
            }],
        },
    }


class FakeProviderClient:
    """Award provider stand-in: serves canned batches and records every call."""

    def __init__(self, batches: dict | None = None, failing: set[str] | None = None):
        self.batches = batches or {}
        self.failing = failing or set()
        self.calls: list[str] = []
        self.searches: list[tuple] = []

    async def fetch_awards(self, carrier: str, **search) -> list[dict]:
        self.calls.append(carrier)
        self.searches.append((carrier, search.get("origin"), search.get("destination")))
        if carrier in self.failing:
            raise RuntimeError(f"provider down for {carrier}")
        route = (carrier, search.get("origin"), search.get("destination"))
        return list(self.batches.get(route, self.batches.get(carrier, [])))


class FakeCache:
    """In-memory cache keyed the same way as the redis one."""

    def __init__(self, stored: dict[str, list[dict]] | None = None):
        self.stored = dict(stored or {})

    async def get_enrichment(self, carrier: str, **search) -> list[dict] | None:
        return self.stored.get(enrichment_key(carrier, **search))

    async def set_enrichment(self, carrier: str, records: list[dict], **search):
        self.stored[enrichment_key(carrier, **search)] = records


@pytest.fixture
def business_slice() -> Slice:
    return Slice.model_validate(slice_payload())


@pytest.fixture
def business_itinerary() -> Itinerary:
    return Itinerary.model_validate({
        "id": "itin-1",
        "totalAmount": 1100.0,
        "currency": "USD",
        "slices": [slice_payload()],
    })


@pytest.fixture
def ua_batch() -> list[dict]:
    return [
        direct_record({
            "Business": {"miles": 60000, "tax": "USD 56.00", "seats": 2},
            "Economy": {"miles": 35000, "tax": 20, "seats": 9},
        }),
    ]
