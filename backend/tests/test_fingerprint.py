from conftest import ARRIVES, DEPARTS, slice_payload

from milevalue.schemas.flight import Itinerary, Slice
from milevalue.services.awards.fingerprint import (
    detect_code_shares,
    fingerprint,
    is_code_share,
    operating_carrier,
)


def _itinerary(itinerary_id: str, carrier: str, flight: str, **kwargs) -> Itinerary:
    return Itinerary.model_validate({
        "id": itinerary_id,
        "slices": [slice_payload(carrier=carrier, flight=flight, **kwargs)],
    })


def test_fingerprint_format():
    slice_ = Slice.model_validate(slice_payload(stops=["HNL"]))
    assert fingerprint(slice_) == "SFO|NRT|2026-03-01T10:00|2026-03-02T14:00|HNL"


def test_fingerprint_ignores_carrier_cabin_and_seconds():
    a = Slice.model_validate(slice_payload(carrier="UA", flight="UA837", cabin="Business"))
    b = Slice.model_validate(slice_payload(
        carrier="NH", flight="NH7011", cabin="Economy", departs="2026-03-01T10:00:45",
    ))
    assert fingerprint(a) == fingerprint(b)


def test_fingerprint_differs_on_stops():
    a = Slice.model_validate(slice_payload())
    b = Slice.model_validate(slice_payload(stops=["HNL"]))
    assert fingerprint(a) != fingerprint(b)


def test_operating_carrier_falls_back_to_flight_prefix():
    slice_ = Slice.model_validate({
        "origin": "SFO", "destination": "NRT", "departure": DEPARTS, "arrival": ARRIVES,
        "flights": ["B6123"],
    })
    assert operating_carrier(slice_) == "B6"


def test_code_share_siblings():
    ua = _itinerary("a", "UA", "UA837")
    nh = _itinerary("b", "NH", "NH7011")
    assert is_code_share(ua, nh)

    groups = detect_code_shares([nh, ua])
    assert len(groups) == 1
    assert groups[0].parent is ua
    assert groups[0].children == [nh]
    assert groups[0].partners_of(nh) == [ua]


def test_same_carrier_is_not_a_code_share():
    first = _itinerary("a", "UA", "UA837")
    second = _itinerary("b", "UA", "UA9")
    assert not is_code_share(first, second)

    groups = detect_code_shares([first, second])
    assert [g.parent for g in groups] == [first, second]
    assert not any(g.is_code_share for g in groups)
