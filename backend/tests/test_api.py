import pytest
from fastapi.testclient import TestClient

from conftest import FakeCache, FakeProviderClient, breakdown_segment, candidate, slice_payload

from milevalue.main import app
from milevalue.services.enrichment_service import enrichment_coordinator

client = TestClient(app)


def _itinerary_payload() -> dict:
    return {"id": "itin-1", "totalAmount": 1100, "currency": "USD", "slices": [slice_payload()]}


def test_health():
    resp = client.get("/api/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_value_endpoint():
    resp = client.post("/api/awards/value", json={"miles": 60000, "tax": 56, "perMileValue": 0.015})

    assert resp.status_code == 200
    body = resp.json()
    assert body["value"] == 956.0
    assert body["formatted"] == "$956"


@pytest.mark.parametrize("payload", [
    {"miles": -1, "tax": 0},
    {"miles": 1000, "tax": 0, "per_mile_value": 0},
    {"miles": 1000, "tax": 0, "per_mile_value": 1.5},
    {"tax": 10},
])
def test_value_endpoint_rejects_invalid_input(payload):
    assert client.post("/api/awards/value", json=payload).status_code == 422


def test_programs_endpoint():
    slice_ = slice_payload(breakdown=[breakdown_segment("SFO", "NRT", [
        candidate("UA837", 80000, 56.00),
        candidate("NH7", 75000, "USD 120.00", carrier="NH"),
    ])])

    resp = client.post("/api/awards/programs", json={"slice": slice_, "perMileValue": 0.015})

    assert resp.status_code == 200
    body = resp.json()
    assert [p["carrier_code"] for p in body["programs"]] == ["UA", "NH"]
    assert body["best_route"]["strategy"] == "nonstop"


def test_evaluate_endpoint(ua_batch):
    resp = client.post("/api/awards/evaluate", json={
        "itinerary": _itinerary_payload(),
        "carrierBatches": {"UA": ua_batch},
        "perMileValue": 0.015,
    })

    assert resp.status_code == 200
    body = resp.json()
    assert body["total_best_value"] == 956.0
    assert body["beatable"] is True


def test_enrich_endpoint_uses_coordinator(monkeypatch, ua_batch):
    fake = FakeProviderClient({"UA": ua_batch})
    monkeypatch.setattr(enrichment_coordinator, "client", fake)
    monkeypatch.setattr(enrichment_coordinator, "cache", FakeCache())

    resp = client.post("/api/awards/enrich", json={"itinerary": _itinerary_payload(), "reset": True})

    assert resp.status_code == 200
    body = resp.json()
    assert fake.calls == ["UA"]
    assert body["carriers"] == ["UA"]
    assert body["beatable"] is True
    assert body["enrichment"]["failed"] == 0
