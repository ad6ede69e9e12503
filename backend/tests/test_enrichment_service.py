import asyncio

from conftest import FakeCache, FakeProviderClient, direct_record

from milevalue.services.cache_service import enrichment_key
from milevalue.services.enrichment_service import EnrichmentCoordinator, is_carrier_code


def _coordinator(client, cache=None, batch_size=2) -> EnrichmentCoordinator:
    return EnrichmentCoordinator(client=client, cache=cache or FakeCache(), batch_size=batch_size)


def test_concurrent_fetches_for_one_carrier_are_coalesced():
    records = [direct_record({"Business": {"miles": 60000, "tax": 56}})]
    client = FakeProviderClient({"UA": records})
    coordinator = _coordinator(client)

    async def run():
        return await asyncio.gather(coordinator.fetch("UA"), coordinator.fetch("ua"))

    first, second = asyncio.run(run())

    assert client.calls == ["UA"]
    assert first == records
    assert second == records
    assert coordinator.status()["in_flight"] == 0


def test_cached_batch_skips_provider():
    cached = [direct_record({"Business": {"miles": 60000, "tax": 56}})]
    client = FakeProviderClient()
    coordinator = _coordinator(client, FakeCache({"enrichment:UA": cached}))

    assert asyncio.run(coordinator.fetch("UA")) == cached
    assert client.calls == []


def test_fresh_batches_are_cached_but_empty_ones_are_not():
    records = [direct_record({"Business": {"miles": 60000, "tax": 56}})]
    cache = FakeCache()
    coordinator = _coordinator(FakeProviderClient({"UA": records}), cache)

    asyncio.run(coordinator.fetch_many(["UA", "DL"]))

    assert cache.stored == {"enrichment:UA": records}


def test_failed_carrier_does_not_block_others():
    records = [direct_record({"Business": {"miles": 60000, "tax": 56}})]
    client = FakeProviderClient({"UA": records}, failing={"NH"})
    coordinator = _coordinator(client, batch_size=1)

    batches = asyncio.run(coordinator.fetch_many(["NH", "UA"]))

    assert batches == {"NH": [], "UA": records}
    assert coordinator.failed == {"NH"}
    assert coordinator.status()["enriched"] == 1
    assert coordinator.status()["failed_carriers"] == ["NH"]


def test_only_two_letter_carrier_codes_are_fetched():
    client = FakeProviderClient()
    coordinator = _coordinator(client)

    batches = asyncio.run(coordinator.fetch_many(["UAL", "", "ua", "B6", "UA"]))

    assert list(batches) == ["UA", "B6"]
    assert sorted(client.calls) == ["B6", "UA"]
    assert is_carrier_code("B6")
    assert not is_carrier_code("UAL")


def test_reset_clears_search_state():
    coordinator = _coordinator(FakeProviderClient(failing={"NH"}))
    asyncio.run(coordinator.fetch_many(["NH", "UA"]))

    coordinator.reset()

    assert coordinator.status() == {"enriched": 0, "failed": 0, "in_flight": 0, "failed_carriers": []}


def test_one_carrier_on_two_routes_fetches_and_caches_each_route():
    sfo = [direct_record({"Business": {"miles": 60000, "tax": 56}})]
    jfk = [direct_record({"Business": {"miles": 70000, "tax": 90}}, origin="JFK", destination="LHR")]
    client = FakeProviderClient({("UA", "SFO", "NRT"): sfo, ("UA", "JFK", "LHR"): jfk})
    cache = FakeCache()
    coordinator = _coordinator(client, cache)

    async def run():
        first = await coordinator.fetch("UA", origin="SFO", destination="NRT")
        second = await coordinator.fetch("UA", origin="JFK", destination="LHR")
        again = await coordinator.fetch("UA", origin="JFK", destination="LHR")
        return first, second, again

    first, second, again = asyncio.run(run())

    assert client.searches == [("UA", "SFO", "NRT"), ("UA", "JFK", "LHR")]
    assert first == sfo
    assert second == jfk
    assert again == jfk
    assert second[0]["data"]["origin"] == "JFK"
    assert sorted(cache.stored) == ["enrichment:UA:JFK:LHR:*:*", "enrichment:UA:SFO:NRT:*:*"]


def test_concurrent_fetches_for_different_routes_are_not_shared():
    client = FakeProviderClient()
    coordinator = _coordinator(client)

    async def run():
        return await asyncio.gather(
            coordinator.fetch("UA", origin="SFO", destination="NRT"),
            coordinator.fetch("UA", origin="JFK", destination="LHR"),
        )

    asyncio.run(run())

    assert sorted(client.searches) == [("UA", "JFK", "LHR"), ("UA", "SFO", "NRT")]


def test_enrichment_key_includes_the_search():
    assert enrichment_key("ua") == "enrichment:UA"
    assert enrichment_key("UA", origin="sfo", destination="nrt", departure_date="2026-03-01") == (
        "enrichment:UA:SFO:NRT:2026-03-01:*"
    )
