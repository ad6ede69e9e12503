"""Enrichment coordinator: fetches raw award batches per carrier for a search.

Concurrent requests for the same carrier and search share one in-flight task. Batches
come from the redis cache when present, otherwise from the award provider.
A carrier whose fetch raised is recorded as failed and maps to [] so the
rest of the search still gets award data.
"""

import asyncio
import logging
import re
from typing import Any

from milevalue.config import settings
from milevalue.schemas.flight import Itinerary
from milevalue.services.award_provider_client import AwardProviderClient, award_provider_client
from milevalue.services.awards.fingerprint import operating_carrier
from milevalue.services.cache_service import CacheService, cache_service, enrichment_key

logger = logging.getLogger(__name__)

_CARRIER_CODE = re.compile(r"^[A-Z0-9]{2}$")


def is_carrier_code(value: str) -> bool:
    return bool(value) and bool(_CARRIER_CODE.match(value.upper()))


def itinerary_carriers(itinerary: Itinerary) -> list[str]:
    """Distinct operating carriers across the itinerary's slices, in slice order."""
    carriers: list[str] = []
    for slice_ in itinerary.slices:
        carrier = operating_carrier(slice_).upper()
        if is_carrier_code(carrier) and carrier not in carriers:
            carriers.append(carrier)
    return carriers


class EnrichmentCoordinator:
    """Per-search fetch state: enriched, failed and in-flight carriers."""

    def __init__(
        self,
        client: AwardProviderClient | None = None,
        cache: CacheService | None = None,
        batch_size: int | None = None,
    ):
        self.client = client or award_provider_client
        self.cache = cache or cache_service
        self.batch_size = max(1, batch_size or settings.enrichment_batch_size)
        self._in_flight: dict[str, asyncio.Task] = {}
        self.enriched: set[str] = set()
        self.failed: set[str] = set()

    async def fetch(self, carrier: str, **search: Any) -> list[dict]:
        """Raw records for one carrier. Never raises; failures yield []."""
        carrier = (carrier or "").upper()
        if not is_carrier_code(carrier):
            logger.debug(f"Skipping enrichment for non-carrier code {carrier!r}")
            return []

        key = enrichment_key(carrier, **search)
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load(carrier, search))
            self._in_flight[key] = task
            task.add_done_callback(lambda t, k=key: self._forget(k, t))
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Task):
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    async def _load(self, carrier: str, search: dict[str, Any]) -> list[dict]:
        cached = await self.cache.get_enrichment(carrier, **search)
        if cached is not None:
            logger.debug(f"Enrichment cache hit for {carrier} ({len(cached)} records)")
            self.enriched.add(carrier)
            self.failed.discard(carrier)
            return cached

        try:
            records = await self.client.fetch_awards(carrier, **search)
        except Exception as e:
            logger.error(f"Enrichment failed for {carrier}: {e}")
            self.failed.add(carrier)
            return []

        self.enriched.add(carrier)
        self.failed.discard(carrier)
        if records:
            await self.cache.set_enrichment(carrier, records, **search)
        return records

    async def fetch_many(self, carriers: list[str], **search: Any) -> dict[str, list[dict]]:
        """Fetch carriers in concurrent batches; every valid carrier appears in the result."""
        unique: list[str] = []
        for carrier in carriers:
            code = (carrier or "").upper()
            if is_carrier_code(code) and code not in unique:
                unique.append(code)

        batches: dict[str, list[dict]] = {}
        for i in range(0, len(unique), self.batch_size):
            batch = unique[i:i + self.batch_size]
            logger.info(f"Fetching award batches for carriers: {', '.join(batch)}")
            results = await asyncio.gather(
                *(self.fetch(carrier, **search) for carrier in batch),
                return_exceptions=True,
            )
            for carrier, result in zip(batch, results):
                if isinstance(result, Exception):
                    logger.warning(f"Enrichment task failed for {carrier}: {result}")
                    self.failed.add(carrier)
                    batches[carrier] = []
                else:
                    batches[carrier] = result
        return batches

    async def fetch_for_itinerary(self, itinerary: Itinerary) -> dict[str, list[dict]]:
        search: dict[str, Any] = {}
        if itinerary.slices:
            first = itinerary.slices[0]
            search = {
                "origin": first.origin.code or None,
                "destination": first.destination.code or None,
                "departure_date": first.departure[:10] or None,
            }
        return await self.fetch_many(itinerary_carriers(itinerary), **search)

    def reset(self):
        """Clear per-search state. In-flight tasks finish but are no longer shared."""
        self._in_flight.clear()
        self.enriched.clear()
        self.failed.clear()

    def status(self) -> dict:
        return {
            "enriched": len(self.enriched),
            "failed": len(self.failed),
            "in_flight": len(self._in_flight),
            "failed_carriers": sorted(self.failed),
        }


enrichment_coordinator = EnrichmentCoordinator()
