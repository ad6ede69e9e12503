"""Award provider client: fetches raw enrichment records per carrier over HTTP."""

import asyncio
import logging
from typing import Any

import httpx

from milevalue.config import settings

logger = logging.getLogger(__name__)


class AwardProviderClient:
    """Adapter for the third-party award search API.

    Returns raw records untouched; parsing belongs to the enrichment matcher.
    Runs unconfigured (every fetch returns []) when no base URL is set.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = settings.award_provider_base_url if base_url is None else base_url
        self._api_key = settings.award_provider_api_key if api_key is None else api_key
        self._timeout = timeout or settings.award_provider_timeout
        self._max_retries = max(1, max_retries or settings.award_provider_max_retries)
        self._transport = transport
        self._semaphore = asyncio.Semaphore(4)
        self._client: httpx.AsyncClient | None = None

    @property
    def configured(self) -> bool:
        return bool(self._base_url)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self._api_key:
                headers["Authorization"] = f"Bearer {self._api_key}"
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def fetch_awards(
        self,
        carrier: str,
        origin: str | None = None,
        destination: str | None = None,
        departure_date: str | None = None,
        cabin: str | None = None,
    ) -> list[dict[str, Any]]:
        """Raw enrichment records for one carrier, or [] after retries are exhausted."""
        if not self.configured:
            logger.debug(f"Award provider not configured, no records for {carrier}")
            return []

        params = {"carrier": carrier}
        if origin:
            params["origin"] = origin
        if destination:
            params["destination"] = destination
        if departure_date:
            params["date"] = departure_date
        if cabin:
            params["cabin"] = cabin

        client = await self._get_client()
        async with self._semaphore:
            for attempt in range(self._max_retries):
                last = attempt == self._max_retries - 1
                try:
                    resp = await client.get("/v2/awards", params=params)
                    if resp.status_code == 429 and not last:
                        logger.warning(f"Award provider rate limited for {carrier}, retrying")
                        await asyncio.sleep(2 ** attempt)
                        continue
                    resp.raise_for_status()
                    return self._records(resp.json(), carrier)
                except httpx.HTTPStatusError as e:
                    logger.error(f"Award provider error for {carrier}: {e.response.status_code}")
                    return []
                except httpx.RequestError as e:
                    logger.warning(f"Award provider request error for {carrier}: {e}")
                    if last:
                        return []
                    await asyncio.sleep(2 ** attempt)
                except ValueError as e:
                    logger.error(f"Award provider returned invalid JSON for {carrier}: {e}")
                    return []
        return []

    def _records(self, payload: Any, carrier: str) -> list[dict[str, Any]]:
        if isinstance(payload, dict):
            payload = payload.get("data", payload.get("results", []))
        if not isinstance(payload, list):
            logger.warning(f"Unexpected award payload for {carrier}: {type(payload).__name__}")
            return []
        records = [item for item in payload if isinstance(item, dict)]
        logger.info(f"Award provider returned {len(records)} records for {carrier}")
        return records

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None


award_provider_client = AwardProviderClient()
