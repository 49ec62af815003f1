import asyncio
from typing import Any, List, Optional

from google.api_core.exceptions import GoogleAPIError
from google.cloud import billing_v1

import cloudcost.constants as CONSTANTS
from cloudcost.exceptions import ConfigurationError, UpstreamError
from cloudcost.fetch_data import rate_extractor_gcp
from cloudcost.fetch_data.factory import CachedPricingClient
from cloudcost.logger import logger
from cloudcost.models import Provider, RateTriple


def _get_catalog_client(api_key: str) -> billing_v1.CloudCatalogAsyncClient:
    return billing_v1.CloudCatalogAsyncClient(client_options={"api_key": api_key})


async def _next_page(pages) -> Optional[Any]:
    try:
        return await pages.__anext__()
    except StopAsyncIteration:
        return None


async def _list_compute_skus(client: billing_v1.CloudCatalogAsyncClient, page_timeout: float) -> List[Any]:
    """
    Download every Compute Engine SKU, one page at a time.

    page_timeout bounds each page request separately, so a healthy catalog
    spanning many pages is not cut off by a single deadline.
    """
    request = billing_v1.ListSkusRequest(
        parent=f"services/{CONSTANTS.GCP_COMPUTE_ENGINE_SERVICE_ID}",
        page_size=CONSTANTS.GCP_SKU_PAGE_SIZE,
    )
    pager = await asyncio.wait_for(client.list_skus(request=request), timeout=page_timeout)

    skus: List[Any] = []
    pages = pager.pages
    page_count = 0
    while True:
        page = await asyncio.wait_for(_next_page(pages), timeout=page_timeout)
        if page is None:
            break
        page_count += 1
        skus.extend(page.skus)
    logger.debug(f"   GCP catalog listing took {page_count} page(s)")
    return skus


class GCPPricingClient(CachedPricingClient):
    """
    Compute Engine pricing from the Cloud Billing Catalog API.

    The hourly rate of a machine type is assembled from its family's per-vCPU
    and per-GB-RAM SKUs. Requires GCP_API_KEY.

    The catalog is the same for every region and machine type, so the raw SKU
    list is kept for the pricing cache TTL and shared by all lookups. A fresh
    request, a cache clear or an expired TTL downloads it again.
    """

    provider = Provider.GCP

    def __init__(self, cache, settings):
        super().__init__(cache=cache, settings=settings)
        self._catalog: Optional[List[Any]] = None
        self._catalog_fetched_at = 0.0
        self._catalog_generation = -1

    def _catalog_is_current(self) -> bool:
        if self._catalog is None or self._catalog_generation != self.cache.generation:
            return False
        return self.cache.now() - self._catalog_fetched_at < self.cache.ttl_seconds

    async def _fetch_skus(self) -> List[Any]:
        async with _get_catalog_client(self.settings.GCP_API_KEY) as client:
            return await _list_compute_skus(client, self.settings.UPSTREAM_TIMEOUT_SECONDS)

    async def _compute_skus(self, fresh: bool) -> List[Any]:
        if not fresh and self._catalog_is_current():
            logger.debug(f"   Reusing GCP catalog of {len(self._catalog)} SKUs")
            return self._catalog

        try:
            skus = await self._fetch_skus()
        except asyncio.TimeoutError as e:
            raise UpstreamError(
                f"Cloud Billing Catalog API page timed out after {self.settings.UPSTREAM_TIMEOUT_SECONDS}s",
                provider=self.provider.value,
            ) from e
        except GoogleAPIError as e:
            raise UpstreamError(f"Cloud Billing Catalog API error: {e}", provider=self.provider.value) from e

        self._catalog = skus
        self._catalog_fetched_at = self.cache.now()
        self._catalog_generation = self.cache.generation
        logger.debug(f"   GCP returned {len(skus)} Compute Engine SKUs")
        return skus

    async def _fetch_live(self, region: str, instance_type: str, fresh: bool = False) -> RateTriple:
        if not self.settings.GCP_API_KEY:
            raise ConfigurationError("GCP_API_KEY is not set", provider=self.provider.value)

        logger.info(f"🔍 Fetching GCP Compute Engine pricing for {instance_type} in {region}...")
        skus = await self._compute_skus(fresh)
        return rate_extractor_gcp.extract_rates(skus, region, instance_type)

    def _fallback_rates(self, region: str, instance_type: str) -> RateTriple:
        return rate_extractor_gcp.fallback_rates(region, instance_type)
