from typing import Any, Dict

import httpx

import cloudcost.constants as CONSTANTS
from cloudcost.exceptions import UpstreamError
from cloudcost.fetch_data import rate_extractor_azure
from cloudcost.fetch_data.factory import CachedPricingClient
from cloudcost.logger import logger
from cloudcost.models import Provider, RateTriple


class AzurePricingClient(CachedPricingClient):
    """
    Virtual Machine pay-as-you-go pricing from the public Azure Retail Prices API.

    The API needs no credentials. Only the first page is read: the OData
    filter narrows the result to a handful of rows.
    """

    provider = Provider.AZURE

    async def _get_retail_prices(self, region: str, instance_type: str) -> Dict[str, Any]:
        params = {"$filter": rate_extractor_azure.build_retail_filter(region, instance_type)}
        try:
            async with httpx.AsyncClient(timeout=self.settings.UPSTREAM_TIMEOUT_SECONDS) as client:
                response = await client.get(CONSTANTS.AZURE_RETAIL_PRICES_URL, params=params)
        except httpx.TimeoutException as e:
            raise UpstreamError(
                f"Azure Retail Prices API timed out after {self.settings.UPSTREAM_TIMEOUT_SECONDS}s",
                provider=self.provider.value,
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"Azure Retail Prices API unreachable: {e}", provider=self.provider.value) from e

        if response.status_code != 200:
            raise UpstreamError(
                f"Azure Retail Prices API returned {response.status_code}",
                provider=self.provider.value,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError(f"Azure Retail Prices API returned invalid JSON: {e}", provider=self.provider.value) from e
        if not isinstance(payload, dict):
            raise UpstreamError("Azure Retail Prices API returned an unexpected body", provider=self.provider.value)
        return payload

    async def _fetch_live(self, region: str, instance_type: str, fresh: bool = False) -> RateTriple:
        logger.info(f"🔍 Fetching Azure VM pricing for {instance_type} in {region}...")
        payload = await self._get_retail_prices(region, instance_type)
        logger.debug(f"   Azure returned {len(payload.get('Items') or [])} rows")
        return rate_extractor_azure.extract_rates(payload, region, instance_type)

    def _fallback_rates(self, region: str, instance_type: str) -> RateTriple:
        return rate_extractor_azure.fallback_rates(region, instance_type)
