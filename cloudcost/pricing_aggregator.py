"""
Pricing Aggregator
==================
Resolves the rate triples of all providers concurrently.

The aggregator is a total function: every provider is always present in the
result. A provider whose client fails (upstream error, timeout, missing
credential or an unexpected defect) is replaced by its static fallback rates.
Fallback results are not written to the cache, so the next request retries
upstream.
"""

import asyncio
from typing import Dict, List, Mapping, Optional

from cloudcost.cache import PricingCache
from cloudcost.config import Settings
from cloudcost.fetch_data.factory import PricingClient, PricingClientFactory
from cloudcost.logger import logger
from cloudcost.models import Provider, ProviderResult, RateTriple


class PricingAggregator:
    def __init__(self, clients: Mapping[Provider, PricingClient], cache: PricingCache, settings: Settings):
        missing = [p.value for p in Provider if p not in clients]
        if missing:
            raise ValueError(f"No pricing client registered for: {missing}")
        self.clients = dict(clients)
        self.cache = cache
        self.settings = settings

    @classmethod
    def from_settings(cls, cache: PricingCache, settings: Settings) -> "PricingAggregator":
        return cls(PricingClientFactory.create_all(cache=cache, settings=settings), cache, settings)

    async def _resolve_bounded(self, provider: Provider, region, instance_type, force_fresh: bool) -> ProviderResult:
        client = self.clients[provider]
        return await asyncio.wait_for(
            client.resolve(region, instance_type, fresh=force_fresh),
            timeout=self.settings.PROVIDER_TIMEOUT_SECONDS,
        )

    def _fallback_result(self, provider: Provider, region, instance_type, error: BaseException) -> ProviderResult:
        rates = self.clients[provider].fallback(region, instance_type)
        reason = "timed out" if isinstance(error, asyncio.TimeoutError) else f"{type(error).__name__}: {error}"
        logger.warning(f"⚠️ {provider.value} pricing unavailable ({reason}). Using static rates {rates.to_dict()}")
        return ProviderResult(provider, rates, resolved_from_cache=False)

    def _settle(self, provider: Provider, outcome, region, instance_type) -> ProviderResult:
        if isinstance(outcome, ProviderResult):
            return outcome
        if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
            # Cancellation and interpreter exits are not provider failures
            raise outcome
        return self._fallback_result(provider, region, instance_type, outcome)

    async def get_all_results(
        self,
        region: Optional[str] = None,
        instance_type: Optional[str] = None,
        force_fresh: bool = False,
    ) -> List[ProviderResult]:
        """
        One ProviderResult per provider, in AWS, Azure, GCP order.

        All providers are awaited; a failure of one never short-circuits the others.
        """
        providers = list(Provider)
        outcomes = await asyncio.gather(
            *(self._resolve_bounded(p, region, instance_type, force_fresh) for p in providers),
            return_exceptions=True,
        )
        return [self._settle(p, outcome, region, instance_type) for p, outcome in zip(providers, outcomes)]

    async def get_all_pricing(
        self,
        region: Optional[str] = None,
        instance_type: Optional[str] = None,
        force_fresh: bool = False,
    ) -> Dict[Provider, RateTriple]:
        results = await self.get_all_results(region, instance_type, force_fresh)
        return {result.provider: result.rates for result in results}

    async def get_provider_result(
        self,
        provider: Provider,
        region: Optional[str] = None,
        instance_type: Optional[str] = None,
        force_fresh: bool = False,
    ) -> ProviderResult:
        """Single-provider resolution with the same fallback substitution."""
        try:
            return await self._resolve_bounded(provider, region, instance_type, force_fresh)
        except Exception as e:
            return self._fallback_result(provider, region, instance_type, e)
