"""
Pytest fixtures and configuration for the CloudCost tests.

Provides:
- Settings with short timeouts and no credentials
- A pricing cache driven by a fake clock
- Stub pricing clients with controllable upstream behaviour
- A TestClient bound to an app built from the stubs
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock

from cloudcost.cache import PricingCache
from cloudcost.config import Settings
from cloudcost.fetch_data import rate_extractor_aws, rate_extractor_azure, rate_extractor_gcp
from cloudcost.fetch_data.factory import CachedPricingClient
from cloudcost.models import Provider
from cloudcost.pricing_aggregator import PricingAggregator


FALLBACKS = {
    Provider.AWS: rate_extractor_aws.fallback_rates,
    Provider.AZURE: rate_extractor_azure.fallback_rates,
    Provider.GCP: rate_extractor_gcp.fallback_rates,
}


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubPricingClient(CachedPricingClient):
    """Pricing client whose upstream is an AsyncMock (set side_effect or return_value)."""

    def __init__(self, provider: Provider, cache: PricingCache, settings: Settings):
        self.provider = provider
        super().__init__(cache=cache, settings=settings)
        self.upstream = AsyncMock()

    async def _fetch_live(self, region, instance_type, fresh=False):
        return await self.upstream(region, instance_type)

    def _fallback_rates(self, region, instance_type):
        return FALLBACKS[self.provider](region, instance_type)


@pytest.fixture
def settings():
    return Settings(
        GCP_API_KEY="",
        UPSTREAM_TIMEOUT_SECONDS=1.0,
        PROVIDER_TIMEOUT_SECONDS=0.5,
        PRICING_CACHE_TTL_SECONDS=3600,
        PRICING_CACHE_MAX_ENTRIES=512,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return PricingCache(ttl_seconds=3600, clock=clock)


@pytest.fixture
def stub_clients(cache, settings):
    """One stub client per provider; every upstream fails until a test configures it."""
    clients = {provider: StubPricingClient(provider, cache, settings) for provider in Provider}
    for client in clients.values():
        client.upstream.side_effect = ConnectionError("upstream unreachable")
    return clients


@pytest.fixture
def aggregator(stub_clients, cache, settings):
    return PricingAggregator(stub_clients, cache, settings)


@pytest.fixture
def api_client(settings, cache, aggregator):
    """TestClient for an app wired to the stub clients."""
    from rest_api import create_app

    app = create_app(settings=settings, cache=cache, aggregator=aggregator)
    with TestClient(app) as client:
        yield client
