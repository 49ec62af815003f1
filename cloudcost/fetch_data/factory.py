"""
Factory Pattern: Pricing Client Factory
=======================================
Provides centralized creation of pricing client instances.

This module provides:
- PricingClient: Protocol (interface) for provider pricing clients
- CachedPricingClient: Base class adding input remapping and caching
- PricingClientFactory: Factory class for creating client instances

Usage:
    from cloudcost.fetch_data.factory import PricingClientFactory

    # Create a specific client
    aws_client = PricingClientFactory.create("aws", cache=cache, settings=settings)
    rates = await aws_client.fetch("us-east-1", "m5.large")

    # Get one client per provider
    clients = PricingClientFactory.create_all(cache=cache, settings=settings)
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Protocol, Tuple, Union, runtime_checkable

from cloudcost.cache import PricingCache
from cloudcost.config import Settings
from cloudcost.logger import logger
from cloudcost.models import CacheKey, Provider, ProviderResult, RateTriple
from cloudcost.normalization import normalize_request


# =============================================================================
# Pricing Client Protocol
# =============================================================================

@runtime_checkable
class PricingClient(Protocol):
    """
    Protocol interface for provider pricing clients.

    Each cloud provider (AWS, Azure, GCP) implements this protocol to turn a
    generic (region, instance type) pair into a fully populated RateTriple.
    """

    provider: Provider

    def normalize(self, region: Optional[str], instance_type: Optional[str]) -> Tuple[str, str]:
        """Map a generic (region, instance type) pair to this provider's vocabulary."""
        ...

    async def resolve(self, region: Optional[str], instance_type: Optional[str], fresh: bool = False) -> ProviderResult:
        """Resolve rates, serving from the cache unless fresh is requested."""
        ...

    async def fetch(self, region: Optional[str], instance_type: Optional[str], fresh: bool = False) -> RateTriple:
        ...

    def fallback(self, region: Optional[str], instance_type: Optional[str]) -> RateTriple:
        """Static rates used when the provider cannot be resolved live."""
        ...


# =============================================================================
# Shared client behaviour
# =============================================================================

class CachedPricingClient(ABC):
    """
    Remaps inputs, consults the pricing cache and otherwise queries upstream.

    Subclasses implement _fetch_live (one or more upstream calls followed by
    the provider's rate extractor) and _fallback_rates. Any exception from
    _fetch_live propagates: the aggregator decides what to substitute.
    _fetch_live receives the fresh flag so clients holding raw upstream data
    outside the cache can refresh it too.
    """

    provider: Provider

    def __init__(self, cache: PricingCache, settings: Settings):
        self.cache = cache
        self.settings = settings

    def normalize(self, region: Optional[str], instance_type: Optional[str]) -> Tuple[str, str]:
        return normalize_request(self.provider, region, instance_type)

    async def resolve(self, region: Optional[str], instance_type: Optional[str], fresh: bool = False) -> ProviderResult:
        region, instance_type = self.normalize(region, instance_type)
        key = CacheKey(self.provider, region, instance_type)

        cached = self.cache.get(key, force_fresh=fresh)
        if cached is not None:
            logger.info(f"✅ Using cached {self.provider.value} pricing for {key}")
            return ProviderResult(self.provider, cached, resolved_from_cache=True)

        logger.info(f"🔄 Fetching fresh {self.provider.value} pricing for {instance_type} in {region}...")
        rates = await self._fetch_live(region, instance_type, fresh=fresh)
        self.cache.put(key, rates)
        logger.info(f"✅ Final {self.provider.value} pricing: {rates.to_dict()}")
        return ProviderResult(self.provider, rates, resolved_from_cache=False)

    async def fetch(self, region: Optional[str], instance_type: Optional[str], fresh: bool = False) -> RateTriple:
        result = await self.resolve(region, instance_type, fresh=fresh)
        return result.rates

    def fallback(self, region: Optional[str], instance_type: Optional[str]) -> RateTriple:
        region, instance_type = self.normalize(region, instance_type)
        return self._fallback_rates(region, instance_type)

    @abstractmethod
    async def _fetch_live(self, region: str, instance_type: str, fresh: bool = False) -> RateTriple:
        ...

    @abstractmethod
    def _fallback_rates(self, region: str, instance_type: str) -> RateTriple:
        ...


# =============================================================================
# Pricing Client Factory
# =============================================================================

def _default_registry() -> Dict[Provider, type]:
    from cloudcost.fetch_data.cloud_price_fetcher_aws import AWSPricingClient
    from cloudcost.fetch_data.cloud_price_fetcher_azure import AzurePricingClient
    from cloudcost.fetch_data.cloud_price_fetcher_google import GCPPricingClient

    return {
        Provider.AWS: AWSPricingClient,
        Provider.AZURE: AzurePricingClient,
        Provider.GCP: GCPPricingClient,
    }


class PricingClientFactory:
    """
    Factory for creating pricing client instances.

    Provides centralized creation of provider-specific clients, making it
    easy to register fake clients for testing.

    Example:
        >>> client = PricingClientFactory.create("gcp", cache=PricingCache(), settings=Settings())
        >>> isinstance(client, PricingClient)
        True
        >>> client.provider
        <Provider.GCP: 'GCP'>
    """

    _registry: Dict[Provider, type] = {}

    @classmethod
    def _ensure_registry(cls) -> None:
        if not cls._registry:
            cls._registry = _default_registry()

    @classmethod
    def create(cls, provider: Union[str, Provider], cache: PricingCache, settings: Settings) -> PricingClient:
        """
        Create a pricing client for the specified provider.

        Raises:
            ValueError: If provider is not registered
        """
        cls._ensure_registry()
        if not isinstance(provider, Provider):
            provider = Provider.parse(provider)
        if provider not in cls._registry:
            raise ValueError(
                f"Unknown provider: {provider}. "
                f"Available: {cls.available_providers()}"
            )
        return cls._registry[provider](cache=cache, settings=settings)

    @classmethod
    def create_all(cls, cache: PricingCache, settings: Settings) -> Dict[Provider, PricingClient]:
        """One client per provider, sharing the same cache."""
        cls._ensure_registry()
        return {provider: cls.create(provider, cache=cache, settings=settings) for provider in Provider}

    @classmethod
    def register(cls, provider: Union[str, Provider], client_class: type) -> None:
        """
        Register a client class (fake clients in tests, or another implementation).
        """
        cls._ensure_registry()
        if not isinstance(provider, Provider):
            provider = Provider.parse(provider)
        cls._registry[provider] = client_class

    @classmethod
    def reset(cls) -> None:
        """Restore the built-in registrations."""
        cls._registry = _default_registry()

    @classmethod
    def available_providers(cls) -> List[str]:
        cls._ensure_registry()
        return [provider.value for provider in cls._registry]
