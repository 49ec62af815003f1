"""
Shared dependencies for route handlers.

The pricing cache and aggregator are created once in the application lifespan
and stored on app.state.
"""
from fastapi import Request

from cloudcost.cache import PricingCache
from cloudcost.pricing_aggregator import PricingAggregator


def get_aggregator(request: Request) -> PricingAggregator:
    return request.app.state.aggregator


def get_cache(request: Request) -> PricingCache:
    return request.app.state.cache
