"""
Pricing API endpoints for resolved provider rates and the pricing cache.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from api.dependencies import get_aggregator, get_cache
from cloudcost.cache import PricingCache
from cloudcost.logger import logger, print_stack_trace
from cloudcost.models import Provider
from cloudcost.normalization import normalize_request
from cloudcost.pricing_aggregator import PricingAggregator

router = APIRouter(prefix="/pricing", tags=["Pricing"])


# --------------------------------------------------
# Cache Endpoints
# (registered before /pricing/{provider} so "cache" is not read as a provider)
# --------------------------------------------------

@router.get("/cache", summary="Pricing Cache Status")
def get_cache_status(cache: PricingCache = Depends(get_cache)):
    """
    Lists the cached rate triples.

    **Returns**: `{status, cache: {size, entries: [{key, timestamp, age, stale}]}}`
    with `timestamp` in epoch milliseconds and `age` in milliseconds.
    """
    entries = cache.status()
    return {"status": "ok", "cache": {"size": len(entries), "entries": entries}}


@router.post("/cache/clear", summary="Clear Pricing Cache")
def clear_cache(cache: PricingCache = Depends(get_cache)):
    """Removes every cached entry; the next request for any key queries upstream."""
    removed = cache.clear()
    return {"status": "ok", "message": f"Pricing cache cleared ({removed} entries removed)"}


# --------------------------------------------------
# Provider Pricing Endpoint
# --------------------------------------------------

@router.get("/{provider}", summary="Fetch Provider Pricing")
async def get_provider_pricing(
    provider: str,
    region: Optional[str] = Query(default=None, description="Region hint, remapped to the provider's naming"),
    instanceType: Optional[str] = Query(default=None, description="Instance type hint, remapped to the provider's naming"),
    fresh: bool = Query(default=False, description="Bypass the pricing cache"),
    aggregator: PricingAggregator = Depends(get_aggregator),
):
    """
    Returns the normalized rates of one provider.

    - **provider**: `aws`, `azure` or `gcp` (case-insensitive).
    - **fresh**: If `true`, ignores the cache and queries the pricing API.

    **Returns**: `{provider, region, instanceType, pricing: {compute, storage, data}}`
    where region and instanceType are the values actually priced.
    """
    try:
        selected = Provider.parse(provider)
    except ValueError:
        return JSONResponse(status_code=400, content={"error": f"Unknown provider: {provider}. Use aws, azure or gcp"})

    try:
        resolved_region, resolved_instance = normalize_request(selected, region or None, instanceType or None)
        result = await aggregator.get_provider_result(selected, resolved_region, resolved_instance, force_fresh=fresh)
        return {
            "provider": selected.value,
            "region": resolved_region,
            "instanceType": resolved_instance,
            "pricing": result.rates.to_dict(),
        }
    except Exception as e:
        logger.error(f"Error fetching {provider} pricing: {e}")
        print_stack_trace()
        return JSONResponse(status_code=500, content={"error": f"Failed to fetch {selected.value} pricing", "details": str(e)})
