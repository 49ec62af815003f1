"""
Cost comparison endpoint.
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from api.dependencies import get_aggregator
from cloudcost.comparison import compare
from cloudcost.logger import logger, print_stack_trace
from cloudcost.models import Provider, UsageRequest
from cloudcost.pricing_aggregator import PricingAggregator

router = APIRouter(tags=["Comparison"])

MISSING_USAGE_ERROR = "Please provide computeHours, storageGB, and dataGB"
UNKNOWN_PROVIDER_ERROR = "Unknown provider filter"


# --------------------------------------------------
# Input model for comparison
# --------------------------------------------------
class CompareRequest(BaseModel):
    """
    Usage figures and optional placement hints of one comparison.

    The usage fields are optional here so that a missing field produces the
    documented 400 message instead of a generic validation error.
    """
    provider: Optional[str] = Field(default=None, description="Optional filter: AWS, Azure or GCP (case-insensitive)")
    region: Optional[str] = Field(default=None, description="Region hint, remapped per provider")
    instanceSize: Optional[str] = Field(default=None, description="Instance type hint, remapped per provider")

    computeHours: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False, description="Compute hours (must be >= 0)")
    storageGB: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False, description="Stored GB per month (must be >= 0)")
    dataGB: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False, description="GB transferred out (must be >= 0)")

    fresh: bool = Field(default=False, description="Bypass the pricing cache")


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


@router.post("/compare", summary="Compare Cloud Costs")
async def compare_costs(
    params: CompareRequest = Body(
        ...,
        examples=[{"computeHours": 10, "storageGB": 50, "dataGB": 10}],
    ),
    aggregator: PricingAggregator = Depends(get_aggregator),
):
    """
    Estimates compute, storage and data transfer costs on AWS, Azure and GCP.

    - **provider**: Restricts the comparison to one provider.
    - **region** / **instanceSize**: Generic hints; each provider keeps them only if they fit its naming, otherwise its default is used.
    - **fresh**: If `true`, ignores cached rates and queries the pricing APIs.

    **Returns**: `{results, recommendation: {chosen, bestSingle, mixed, savings, tips}}`.
    Providers whose pricing source is unavailable are priced with static rates.
    """
    if params.computeHours is None or params.storageGB is None or params.dataGB is None:
        return JSONResponse(status_code=400, content={"error": MISSING_USAGE_ERROR})

    provider_filter = None
    if _blank_to_none(params.provider) is not None:
        try:
            provider_filter = Provider.parse(params.provider)
        except ValueError:
            return JSONResponse(status_code=400, content={"error": UNKNOWN_PROVIDER_ERROR})

    try:
        usage = UsageRequest(
            compute_hours=params.computeHours,
            storage_gb=params.storageGB,
            data_gb=params.dataGB,
            region=_blank_to_none(params.region),
            instance_type=_blank_to_none(params.instanceSize),
            force_fresh=params.fresh,
        )
    except ValueError as e:
        return JSONResponse(status_code=400, content={"error": "Invalid request", "details": str(e)})

    try:
        if provider_filter is None:
            results = await aggregator.get_all_results(usage.region, usage.instance_type, usage.force_fresh)
        else:
            results = [await aggregator.get_provider_result(provider_filter, usage.region, usage.instance_type, usage.force_fresh)]
        return compare(results, usage)
    except Exception as e:
        logger.error(f"Error comparing costs: {e}")
        print_stack_trace()
        return JSONResponse(status_code=500, content={"error": "Failed to compare costs", "details": str(e)})
