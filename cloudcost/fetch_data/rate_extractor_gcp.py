import re
from typing import Any, Iterable, Optional, Tuple

import cloudcost.constants as CONSTANTS
from cloudcost.exceptions import ExtractionError
from cloudcost.fetch_data.extraction import resolve_component
from cloudcost.logger import logger
from cloudcost.models import RateTriple

# -------------------------------------------------------------------
# Static tables
# -------------------------------------------------------------------

STATIC_DEFAULTS_GCP = {
    "compute": {
        "e2-standard-2": 0.01,
        "e2-standard-4": 0.02,
        "n1-standard-2": 0.0116,
        "n1-standard-4": 0.0232,
    },
    "computeDefault": 0.01,
    "storageDefault": 0.020,   # Cloud Storage standard, per GB-month
    "dataDefault": 0.08,       # Premium tier internet egress, per GB
}

GCP_STORAGE_RATES = {
    "us-central1": 0.020,
    "us-east1": 0.020,
    "us-west1": 0.020,
    "europe-west1": 0.020,
    "europe-west3": 0.023,
    "asia-southeast1": 0.020,
}

GCP_DATA_TRANSFER_RATES = {
    "us-central1": 0.08,
    "us-east1": 0.08,
    "us-west1": 0.08,
    "europe-west1": 0.08,
    "europe-west3": 0.08,
    "asia-southeast1": 0.11,
}

# Machine type -> (vCPUs, memory GB)
GCP_MACHINE_TYPES = {
    "e2-micro": (2, 1),
    "e2-small": (2, 2),
    "e2-medium": (2, 4),
    "e2-standard-2": (2, 8),
    "e2-standard-4": (4, 16),
    "e2-standard-8": (8, 32),
    "e2-highmem-2": (2, 16),
    "n1-standard-1": (1, 3.75),
    "n1-standard-2": (2, 7.5),
    "n1-standard-4": (4, 15),
    "n1-standard-8": (8, 30),
    "n2-standard-2": (2, 8),
    "n2-standard-4": (4, 16),
    "n2-standard-8": (8, 32),
}

COMPUTE_RESOURCE_FAMILY = "Compute"
ON_DEMAND_USAGE_TYPE = "OnDemand"
NEGATIVE_KEYWORDS = ["spot", "preemptible", "commitment", "sole tenancy", "custom"]


# -------------------------------------------------------------------
# Helper Functions
# -------------------------------------------------------------------

def machine_family(machine_type: str) -> str:
    """'e2-standard-2' -> 'E2'"""
    return machine_type.split("-")[0].upper()


def machine_shape(machine_type: str) -> Tuple[float, float]:
    """
    Raises:
        ExtractionError: If the machine type is not in the static table
    """
    shape = GCP_MACHINE_TYPES.get(machine_type)
    if shape is None:
        raise ExtractionError(f"Unknown machine type: {machine_type}", provider="GCP")
    return shape


def _sanitize_sku(sku: Any) -> dict:
    """Filter out noisy fields for cleaner logging."""
    return {
        "description": sku.description,
        "category": sku.category.resource_family,
        "service_regions": list(sku.service_regions)[:3],
    }


def in_region(sku: Any, region: str) -> bool:
    """Region membership: geo taxonomy, service regions or the 'global' marker."""
    service_regions = list(sku.service_regions or [])
    geo_taxonomy = getattr(sku, "geo_taxonomy", None)
    geo_regions = list(geo_taxonomy.regions or []) if geo_taxonomy is not None else []
    return region in geo_regions or region in service_regions or "global" in service_regions


def _describes(sku: Any, family: str, component: str) -> bool:
    desc = (sku.description or "").lower()
    if any(nk in desc for nk in NEGATIVE_KEYWORDS):
        return False
    pattern = rf"^{re.escape(family.lower())}\b.*\binstance {component}\b"
    return re.search(pattern, desc) is not None


def _is_on_demand_compute(sku: Any) -> bool:
    category = sku.category
    if category.resource_family != COMPUTE_RESOURCE_FAMILY:
        return False
    usage_type = getattr(category, "usage_type", None)
    return not usage_type or usage_type == ON_DEMAND_USAGE_TYPE


def find_sku(skus: Iterable[Any], machine_type: str, region: str, component: str) -> Optional[Any]:
    """
    Find the on-demand '<FAMILY> Instance Core' or '<FAMILY> Instance Ram' SKU for a region.

    Args:
        component: "core" or "ram"
    """
    family = machine_family(machine_type)
    for sku in skus:
        if not _is_on_demand_compute(sku):
            continue
        if not _describes(sku, family, component):
            continue
        if not in_region(sku, region):
            continue
        if not sku.pricing_info:
            continue
        logger.debug(f"   ✔️ Matched GCP {family} {component} SKU: {_sanitize_sku(sku)}")
        return sku
    return None


def hourly_price(sku: Any) -> float:
    """
    Hourly USD price of a SKU's first paid tier.

    Tier prices are fixed point (units + nanos). Per-second usage units are
    scaled to per-hour; the result is divided by the declared unit quantity.

    Raises:
        ExtractionError: If the SKU has no paid tier
    """
    expression = sku.pricing_info[0].pricing_expression

    price = None
    for rate in expression.tiered_rates:
        amount = int(rate.unit_price.units) + int(rate.unit_price.nanos) / CONSTANTS.NANOS_PER_UNIT
        # First tier is frequently a free tier
        if amount > 0:
            price = amount
            break
    if price is None:
        raise ExtractionError(f"No paid tier for SKU '{sku.description}'", provider="GCP")

    quantity = float(getattr(expression, "display_quantity", 0) or 0) or 1.0
    usage_unit = (expression.usage_unit or "").strip()
    if usage_unit.split(".")[-1] == "s":
        return price * CONSTANTS.SECONDS_PER_HOUR / quantity
    return price / quantity


# -------------------------------------------------------------------
# Extraction
# -------------------------------------------------------------------

def extract_compute_rate(skus: Iterable[Any], region: str, machine_type: str) -> float:
    """
    vCPUs x core rate + memory GB x RAM rate.

    Raises:
        ExtractionError: If the machine type is unknown or a SKU is missing
    """
    vcpus, memory_gb = machine_shape(machine_type)
    sku_list = list(skus)

    core_sku = find_sku(sku_list, machine_type, region, "core")
    ram_sku = find_sku(sku_list, machine_type, region, "ram")
    if core_sku is None or ram_sku is None:
        missing = "core" if core_sku is None else "ram"
        raise ExtractionError(f"No {missing} SKU for {machine_type} in {region}", provider="GCP")

    core_rate = hourly_price(core_sku)
    ram_rate = hourly_price(ram_sku)
    logger.debug(f"      GCP {machine_type}: core={core_rate}/h ram={ram_rate}/GB-h")
    return vcpus * core_rate + memory_gb * ram_rate


def fallback_compute_rate(machine_type: str) -> float:
    return STATIC_DEFAULTS_GCP["compute"].get(machine_type, STATIC_DEFAULTS_GCP["computeDefault"])


def storage_rate(region: str) -> float:
    return GCP_STORAGE_RATES.get(region, STATIC_DEFAULTS_GCP["storageDefault"])


def data_transfer_rate(region: str) -> float:
    return GCP_DATA_TRANSFER_RATES.get(region, STATIC_DEFAULTS_GCP["dataDefault"])


def fallback_rates(region: str, machine_type: str) -> RateTriple:
    return RateTriple(
        compute=fallback_compute_rate(machine_type),
        storage=storage_rate(region),
        data=data_transfer_rate(region),
    )


def extract_rates(skus: Iterable[Any], region: str, machine_type: str) -> RateTriple:
    compute = resolve_component(
        "GCP", "compute",
        lambda: extract_compute_rate(skus, region, machine_type),
        lambda: fallback_compute_rate(machine_type),
    )
    storage = resolve_component("GCP", "storage", lambda: storage_rate(region), lambda: STATIC_DEFAULTS_GCP["storageDefault"])
    data = resolve_component("GCP", "data", lambda: data_transfer_rate(region), lambda: STATIC_DEFAULTS_GCP["dataDefault"])

    rates = RateTriple(compute=compute, storage=storage, data=data)
    logger.debug(f"GCP rates for {machine_type} in {region}: {rates.to_dict()}")
    return rates
