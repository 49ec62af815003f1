from typing import Any, Dict, Optional

from cloudcost.exceptions import ExtractionError
from cloudcost.fetch_data.extraction import resolve_component
from cloudcost.logger import logger
from cloudcost.models import RateTriple

# -----------------------------------------------------------------------------
# STATIC TABLES
# -----------------------------------------------------------------------------

STATIC_DEFAULTS_AZURE = {
    "compute": {
        "D2s v3": 0.012,
        "D4s v3": 0.024,
        "B2s": 0.0104,
        "F2s v2": 0.0112,
    },
    "computeDefault": 0.012,
    "storageDefault": 0.024,   # Blob Storage hot LRS, per GB-month
    "dataDefault": 0.085,      # Internet egress, per GB
}

AZURE_STORAGE_RATES = {
    "eastus": 0.024,
    "eastus2": 0.024,
    "westus2": 0.024,
    "centralus": 0.024,
    "northeurope": 0.025,
    "westeurope": 0.026,
    "southeastasia": 0.027,
}

AZURE_DATA_TRANSFER_RATES = {
    "eastus": 0.085,
    "eastus2": 0.085,
    "westus2": 0.085,
    "centralus": 0.085,
    "northeurope": 0.085,
    "westeurope": 0.085,
    "southeastasia": 0.12,
}

# Rows that are not plain pay-as-you-go Linux prices
EXCLUDED_KEYWORDS = ["windows", "spot", "low priority"]


# -----------------------------------------------------------------------------
# FILTERING & MATCHING
# -----------------------------------------------------------------------------

def _odata_literal(value: str) -> str:
    """Quote a value as an OData string literal (embedded quotes are doubled)."""
    return "'" + value.replace("'", "''") + "'"


def build_retail_filter(region: str, instance_type: str) -> str:
    """OData filter sent to the Azure Retail Prices API."""
    return (
        f"serviceName eq 'Virtual Machines' and armRegionName eq {_odata_literal(region)} "
        f"and skuName eq {_odata_literal(instance_type)} and priceType eq 'Consumption'"
    )


def _sanitize_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """Filter out noisy fields for cleaner logging."""
    keep = {"productName", "meterName", "skuName", "unitOfMeasure", "unitPrice", "armRegionName"}
    return {k: v for k, v in row.items() if k in keep}


def _first_matching_row(items, instance_type: str) -> Optional[Dict[str, Any]]:
    for row in items:
        product = (row.get("productName") or "").lower()
        sku = (row.get("skuName") or "").lower()
        if any(k in product or k in sku for k in EXCLUDED_KEYWORDS):
            continue
        if sku and sku != instance_type.lower():
            continue
        return row
    return None


def extract_compute_rate(payload: Dict[str, Any], instance_type: str) -> float:
    """
    Take the unit price of the first matching row as the hourly compute rate.

    Raises:
        ExtractionError: If the response carries no usable row
    """
    items = payload.get("Items") or []
    row = _first_matching_row(items, instance_type)
    if row is None:
        raise ExtractionError(f"No retail price row for {instance_type}", provider="Azure")

    logger.debug(f"   ✔️ Matched Azure row: {_sanitize_row(row)}")
    return float(row["unitPrice"])


def fallback_compute_rate(instance_type: str) -> float:
    return STATIC_DEFAULTS_AZURE["compute"].get(instance_type, STATIC_DEFAULTS_AZURE["computeDefault"])


def storage_rate(region: str) -> float:
    return AZURE_STORAGE_RATES.get(region, STATIC_DEFAULTS_AZURE["storageDefault"])


def data_transfer_rate(region: str) -> float:
    return AZURE_DATA_TRANSFER_RATES.get(region, STATIC_DEFAULTS_AZURE["dataDefault"])


def fallback_rates(region: str, instance_type: str) -> RateTriple:
    return RateTriple(
        compute=fallback_compute_rate(instance_type),
        storage=storage_rate(region),
        data=data_transfer_rate(region),
    )


def extract_rates(payload: Dict[str, Any], region: str, instance_type: str) -> RateTriple:
    compute = resolve_component(
        "Azure", "compute",
        lambda: extract_compute_rate(payload, instance_type),
        lambda: fallback_compute_rate(instance_type),
    )
    storage = resolve_component("Azure", "storage", lambda: storage_rate(region), lambda: STATIC_DEFAULTS_AZURE["storageDefault"])
    data = resolve_component("Azure", "data", lambda: data_transfer_rate(region), lambda: STATIC_DEFAULTS_AZURE["dataDefault"])

    rates = RateTriple(compute=compute, storage=storage, data=data)
    logger.debug(f"Azure rates for {instance_type} in {region}: {rates.to_dict()}")
    return rates
