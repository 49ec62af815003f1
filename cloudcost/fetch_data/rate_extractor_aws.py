import json
from typing import Any, Dict, Iterable, List, Optional, Union

from cloudcost.exceptions import ExtractionError
from cloudcost.fetch_data.extraction import resolve_component
from cloudcost.logger import logger
from cloudcost.models import RateTriple

# --------------------------------------------------------------------
# Static tables
# --------------------------------------------------------------------

STATIC_DEFAULTS_AWS = {
    "compute": {
        "m5.large": 0.0116,
        "m5.xlarge": 0.0232,
        "c5.large": 0.0108,
        "r5.large": 0.0136,
        "t3.micro": 0.0104,
        "t3.medium": 0.0416,
    },
    "computeDefault": 0.0116,
    "storageDefault": 0.023,   # S3 Standard, per GB-month
    "dataDefault": 0.09,       # Internet egress, per GB
}

# S3 Standard first tier, per GB-month
AWS_STORAGE_RATES = {
    "us-east-1": 0.023,
    "us-east-2": 0.023,
    "us-west-1": 0.026,
    "us-west-2": 0.023,
    "ca-central-1": 0.025,
    "eu-west-1": 0.023,
    "eu-west-2": 0.024,
    "eu-central-1": 0.0245,
    "ap-southeast-1": 0.025,
    "ap-northeast-1": 0.025,
    "sa-east-1": 0.0405,
}

# Data transfer out to the internet, first paid tier, per GB
AWS_DATA_TRANSFER_RATES = {
    "us-east-1": 0.09,
    "us-west-2": 0.09,
    "eu-west-1": 0.09,
    "ap-southeast-1": 0.114,
}

# Region code -> "location" attribute of the price list
AWS_REGION_LOCATIONS = {
    "us-east-1": "US East (N. Virginia)",
    "us-east-2": "US East (Ohio)",
    "us-west-1": "US West (N. California)",
    "us-west-2": "US West (Oregon)",
    "ca-central-1": "Canada (Central)",
    "eu-west-1": "EU (Ireland)",
    "eu-west-2": "EU (London)",
    "eu-west-3": "EU (Paris)",
    "eu-central-1": "EU (Frankfurt)",
    "eu-north-1": "EU (Stockholm)",
    "ap-south-1": "Asia Pacific (Mumbai)",
    "ap-southeast-1": "Asia Pacific (Singapore)",
    "ap-southeast-2": "Asia Pacific (Sydney)",
    "ap-northeast-1": "Asia Pacific (Tokyo)",
    "sa-east-1": "South America (Sao Paulo)",
    "me-south-1": "Middle East (Bahrain)",
    "af-south-1": "Africa (Cape Town)",
}

# Attributes a product must carry besides instanceType and location
AWS_PRODUCT_ATTRIBUTES = {
    "tenancy": "Shared",
    "operatingSystem": "Linux",
    "preInstalledSw": "NA",
    "capacitystatus": "Used",
}


# --------------------------------------------------------------------
# Helpers
# --------------------------------------------------------------------

def region_to_location(region: str) -> str:
    """Unknown region codes are passed through as the literal location."""
    return AWS_REGION_LOCATIONS.get(region, region)


def build_product_filters(region: str, instance_type: str) -> List[Dict[str, str]]:
    """TERM_MATCH filters for pricing.get_products."""
    attributes = {"instanceType": instance_type, "location": region_to_location(region)}
    attributes.update(AWS_PRODUCT_ATTRIBUTES)
    return [{"Type": "TERM_MATCH", "Field": field, "Value": value} for field, value in attributes.items()]


def _parse_product(product: Union[str, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(product, str):
        return json.loads(product)
    return product


def _matches(attributes: Dict[str, Any], expected: Dict[str, str]) -> bool:
    return all(attributes.get(field) == value for field, value in expected.items())


def _on_demand_hourly_price(product: Dict[str, Any]) -> Optional[float]:
    for term in product.get("terms", {}).get("OnDemand", {}).values():
        for dim in term.get("priceDimensions", {}).values():
            if dim.get("unit", "Hrs") != "Hrs":
                continue
            price = float(dim.get("pricePerUnit", {}).get("USD", 0))
            if price > 0:
                return price
    return None


# --------------------------------------------------------------------
# Extraction
# --------------------------------------------------------------------

def extract_compute_rate(price_list: Iterable[Union[str, Dict[str, Any]]], region: str, instance_type: str) -> float:
    """
    Find the Linux / shared-tenancy on-demand hourly price of instance_type in region.

    Raises:
        ExtractionError: If no product in the price list matches
    """
    expected = {"instanceType": instance_type, "location": region_to_location(region)}
    expected.update(AWS_PRODUCT_ATTRIBUTES)

    for raw in price_list:
        product = _parse_product(raw)
        attributes = product.get("product", {}).get("attributes", {})
        if not _matches(attributes, expected):
            continue
        price = _on_demand_hourly_price(product)
        if price is not None:
            return price

    raise ExtractionError(f"No on-demand price for {instance_type} in {expected['location']}", provider="AWS")


def fallback_compute_rate(instance_type: str) -> float:
    return STATIC_DEFAULTS_AWS["compute"].get(instance_type, STATIC_DEFAULTS_AWS["computeDefault"])


def storage_rate(region: str) -> float:
    return AWS_STORAGE_RATES.get(region, STATIC_DEFAULTS_AWS["storageDefault"])


def data_transfer_rate(region: str) -> float:
    return AWS_DATA_TRANSFER_RATES.get(region, STATIC_DEFAULTS_AWS["dataDefault"])


def fallback_rates(region: str, instance_type: str) -> RateTriple:
    return RateTriple(
        compute=fallback_compute_rate(instance_type),
        storage=storage_rate(region),
        data=data_transfer_rate(region),
    )


def extract_rates(price_list: Iterable[Union[str, Dict[str, Any]]], region: str, instance_type: str) -> RateTriple:
    """Build the AWS rate triple; every component falls back to the static tables on its own."""
    compute = resolve_component(
        "AWS", "compute",
        lambda: extract_compute_rate(price_list, region, instance_type),
        lambda: fallback_compute_rate(instance_type),
    )
    storage = resolve_component("AWS", "storage", lambda: storage_rate(region), lambda: STATIC_DEFAULTS_AWS["storageDefault"])
    data = resolve_component("AWS", "data", lambda: data_transfer_rate(region), lambda: STATIC_DEFAULTS_AWS["dataDefault"])

    rates = RateTriple(compute=compute, storage=storage, data=data)
    logger.debug(f"AWS rates for {instance_type} in {region}: {rates.to_dict()}")
    return rates
