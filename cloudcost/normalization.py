"""
Remapping of caller-supplied (region, instance type) pairs to each provider's vocabulary.

A caller sends one generic pair for all three providers. Every provider keeps
the values that look like its own naming scheme and substitutes its default
region / instance for everything else.

Instance shape precedence (first match wins):
    1. contains "."                     -> AWS   (m5.large)
    2. contains "-"                     -> GCP   (e2-standard-2)
    3. a letter followed by a digit     -> Azure (D2s v3, Standard_D2s_v3)
The hyphen test must come before the letter/digit test, otherwise
"e2-standard-2" would be classified as an Azure size.

Azure ARM size names are rewritten to the Retail Prices skuName form
("Standard_D2s_v3" -> "D2s v3") so both spellings share a cache entry.
"""

import re
from typing import Optional, Tuple

import cloudcost.constants as CONSTANTS
from cloudcost.models import Provider

AWS_REGION_PATTERN = re.compile(r"^(us|eu|ap|sa|ca|me|af)-[a-z]+-\d+$")
GCP_REGION_PATTERN = re.compile(r"^[a-z]+-[a-z]+\d+$")
AZURE_REGION_PATTERN = re.compile(r"^[a-z]+[a-z0-9]*$")

LETTER_DIGIT_PATTERN = re.compile(r"[A-Za-z]\d")
AZURE_ARM_PREFIX_PATTERN = re.compile(r"^standard_", re.IGNORECASE)

REGION_PATTERNS = {
    Provider.AWS: AWS_REGION_PATTERN,
    Provider.AZURE: AZURE_REGION_PATTERN,
    Provider.GCP: GCP_REGION_PATTERN,
}

DEFAULT_REGIONS = {
    Provider.AWS: CONSTANTS.AWS_DEFAULT_REGION,
    Provider.AZURE: CONSTANTS.AZURE_DEFAULT_REGION,
    Provider.GCP: CONSTANTS.GCP_DEFAULT_REGION,
}

DEFAULT_INSTANCE_TYPES = {
    Provider.AWS: CONSTANTS.AWS_DEFAULT_INSTANCE_TYPE,
    Provider.AZURE: CONSTANTS.AZURE_DEFAULT_INSTANCE_TYPE,
    Provider.GCP: CONSTANTS.GCP_DEFAULT_INSTANCE_TYPE,
}


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def classify_instance_type(instance_type: Optional[str]) -> Optional[Provider]:
    """Guess which provider's naming scheme an instance string follows."""
    instance_type = _clean(instance_type)
    if instance_type is None:
        return None
    if "." in instance_type:
        return Provider.AWS
    if "-" in instance_type:
        return Provider.GCP
    if LETTER_DIGIT_PATTERN.search(instance_type):
        return Provider.AZURE
    return None


def classify_region(region: Optional[str]) -> Optional[Provider]:
    """Guess which provider a region name belongs to (AWS, then GCP, then Azure)."""
    region = _clean(region)
    if region is None:
        return None
    region = region.lower()
    for provider in (Provider.AWS, Provider.GCP, Provider.AZURE):
        if REGION_PATTERNS[provider].match(region):
            return provider
    return None


def normalize_region(provider: Provider, region: Optional[str]) -> str:
    region = _clean(region)
    if region is not None:
        region = region.lower()
        if REGION_PATTERNS[provider].match(region):
            return region
    return DEFAULT_REGIONS[provider]


def azure_sku_name(instance_type: str) -> str:
    """'Standard_D2s_v3' -> 'D2s v3'; retail skuNames pass through unchanged."""
    return AZURE_ARM_PREFIX_PATTERN.sub("", instance_type).replace("_", " ")


def normalize_instance_type(provider: Provider, instance_type: Optional[str]) -> str:
    instance_type = _clean(instance_type)
    if instance_type is not None and classify_instance_type(instance_type) is provider:
        if provider is Provider.AZURE:
            return azure_sku_name(instance_type)
        return instance_type
    return DEFAULT_INSTANCE_TYPES[provider]


def normalize_request(provider: Provider, region: Optional[str], instance_type: Optional[str]) -> Tuple[str, str]:
    """Return the (region, instance_type) pair to use for the given provider."""
    return normalize_region(provider, region), normalize_instance_type(provider, instance_type)
