"""
Data model shared by the pricing layer and the comparison engine.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, NamedTuple, Optional


class Provider(str, Enum):
    """Supported cloud providers, in presentation order."""

    AWS = "AWS"
    AZURE = "Azure"
    GCP = "GCP"

    @classmethod
    def parse(cls, value: str) -> "Provider":
        """
        Case-insensitive lookup ("aws", "Azure", "GCP", ...).

        Raises:
            ValueError: If the value names no known provider
        """
        if value is not None:
            normalized = value.strip().lower()
            for provider in cls:
                if provider.value.lower() == normalized:
                    return provider
        raise ValueError(f"Unknown provider: {value}. Available: {[p.value for p in cls]}")

    @property
    def slug(self) -> str:
        return self.value.lower()


@dataclass(frozen=True)
class RateTriple:
    """
    Normalized unit prices of one provider.

    - compute: USD per instance hour
    - storage: USD per GB-month
    - data: USD per GB transferred out
    """
    compute: float
    storage: float
    data: float

    def __post_init__(self):
        for field_name in ("compute", "storage", "data"):
            value = getattr(self, field_name)
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise ValueError(f"Rate '{field_name}' must be a number, got {value!r}")
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"Rate '{field_name}' must be a non-negative finite number, got {value!r}")
            object.__setattr__(self, field_name, float(value))

    def to_dict(self) -> Dict[str, float]:
        return {"compute": self.compute, "storage": self.storage, "data": self.data}


class CacheKey(NamedTuple):
    provider: Provider
    region: str
    instance_type: str

    def __str__(self) -> str:
        return f"{self.provider.slug}-{self.region}-{self.instance_type}"


@dataclass(frozen=True)
class ProviderResult:
    provider: Provider
    rates: RateTriple
    resolved_from_cache: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            "provider": self.provider.value,
            "rates": self.rates.to_dict(),
            "resolvedFromCache": self.resolved_from_cache,
        }


@dataclass(frozen=True)
class UsageRequest:
    """Validated usage figures of one comparison request."""
    compute_hours: float
    storage_gb: float
    data_gb: float
    region: Optional[str] = None
    instance_type: Optional[str] = None
    force_fresh: bool = False

    def __post_init__(self):
        for field_name in ("compute_hours", "storage_gb", "data_gb"):
            value = getattr(self, field_name)
            if value is None or not math.isfinite(value) or value < 0:
                raise ValueError(f"'{field_name}' must be a non-negative number, got {value!r}")
