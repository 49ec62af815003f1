"""
Cost Comparison Engine.

Multiplies usage figures with the resolved rates of each provider, then picks
the cheapest single provider and the cheapest per-category mix.
"""

from typing import Any, Dict, List, Sequence

import cloudcost.constants as CONSTANTS
from cloudcost.models import ProviderResult, UsageRequest

CATEGORIES = ("compute", "storage", "data")

STANDING_TIPS = [
    "Right-size compute (avoid overprovisioning).",
    "Reduce egress where possible; it often dominates costs.",
    "Consider reserved/committed discounts for steady workloads.",
]

CATEGORY_LABELS = {
    "compute": "Compute",
    "storage": "Storage",
    "data": "Data transfer",
}


def _round(value: float) -> float:
    return round(value, CONSTANTS.COST_DECIMALS)


def calculate_costs(results: Sequence[ProviderResult], usage: UsageRequest) -> List[Dict[str, Any]]:
    """
    Cost rows in the order of the given results:
    {provider, rates, resolvedFromCache, breakdown, total}
    """
    rows = []
    for result in results:
        compute_cost = usage.compute_hours * result.rates.compute
        storage_cost = usage.storage_gb * result.rates.storage
        data_cost = usage.data_gb * result.rates.data

        row = result.to_dict()
        row["breakdown"] = {
            "compute": _round(compute_cost),
            "storage": _round(storage_cost),
            "data": _round(data_cost),
        }
        row["total"] = _round(compute_cost + storage_cost + data_cost)
        rows.append(row)
    return rows


def _cheapest(rows: Sequence[Dict[str, Any]], category: str) -> Dict[str, Any]:
    # min() keeps the first row on ties, i.e. the fixed provider order
    return min(rows, key=lambda row: row["breakdown"][category])


def _derived_tips(chosen_breakdown: Dict[str, float], chosen: Dict[str, Any], savings: float) -> List[str]:
    tips = []
    total = sum(chosen_breakdown.values())
    if total > 0:
        dominant = max(CATEGORIES, key=lambda c: chosen_breakdown[c])
        share = chosen_breakdown[dominant] / total * 100
        tips.append(f"{CATEGORY_LABELS[dominant]} is the largest cost driver ({share:.0f}% of the recommended plan).")
    if chosen["type"] == "mixed" and savings > 0:
        tips.append(f"Splitting workloads across providers saves ${savings:.4f} versus the best single provider.")
    return tips


def recommend(rows: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Build {chosen, bestSingle, mixed, savings, tips} from cost rows.

    Raises:
        ValueError: If rows is empty
    """
    if not rows:
        raise ValueError("Cannot recommend without cost rows")

    best_single = min(rows, key=lambda row: row["total"])

    cheapest = {category: _cheapest(rows, category) for category in CATEGORIES}
    mixed_breakdown = {category: cheapest[category]["breakdown"][category] for category in CATEGORIES}
    mixed = {
        "computeProvider": cheapest["compute"]["provider"],
        "storageProvider": cheapest["storage"]["provider"],
        "dataProvider": cheapest["data"]["provider"],
        "breakdown": mixed_breakdown,
        "total": _round(sum(mixed_breakdown.values())),
    }

    if mixed["total"] < best_single["total"]:
        chosen = {"type": "mixed", "total": mixed["total"]}
        chosen_breakdown = mixed_breakdown
    else:
        chosen = {"type": "single", "provider": best_single["provider"], "total": best_single["total"]}
        chosen_breakdown = best_single["breakdown"]

    savings = _round(abs(best_single["total"] - mixed["total"]))

    return {
        "chosen": chosen,
        "bestSingle": best_single,
        "mixed": mixed,
        "savings": savings,
        "tips": STANDING_TIPS + _derived_tips(chosen_breakdown, chosen, savings),
    }


def compare(results: Sequence[ProviderResult], usage: UsageRequest) -> Dict[str, Any]:
    """Response body of the comparison endpoint: {results, recommendation}."""
    rows = calculate_costs(results, usage)
    return {"results": rows, "recommendation": recommend(rows)}
