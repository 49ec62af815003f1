import math
from typing import Callable

from cloudcost.logger import logger


def resolve_component(provider_name: str, component: str, extract: Callable[[], float], fallback: Callable[[], float]) -> float:
    """
    Returns the extracted value of one rate component, or its static value.
    - Any exception, negative or non-finite value counts as a failed extraction.
    - Logs info whenever the static value is used.
    """
    try:
        value = float(extract())
        if math.isfinite(value) and value >= 0:
            return value
        reason = f"invalid value {value!r}"
    except Exception as e:
        reason = f"{type(e).__name__}: {e}"

    value = float(fallback())
    logger.info(f"    ℹ️ Using static value for {provider_name}.{component} = {value} ({reason})")
    return value
