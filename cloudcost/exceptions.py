"""
Error taxonomy of the pricing layer.

Extractors never let these escape: they turn them into static values.
Pricing clients raise UpstreamError / ConfigurationError, and the
aggregator replaces a failed provider with its static rates.
"""


class PricingError(Exception):
    """Base class for pricing failures."""

    def __init__(self, message: str, provider=None):
        super().__init__(message)
        self.provider = provider


class UpstreamError(PricingError):
    """Network failure, timeout, non-2xx status or malformed upstream body."""


class ConfigurationError(PricingError):
    """A credential required to query the upstream source is missing."""


class ExtractionError(PricingError):
    """The upstream payload does not contain the requested price."""
