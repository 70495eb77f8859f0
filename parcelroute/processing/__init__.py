"""Route geometry, pricing and price-calculation pipeline."""

from .polyline import decode, encode
from .pricing import (
    PriceCalculator,
    TierPricingEngine,
    parse_range,
    round_distance,
    validate_tiers,
)
from .suggest import AddressSuggester

# pipeline is not re-exported: it imports parcelroute.clients, which imports
# polyline from this package.

__all__ = [
    "decode",
    "encode",
    "PriceCalculator",
    "TierPricingEngine",
    "parse_range",
    "round_distance",
    "validate_tiers",
    "AddressSuggester",
]
