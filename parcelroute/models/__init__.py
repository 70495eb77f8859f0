"""Pydantic models for the delivery pricing pipeline."""

from .geo import (
    GeoPoint,
    AddressKind,
    AddressCandidate,
    Location,
    RouteResult,
)
from .pricing import (
    PricingTier,
    TierBounds,
    PricingPolicy,
    PriceBreakdown,
    PriceQuote,
)
from .requests import PriceRequest, TierValidationResponse

__all__ = [
    "GeoPoint",
    "AddressKind",
    "AddressCandidate",
    "Location",
    "RouteResult",
    "PricingTier",
    "TierBounds",
    "PricingPolicy",
    "PriceBreakdown",
    "PriceQuote",
    "PriceRequest",
    "TierValidationResponse",
]
