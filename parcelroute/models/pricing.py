"""Pricing tier and quote models."""

from enum import Enum
from typing import NamedTuple, Optional
from pydantic import BaseModel, Field

from .geo import AddressCandidate, GeoPoint


class PricingTier(BaseModel):
    """Admin-configured distance range with a flat price."""
    range: str = Field(description='Distance range, e.g. "0-3 km", "10+" or "5"')
    price: float = Field(ge=0, description="Price for this tier")


class TierBounds(NamedTuple):
    """Inclusive kilometre bounds parsed from a tier range."""
    min: float
    max: float


class PricingPolicy(str, Enum):
    """How the price of a quote was chosen."""
    MATCHED = "matched"
    OVERFLOW = "overflow"
    GAP = "gap"
    NO_TIERS = "no_tiers"
    MODEL = "model"


class PriceBreakdown(BaseModel):
    """Result of applying a pricing strategy to a distance."""
    distance_km: float
    price: float
    explanation: str
    tier: Optional[PricingTier] = None
    policy: PricingPolicy


class PriceQuote(BaseModel):
    """Final answer of a price calculation."""
    distance_km: float
    price: float
    currency: str
    explanation: str
    is_estimate: bool = False
    policy: PricingPolicy
    tier: Optional[PricingTier] = None
    geometry: list[GeoPoint] = Field(default_factory=list)
    pickup: Optional[AddressCandidate] = None
    dropoff: Optional[AddressCandidate] = None
