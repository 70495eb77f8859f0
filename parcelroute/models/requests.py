"""API request models."""

from typing import Optional
from pydantic import BaseModel, Field

from .geo import Location
from .pricing import PricingTier


class PriceRequest(BaseModel):
    """Request body for price calculation."""
    pickup: Location
    dropoff: Location
    tiers: Optional[list[PricingTier]] = Field(
        default=None,
        description="Pricing tiers to apply; configured defaults when omitted",
    )


class TierValidationResponse(BaseModel):
    """Outcome of an admin tier validation pass."""
    valid: bool
    warnings: list[str] = Field(default_factory=list)
