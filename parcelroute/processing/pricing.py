"""
Distance-tier pricing.

Tiers are admin-configured strings like "0-3 km", "10+" or "5". They are not
required to be sorted or non-overlapping: the engine sorts by lower bound and
the first matching tier wins.
"""

import logging
import math
import re
from typing import Awaitable, Optional, Protocol, Sequence, Union

from ..errors import ConfigurationError, ValidationError
from ..i18n import Localizer, get_localizer
from ..models.pricing import PriceBreakdown, PricingPolicy, PricingTier, TierBounds

logger = logging.getLogger(__name__)

_UNIT_RE = re.compile(r"\s+|km|км", re.IGNORECASE)
_NUMBER = r"(\d+(?:\.\d+)?)"
_OPEN_RE = re.compile(rf"^{_NUMBER}\+$")
_SPAN_RE = re.compile(rf"^{_NUMBER}-{_NUMBER}$")
_SINGLE_RE = re.compile(rf"^{_NUMBER}$")


def parse_range(text: str) -> TierBounds:
    """
    Parse a tier range string into inclusive (min, max) kilometre bounds.

    "N+" -> (N, inf), "N-M" -> (N, M), "N" -> (N, N). Whitespace and the unit
    suffix are ignored. Raises ConfigurationError on anything else.
    """
    cleaned = _UNIT_RE.sub("", text or "").replace(",", ".")

    match = _OPEN_RE.match(cleaned)
    if match:
        return TierBounds(float(match.group(1)), math.inf)

    match = _SPAN_RE.match(cleaned)
    if match:
        low, high = float(match.group(1)), float(match.group(2))
        if high < low:
            raise ConfigurationError("invalid_tier_range", range=text)
        return TierBounds(low, high)

    match = _SINGLE_RE.match(cleaned)
    if match:
        value = float(match.group(1))
        return TierBounds(value, value)

    raise ConfigurationError("invalid_tier_range", range=text)


def _sorted_tiers(tiers: Sequence[PricingTier]) -> list[tuple[TierBounds, PricingTier]]:
    # sorted() is stable, so tiers with equal minimums keep definition order
    return sorted(((parse_range(t.range), t) for t in tiers), key=lambda item: item[0].min)


def validate_tiers(tiers: Sequence[PricingTier]) -> list[str]:
    """
    Configuration-time check of a tier list.

    Malformed ranges raise ConfigurationError. Overlaps are legal (first match
    wins) but almost always a mistake, so they are reported as warnings.
    """
    warnings = []
    widest: Optional[tuple[TierBounds, PricingTier]] = None
    for bounds, tier in _sorted_tiers(tiers):
        # Touching ends ("0-3", "3-5") are the usual convention, not an overlap
        if widest is not None and bounds.min < widest[0].max:
            warnings.append(
                f'Tier "{tier.range}" overlaps "{widest[1].range}"; '
                f'"{widest[1].range}" wins for shared distances'
            )
        if widest is None or bounds.max > widest[0].max:
            widest = (bounds, tier)
    for warning in warnings:
        logger.warning(warning)
    return warnings


def round_distance(distance_km: float) -> float:
    """Round to the 2 decimals used for both matching and display."""
    return round(distance_km, 2)


class PriceCalculator(Protocol):
    """Anything that turns a distance and tiers into a price."""

    def price(
        self, distance_km: float, tiers: Sequence[PricingTier]
    ) -> Union[PriceBreakdown, Awaitable[PriceBreakdown]]:
        ...


class TierPricingEngine:
    """Deterministic tier matcher with overflow handling."""

    def __init__(self, localizer: Optional[Localizer] = None, currency: str = "руб."):
        self.localizer = localizer or get_localizer("ru")
        self.currency = currency

    def _explain(self, key: str, distance: float, tier: PricingTier, bounds: TierBounds) -> str:
        return self.localizer.text(
            key,
            distance=f"{distance:.2f}",
            min=f"{bounds.min:g}",
            range=tier.range,
            price=f"{tier.price:g}",
            currency=self.currency,
        )

    def price(self, distance_km: float, tiers: Sequence[PricingTier]) -> PriceBreakdown:
        if distance_km is None or not math.isfinite(distance_km) or distance_km < 0:
            raise ValidationError("invalid_distance", distance=distance_km)

        distance = round_distance(distance_km)
        ordered = _sorted_tiers(tiers)

        if not ordered:
            return PriceBreakdown(
                distance_km=distance,
                price=0,
                explanation=self.localizer.text("no_tier"),
                policy=PricingPolicy.NO_TIERS,
            )

        for bounds, tier in ordered:
            if bounds.min <= distance <= bounds.max:
                # "N+" tiers read as "beyond N km" rather than "within"
                key = "tier_open_ended" if math.isinf(bounds.max) and distance > bounds.min else "tier_matched"
                return PriceBreakdown(
                    distance_km=distance,
                    price=tier.price,
                    explanation=self._explain(key, distance, tier, bounds),
                    tier=tier,
                    policy=PricingPolicy.MATCHED,
                )

        # No match: the tier with the greatest lower bound applies
        highest_bounds, highest = ordered[-1]
        exceeds_all = all(distance > bounds.max for bounds, _ in ordered)
        policy = PricingPolicy.OVERFLOW if exceeds_all else PricingPolicy.GAP
        key = "tier_overflow" if exceeds_all else "tier_gap"
        logger.info(f"Distance {distance} km matched no tier, applying '{highest.range}' ({policy.value})")
        return PriceBreakdown(
            distance_km=distance,
            price=highest.price,
            explanation=self._explain(key, distance, highest, highest_bounds),
            tier=highest,
            policy=policy,
        )
