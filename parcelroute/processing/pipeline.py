"""
Delivery price calculation pipeline.

Integrates:
- a geocoder strategy (Google / Yandex / Nominatim) for text addresses
- a router strategy (Google Directions / OSRM / OpenRouteService)
- a pricing strategy (tier engine, or the Gemini advisor)
"""

import asyncio
import inspect
import logging
from typing import Optional, Sequence, Union

from ..clients import build_geocoder, build_router
from ..clients.gemini import GeminiPriceAdvisor
from ..config import Config
from ..errors import AddressNotFoundError, ConfigurationError, ValidationError
from ..i18n import Localizer, get_localizer
from ..models.geo import AddressCandidate, GeoPoint, Location
from ..models.pricing import PriceQuote, PricingTier
from .pricing import PriceCalculator, TierPricingEngine

logger = logging.getLogger(__name__)

LocationLike = Union[GeoPoint, Location, str]

PICKUP = "pickup"
DROPOFF = "dropoff"


def build_price_calculator(config: Config, localizer: Localizer) -> PriceCalculator:
    if config.pricing_engine == "tiers":
        return TierPricingEngine(localizer=localizer, currency=config.currency)
    if config.pricing_engine == "gemini":
        return GeminiPriceAdvisor(
            api_key=config.gemini_api_key,
            model=config.gemini_pricing_model,
            localizer=localizer,
            currency=config.currency,
        )
    raise ConfigurationError(
        "unknown_provider", kind="pricing", name=config.pricing_engine, available="tiers, gemini"
    )


def _as_location(side: str, value: LocationLike) -> Location:
    if isinstance(value, Location):
        return value
    if isinstance(value, GeoPoint):
        return Location(point=value)
    if isinstance(value, str) and value.strip():
        return Location(address=value)
    raise ValidationError("location_missing", side=side)


class DeliveryPricingPipeline:
    """
    Address -> coordinates -> route -> price.

    Adapters are built from config unless injected (tests inject fakes).
    """

    def __init__(
        self,
        config: Config,
        geocoder=None,
        router=None,
        pricing: Optional[PriceCalculator] = None,
        localizer: Optional[Localizer] = None,
    ):
        self.config = config
        self.localizer = localizer or get_localizer(config.default_locale)
        self.geocoder = geocoder or build_geocoder(config)
        self.router = router or build_router(config)
        self.pricing = pricing or build_price_calculator(config, self.localizer)

    async def close(self):
        """Close all HTTP clients."""
        await self.geocoder.close()
        await self.router.close()

    async def search_address(self, query: str) -> list[AddressCandidate]:
        return await self.geocoder.search(query)

    async def reverse_geocode(self, point: GeoPoint) -> Optional[AddressCandidate]:
        return await self.geocoder.reverse(point)

    async def suggest(self, partial_query: str) -> list[AddressCandidate]:
        """Autocomplete: too-short input is an empty answer, not an error."""
        if len((partial_query or "").strip()) < self.config.min_query_length:
            return []
        candidates = await self.geocoder.search(partial_query)
        return candidates[: self.config.max_suggestions]

    async def _resolve(
        self, side: str, location: Location
    ) -> tuple[GeoPoint, Optional[AddressCandidate]]:
        if location.point is not None:
            candidate = (
                AddressCandidate(text=location.address, point=location.point)
                if location.address
                else None
            )
            return location.point, candidate

        candidates = await self.geocoder.search(location.address)
        if not candidates:
            logger.info(f"No candidates for {side} address '{location.address}'")
            raise AddressNotFoundError(side, location.address.strip())
        best = candidates[0]
        logger.info(f"Resolved {side} '{location.address}' -> {best.text} ({best.point.lat}, {best.point.lon})")
        return best.point, best

    async def calculate_delivery_price(
        self,
        pickup: LocationLike,
        dropoff: LocationLike,
        tiers: Optional[Sequence[PricingTier]] = None,
    ) -> PriceQuote:
        """
        Price a delivery between two locations.

        Args:
            pickup: GeoPoint, Location or address text
            dropoff: GeoPoint, Location or address text
            tiers: Pricing tiers; configured defaults when None

        Returns:
            PriceQuote with rounded distance, price, explanation and geometry
        """
        pickup_loc = _as_location(PICKUP, pickup)
        dropoff_loc = _as_location(DROPOFF, dropoff)
        if tiers is None:
            tiers = self.config.default_tiers

        # Resolved concurrently; failures are reported pickup first regardless of timing
        resolved = await asyncio.gather(
            self._resolve(PICKUP, pickup_loc),
            self._resolve(DROPOFF, dropoff_loc),
            return_exceptions=True,
        )
        for outcome in resolved:
            if isinstance(outcome, BaseException):
                raise outcome
        (pickup_point, pickup_candidate), (dropoff_point, dropoff_candidate) = resolved

        route = await self.router.route(pickup_point, dropoff_point)

        breakdown = self.pricing.price(route.distance_km, tiers)
        if inspect.isawaitable(breakdown):
            breakdown = await breakdown

        explanation = breakdown.explanation
        if route.is_estimate:
            explanation = f"{self.localizer.text('estimate_marker')} {explanation}"

        logger.info(
            f"Quote: {breakdown.distance_km} km -> {breakdown.price} "
            f"({breakdown.policy.value}{', estimated' if route.is_estimate else ''})"
        )

        return PriceQuote(
            distance_km=breakdown.distance_km,
            price=breakdown.price,
            currency=self.config.currency,
            explanation=explanation,
            is_estimate=route.is_estimate,
            policy=breakdown.policy,
            tier=breakdown.tier,
            geometry=route.geometry,
            pickup=pickup_candidate,
            dropoff=dropoff_candidate,
        )
