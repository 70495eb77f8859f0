"""
Shared fakes for the test suites.
"""

import asyncio
from typing import Optional

import httpx

from ..config import Config
from ..errors import ValidationError
from ..i18n import get_localizer
from ..models.geo import AddressCandidate, AddressKind, GeoPoint, RouteResult
from ..models.pricing import PricingTier
from ..processing.pipeline import DeliveryPricingPipeline
from ..processing.pricing import TierPricingEngine

STANDARD_TIERS = [
    PricingTier(range="0-3", price=10),
    PricingTier(range="3-5", price=20),
    PricingTier(range="5-10", price=30),
    PricingTier(range="10+", price=50),
]

MOSCOW_KREMLIN = GeoPoint(lat=55.752023, lon=37.617499)
MOSCOW_CITY = GeoPoint(lat=55.749451, lon=37.542824)

# 1 degree of latitude on a 6371 km sphere
KM_PER_DEGREE_LAT = 6371.0 * 3.141592653589793 / 180


def mock_client(handler) -> httpx.AsyncClient:
    """AsyncClient whose requests are answered by handler(request)."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def run(coro):
    return asyncio.run(coro)


class FakeGeocoder:
    """
    In-memory geocoder: query -> candidates. Records calls and concurrency.

    delays overrides delay_s per query.
    """

    def __init__(
        self,
        answers: dict[str, list[AddressCandidate]],
        delay_s: float = 0.0,
        delays: Optional[dict[str, float]] = None,
    ):
        self.answers = answers
        self.delay_s = delay_s
        self.delays = delays or {}
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.min_query_length = 3
        self.closed = False

    async def search(self, query: str) -> list[AddressCandidate]:
        if len(query.strip()) < self.min_query_length:
            raise ValidationError("query_too_short", min_length=self.min_query_length)
        self.calls.append(query)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(query, self.delay_s))
            return list(self.answers.get(query, []))
        finally:
            self.in_flight -= 1

    async def reverse(self, point: GeoPoint) -> Optional[AddressCandidate]:
        for candidates in self.answers.values():
            for candidate in candidates:
                if candidate.point == point:
                    return candidate
        return None

    async def close(self):
        self.closed = True


class FakeRouter:
    """Router returning a fixed distance."""

    def __init__(self, distance_km: float, is_estimate: bool = False):
        self.distance_km = distance_km
        self.is_estimate = is_estimate
        self.calls: list[tuple[GeoPoint, GeoPoint]] = []

    async def route(self, origin: GeoPoint, destination: GeoPoint) -> RouteResult:
        self.calls.append((origin, destination))
        geometry = [] if self.is_estimate else [origin, destination]
        return RouteResult(distance_km=self.distance_km, geometry=geometry, is_estimate=self.is_estimate)

    async def close(self):
        pass


def candidate(text: str, point: GeoPoint, kind: AddressKind = AddressKind.HOUSE) -> AddressCandidate:
    return AddressCandidate(text=text, point=point, kind=kind)


def make_pipeline(geocoder=None, router=None, locale: str = "en", **config_overrides) -> DeliveryPricingPipeline:
    config = Config(default_tiers=tuple(STANDARD_TIERS), default_locale=locale, **config_overrides)
    localizer = get_localizer(locale)
    return DeliveryPricingPipeline(
        config,
        geocoder=geocoder or FakeGeocoder({}),
        router=router or FakeRouter(4.2),
        pricing=TierPricingEngine(localizer=localizer, currency="RUB"),
        localizer=localizer,
    )
