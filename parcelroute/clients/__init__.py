"""API clients for external services, plus config-driven strategy selection."""

import httpx

from ..config import Config
from ..errors import ConfigurationError
from .base import GeocoderAdapter, GeocoderChain, RouterAdapter
from .gemini import GeminiPriceAdvisor
from .google_maps import GoogleDirectionsRouter, GoogleGeocoder
from .nominatim import NominatimGeocoder
from .openrouteservice import OpenRouteServiceRouter
from .osrm import OSRMRouter
from .yandex import YandexGeocoder

__all__ = [
    "GeocoderAdapter",
    "GeocoderChain",
    "RouterAdapter",
    "GoogleGeocoder",
    "GoogleDirectionsRouter",
    "YandexGeocoder",
    "NominatimGeocoder",
    "OSRMRouter",
    "OpenRouteServiceRouter",
    "GeminiPriceAdvisor",
    "build_geocoder",
    "build_router",
]

GEOCODERS = ("google", "yandex", "nominatim")
ROUTERS = ("google", "osrm", "openrouteservice")


def _make_geocoder(name: str, config: Config, http_client: httpx.AsyncClient = None) -> GeocoderAdapter:
    common = dict(
        language=config.language,
        max_results=config.max_results,
        min_query_length=config.min_query_length,
        timeout=config.http_timeout_s,
        http_client=http_client,
    )
    if name == "google":
        return GoogleGeocoder(api_key=config.google_maps_api_key, **common)
    if name == "yandex":
        return YandexGeocoder(api_key=config.yandex_geocoder_api_key, **common)
    if name == "nominatim":
        return NominatimGeocoder(api_key=config.nominatim_user_agent, **common)
    raise ConfigurationError(
        "unknown_provider", kind="geocoder", name=name, available=", ".join(GEOCODERS)
    )


def build_geocoder(config: Config, http_client: httpx.AsyncClient = None):
    """Primary geocoder, wrapped in a failover chain when fallbacks are configured."""
    names = [config.geocoder_provider, *config.geocoder_fallbacks]
    geocoders = [_make_geocoder(name, config, http_client) for name in names]
    if len(geocoders) == 1:
        return geocoders[0]
    return GeocoderChain(geocoders)


def build_router(config: Config, http_client: httpx.AsyncClient = None) -> RouterAdapter:
    common = dict(
        fallback_estimate=config.fallback_estimate,
        circuity_factor=config.circuity_factor,
        timeout=config.http_timeout_s,
        http_client=http_client,
    )
    name = config.router_provider
    if name == "google":
        return GoogleDirectionsRouter(
            api_key=config.google_maps_api_key, language=config.language, **common
        )
    if name == "osrm":
        return OSRMRouter(base_url=config.osrm_base_url, **common)
    if name == "openrouteservice":
        return OpenRouteServiceRouter(api_key=config.ors_api_key, profile=config.ors_profile, **common)
    raise ConfigurationError(
        "unknown_provider", kind="router", name=name, available=", ".join(ROUTERS)
    )
