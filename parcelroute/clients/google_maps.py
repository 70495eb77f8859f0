"""
Google Maps Platform clients: Geocoding API and Directions API.

Requires enabling in Google Cloud Console:
- Geocoding API
- Directions API

Google answers HTTP 200 for most failures and puts the outcome in "status".
"""

import logging
from typing import Any, Optional

from ..errors import ProviderAuthError, ProviderError, RouteNotFoundError
from ..models.geo import AddressCandidate, AddressKind, GeoPoint, RouteResult
from ..processing.polyline import decode
from ..utils.geo import point_from_google_location, point_to_lat_lon_string
from .base import GeocoderAdapter, RouterAdapter

logger = logging.getLogger(__name__)

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"

# Google "types" -> AddressKind, most specific first
_KIND_BY_TYPE = [
    ({"street_address", "premise", "subpremise"}, AddressKind.HOUSE),
    ({"route", "intersection"}, AddressKind.STREET),
    ({"subway_station"}, AddressKind.METRO),
    ({"sublocality", "sublocality_level_1", "neighborhood"}, AddressKind.DISTRICT),
    ({"locality", "administrative_area_level_1", "administrative_area_level_2"}, AddressKind.LOCALITY),
]


def kind_from_google_types(types: list[str]) -> AddressKind:
    found = set(types or [])
    for google_types, kind in _KIND_BY_TYPE:
        if found & google_types:
            return kind
    return AddressKind.OTHER


def _candidate_from_result(item: dict) -> Optional[AddressCandidate]:
    location = (item.get("geometry") or {}).get("location")
    address = item.get("formatted_address")
    if not address or not location:
        return None
    return AddressCandidate(
        text=address,
        point=point_from_google_location(location),
        kind=kind_from_google_types(item.get("types", [])),
    )


class GoogleGeocoder(GeocoderAdapter):
    """Google Geocoding API strategy."""

    service_name = "Google Maps"
    env_var = "GOOGLE_MAPS_API_KEY"
    auth_scope = "Geocoding API"

    def _check_status(self, status: int, data: Any) -> list[dict]:
        if not isinstance(data, dict):
            raise ProviderError("provider_malformed", service=self.service_name)
        api_status = data.get("status")
        if api_status == "OK":
            return data.get("results", [])
        if api_status == "ZERO_RESULTS":
            return []
        if api_status == "REQUEST_DENIED":
            logger.error(f"[GoogleGeocoder] request denied: {data.get('error_message')}")
            raise ProviderAuthError(
                service=self.service_name, scope=self.auth_scope, detail=data.get("error_message")
            )
        logger.error(f"[GoogleGeocoder] status {api_status}: {data.get('error_message')}")
        raise ProviderError(
            service=self.service_name,
            detail=data.get("error_message") or f"status {api_status or status}",
        )

    async def _search(self, query: str, credential: str) -> list[AddressCandidate]:
        params = {"address": query, "key": credential, "language": self.language}
        status, data = await self._request_json("GET", GEOCODE_URL, params=params)
        results = self._check_status(status, data)
        candidates = [self._parse_candidate(_candidate_from_result, item) for item in results]
        return [c for c in candidates if c is not None]

    async def _reverse(self, point: GeoPoint, credential: str) -> Optional[AddressCandidate]:
        params = {
            "latlng": point_to_lat_lon_string(point),
            "key": credential,
            "language": self.language,
            "result_type": "street_address|route|locality|political",
        }
        status, data = await self._request_json("GET", GEOCODE_URL, params=params)
        for item in self._check_status(status, data):
            candidate = self._parse_candidate(_candidate_from_result, item)
            if candidate:
                return candidate
        return None


class GoogleDirectionsRouter(RouterAdapter):
    """Google Directions API strategy (driving)."""

    service_name = "Google Directions"
    env_var = "GOOGLE_MAPS_API_KEY"
    auth_scope = "Directions API"

    def __init__(self, *args, language: str = "ru", **kwargs):
        super().__init__(*args, **kwargs)
        self.language = language

    async def _route(
        self, origin: GeoPoint, destination: GeoPoint, credential: Optional[str]
    ) -> RouteResult:
        params = {
            "origin": point_to_lat_lon_string(origin),
            "destination": point_to_lat_lon_string(destination),
            "mode": "driving",
            "key": credential,
            "language": self.language,
        }
        status, data = await self._request_json("GET", DIRECTIONS_URL, params=params)
        if not isinstance(data, dict):
            raise ProviderError("provider_malformed", service=self.service_name)
        api_status = data.get("status")

        if api_status == "REQUEST_DENIED":
            logger.error(f"[GoogleDirections] request denied: {data.get('error_message')}")
            raise ProviderAuthError(
                service=self.service_name, scope=self.auth_scope, detail=data.get("error_message")
            )
        if api_status in ("ZERO_RESULTS", "NOT_FOUND"):
            raise RouteNotFoundError(service=self.service_name)
        if api_status != "OK":
            raise ProviderError(
                service=self.service_name,
                detail=data.get("error_message") or f"status {api_status or status}",
            )

        routes = data.get("routes") or []
        if not routes or not routes[0].get("legs"):
            logger.error(f"[GoogleDirections] OK status without a usable route: {data}")
            raise RouteNotFoundError(service=self.service_name)

        route = routes[0]
        try:
            distance_m = sum(leg["distance"]["value"] for leg in route["legs"])
            encoded = route["overview_polyline"]["points"]
        except (KeyError, TypeError) as e:
            raise ProviderError("provider_malformed", service=self.service_name) from e

        return RouteResult(distance_km=distance_m / 1000, geometry=decode(encoded))
