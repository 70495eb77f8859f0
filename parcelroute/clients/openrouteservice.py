"""
OpenRouteService directions client.
FREE TIER: 2,000 requests/day. Coordinates are [lon, lat] pairs.
"""

import logging
from typing import Optional

from ..errors import ProviderError, RouteNotFoundError
from ..models.geo import GeoPoint, RouteResult
from ..processing.polyline import decode
from ..utils.geo import point_to_lon_lat
from .base import RouterAdapter

logger = logging.getLogger(__name__)


BASE_URL = "https://api.openrouteservice.org/v2"

# 2009: route could not be found, 2010: point not routable
_NOT_FOUND_CODES = {2009, 2010}


class OpenRouteServiceRouter(RouterAdapter):
    """ORS directions strategy; the JSON endpoint returns an encoded polyline."""

    service_name = "OpenRouteService"
    env_var = "ORS_API_KEY"
    auth_scope = "the Directions service"

    def __init__(self, *args, profile: str = "driving-car", **kwargs):
        super().__init__(*args, **kwargs)
        self.profile = profile

    async def _route(
        self, origin: GeoPoint, destination: GeoPoint, credential: Optional[str]
    ) -> RouteResult:
        url = f"{BASE_URL}/directions/{self.profile}/json"
        headers = {
            "Authorization": credential,
            "Content-Type": "application/json",
        }
        body = {
            "coordinates": [point_to_lon_lat(origin), point_to_lon_lat(destination)],
            "instructions": False,
        }

        status, data = await self._request_json("POST", url, headers=headers, json=body)
        if not isinstance(data, dict):
            raise ProviderError("provider_malformed", service=self.service_name)

        error = data.get("error")
        if status != 200 or error:
            code = error.get("code") if isinstance(error, dict) else None
            if code in _NOT_FOUND_CODES:
                raise RouteNotFoundError(service=self.service_name)
            raise self._provider_error(status, data)

        routes = data.get("routes") or []
        if not routes:
            raise RouteNotFoundError(service=self.service_name)

        route = routes[0]
        geometry = decode(route.get("geometry") or "")
        try:
            # ORS leaves "distance" out of the summary for zero-length routes
            distance_m = float(route.get("summary", {}).get("distance", 0))
            return RouteResult(distance_km=distance_m / 1000, geometry=geometry)
        except (AttributeError, TypeError, ValueError) as e:
            logger.error(f"[OpenRouteService] unreadable route summary: {route.get('summary')}")
            raise ProviderError("provider_malformed", service=self.service_name) from e
