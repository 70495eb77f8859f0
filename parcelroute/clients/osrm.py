"""
OSRM (Open Source Routing Machine) client.
100% free, no API key required. Coordinates go in the URL as lon,lat.
"""

import logging
from typing import Optional

from ..errors import ProviderError, RouteNotFoundError
from ..models.geo import GeoPoint, RouteResult
from ..processing.polyline import decode
from ..utils.geo import point_to_lon_lat_string
from .base import RouterAdapter

logger = logging.getLogger(__name__)


_NOT_FOUND_CODES = {"NoRoute", "NoSegment"}


class OSRMRouter(RouterAdapter):
    """
    Route using OSRM.

    FREE: uses the public demo server unless base_url points elsewhere.
    """

    service_name = "OSRM"
    requires_credential = False

    def __init__(self, *args, base_url: str = "https://router.project-osrm.org", **kwargs):
        super().__init__(*args, **kwargs)
        self.base_url = base_url.rstrip("/")

    async def _route(
        self, origin: GeoPoint, destination: GeoPoint, credential: Optional[str]
    ) -> RouteResult:
        coords_str = f"{point_to_lon_lat_string(origin)};{point_to_lon_lat_string(destination)}"
        url = f"{self.base_url}/route/v1/driving/{coords_str}"
        params = {"overview": "full", "geometries": "polyline", "steps": "false"}

        status, data = await self._request_json("GET", url, params=params)
        if not isinstance(data, dict):
            raise ProviderError("provider_malformed", service=self.service_name)

        code = data.get("code")
        if code in _NOT_FOUND_CODES:
            raise RouteNotFoundError(service=self.service_name)
        if code != "Ok" or not data.get("routes"):
            raise ProviderError(
                service=self.service_name,
                detail=data.get("message") or f"code {code or status}",
            )

        route = data["routes"][0]
        geometry = decode(route.get("geometry") or "")
        try:
            return RouteResult(distance_km=float(route["distance"]) / 1000, geometry=geometry)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"[OSRM] Ok code without a usable distance: {route}")
            raise ProviderError("provider_malformed", service=self.service_name) from e
