"""
OpenStreetMap Nominatim client.

No API key, but the usage policy requires an identifying User-Agent, so that is
treated as this provider's credential. Coordinates arrive as strings.
"""

from typing import Optional

from ..errors import ProviderError
from ..models.geo import AddressCandidate, AddressKind, GeoPoint
from ..utils.geo import point_from_lat_lon
from .base import GeocoderAdapter

BASE_URL = "https://nominatim.openstreetmap.org"

_DISTRICTS = {"suburb", "neighbourhood", "quarter", "city_district", "borough"}
_LOCALITIES = {"city", "town", "village", "hamlet", "municipality"}


def kind_from_nominatim(item: dict) -> AddressKind:
    address_type = item.get("addresstype") or item.get("type") or ""
    category = item.get("category") or item.get("class") or ""
    if category == "railway" and item.get("type") in ("station", "subway_entrance"):
        return AddressKind.METRO
    if address_type in ("house", "building") or category == "building":
        return AddressKind.HOUSE
    if address_type == "road" or category == "highway":
        return AddressKind.STREET
    if address_type in _DISTRICTS:
        return AddressKind.DISTRICT
    if address_type in _LOCALITIES:
        return AddressKind.LOCALITY
    return AddressKind.OTHER


def _candidate_from_place(item: dict) -> Optional[AddressCandidate]:
    if not item.get("display_name") or item.get("lat") is None or item.get("lon") is None:
        return None
    return AddressCandidate(
        text=item["display_name"],
        point=point_from_lat_lon((item["lat"], item["lon"])),
        kind=kind_from_nominatim(item),
    )


class NominatimGeocoder(GeocoderAdapter):
    """Nominatim (OSM) strategy."""

    service_name = "OpenStreetMap Nominatim"
    env_var = "NOMINATIM_USER_AGENT"
    auth_scope = "Nominatim (identify the application in User-Agent)"

    def __init__(self, *args, base_url: str = BASE_URL, **kwargs):
        super().__init__(*args, **kwargs)
        self.base_url = base_url.rstrip("/")

    async def _get(self, path: str, credential: str, params: dict):
        params = {"format": "jsonv2", "accept-language": self.language, **params}
        headers = {"User-Agent": credential}
        status, data = await self._request_json(
            "GET", f"{self.base_url}{path}", params=params, headers=headers
        )
        if status != 200:
            raise self._provider_error(status, data)
        return data

    async def _search(self, query: str, credential: str) -> list[AddressCandidate]:
        data = await self._get("/search", credential, {"q": query, "limit": self.max_results})
        if not isinstance(data, list):
            raise ProviderError("provider_malformed", service=self.service_name)
        candidates = [self._parse_candidate(_candidate_from_place, item) for item in data]
        return [c for c in candidates if c is not None]

    async def _reverse(self, point: GeoPoint, credential: str) -> Optional[AddressCandidate]:
        data = await self._get("/reverse", credential, {"lat": point.lat, "lon": point.lon})
        if not isinstance(data, dict):
            raise ProviderError("provider_malformed", service=self.service_name)
        if "error" in data:
            # "Unable to geocode" is Nominatim's empty answer
            return None
        return self._parse_candidate(_candidate_from_place, data)
