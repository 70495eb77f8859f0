"""
Yandex Geocoder HTTP API 1.x client.

Yandex speaks lon,lat everywhere: result positions are "lon lat" strings and
reverse queries are sent as "lon,lat".
"""

import logging
from typing import Any, Optional

from ..errors import ProviderError
from ..models.geo import AddressCandidate, AddressKind, GeoPoint
from ..utils.geo import point_from_yandex_pos, point_to_lon_lat_string
from .base import GeocoderAdapter

logger = logging.getLogger(__name__)

GEOCODE_URL = "https://geocode-maps.yandex.ru/1.x/"

_KIND_BY_YANDEX = {
    "house": AddressKind.HOUSE,
    "street": AddressKind.STREET,
    "metro": AddressKind.METRO,
    "district": AddressKind.DISTRICT,
    "locality": AddressKind.LOCALITY,
}


def kind_from_yandex(kind: Optional[str]) -> AddressKind:
    return _KIND_BY_YANDEX.get(kind or "", AddressKind.OTHER)


def _candidate_from_member(member: dict) -> Optional[AddressCandidate]:
    geo_object = member.get("GeoObject") or {}
    meta = (geo_object.get("metaDataProperty") or {}).get("GeocoderMetaData") or {}
    text = meta.get("text") or geo_object.get("name")
    pos = (geo_object.get("Point") or {}).get("pos")
    if not text or not pos:
        return None
    return AddressCandidate(
        text=text,
        point=point_from_yandex_pos(pos),
        kind=kind_from_yandex(meta.get("kind")),
    )


class YandexGeocoder(GeocoderAdapter):
    """Yandex Geocoder strategy."""

    service_name = "Yandex Geocoder"
    env_var = "YANDEX_GEOCODER_API_KEY"
    auth_scope = "the Geocoder API"

    @property
    def _lang(self) -> str:
        # Yandex wants a full locale tag
        return {"ru": "ru_RU", "en": "en_US", "tr": "tr_TR", "uk": "uk_UA"}.get(
            self.language, self.language
        )

    async def _geocode(self, geocode: str, credential: str, results: int, **extra) -> list[AddressCandidate]:
        params = {
            "apikey": credential,
            "geocode": geocode,
            "format": "json",
            "lang": self._lang,
            "results": results,
            **extra,
        }
        status, data = await self._request_json("GET", GEOCODE_URL, params=params)
        if status != 200:
            raise self._provider_error(status, data)
        members = self._feature_members(data)
        candidates = [self._parse_candidate(_candidate_from_member, m) for m in members]
        return [c for c in candidates if c is not None]

    def _feature_members(self, data: Any) -> list[dict]:
        try:
            return data["response"]["GeoObjectCollection"]["featureMember"]
        except (KeyError, TypeError) as e:
            logger.error(f"[YandexGeocoder] unexpected response shape: {data}")
            raise ProviderError("provider_malformed", service=self.service_name) from e

    async def _search(self, query: str, credential: str) -> list[AddressCandidate]:
        return await self._geocode(query, credential, self.max_results)

    async def _reverse(self, point: GeoPoint, credential: str) -> Optional[AddressCandidate]:
        candidates = await self._geocode(point_to_lon_lat_string(point), credential, 1, sco="longlat")
        return candidates[0] if candidates else None
