"""
Geographic helpers: provider coordinate-order conversion and great-circle distance.

Providers disagree on coordinate order (Google and Nominatim speak lat,lon;
Yandex, OSRM and OpenRouteService speak lon,lat). Every conversion across a
provider boundary goes through one of the functions below.
"""

import math
from typing import Sequence

import numpy as np

from ..models.geo import GeoPoint, RouteResult

EARTH_RADIUS_KM = 6371.0


def point_from_lat_lon(pair: Sequence[float]) -> GeoPoint:
    """[lat, lon] -> GeoPoint."""
    lat, lon = pair
    return GeoPoint(lat=float(lat), lon=float(lon))


def point_from_lon_lat(pair: Sequence[float]) -> GeoPoint:
    """[lon, lat] (GeoJSON / OSRM / ORS order) -> GeoPoint."""
    lon, lat = pair[0], pair[1]
    return GeoPoint(lat=float(lat), lon=float(lon))


def point_from_google_location(location: dict) -> GeoPoint:
    """Google {"lat": .., "lng": ..} -> GeoPoint."""
    return GeoPoint(lat=float(location["lat"]), lon=float(location["lng"]))


def point_from_yandex_pos(pos: str) -> GeoPoint:
    """Yandex "lon lat" string -> GeoPoint."""
    lon, lat = pos.split()
    return GeoPoint(lat=float(lat), lon=float(lon))


def point_to_lon_lat(point: GeoPoint) -> list[float]:
    return [point.lon, point.lat]


def point_to_lat_lon_string(point: GeoPoint) -> str:
    """"lat,lon" as Google expects in origin/destination/latlng."""
    return f"{point.lat},{point.lon}"


def point_to_lon_lat_string(point: GeoPoint) -> str:
    """"lon,lat" as Yandex and OSRM expect."""
    return f"{point.lon},{point.lat}"


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points in kilometres."""
    lat1, lon1 = math.radians(a.lat), math.radians(a.lon)
    lat2, lon2 = math.radians(b.lat), math.radians(b.lon)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


def path_length_km(points: Sequence[GeoPoint]) -> float:
    """Length of a polyline in kilometres (sum of haversine segments)."""
    if len(points) < 2:
        return 0.0
    coords = np.radians(np.array([[p.lat, p.lon] for p in points], dtype=float))
    lat, lon = coords[:, 0], coords[:, 1]
    dlat = np.diff(lat)
    dlon = np.diff(lon)
    h = np.sin(dlat / 2) ** 2 + np.cos(lat[:-1]) * np.cos(lat[1:]) * np.sin(dlon / 2) ** 2
    return float(np.sum(2 * EARTH_RADIUS_KM * np.arcsin(np.sqrt(np.clip(h, 0.0, 1.0)))))


def estimate_route(origin: GeoPoint, destination: GeoPoint, circuity_factor: float) -> RouteResult:
    """Straight-line distance scaled by a road circuity factor. No geometry."""
    return RouteResult(
        distance_km=haversine_km(origin, destination) * circuity_factor,
        geometry=[],
        is_estimate=True,
    )
