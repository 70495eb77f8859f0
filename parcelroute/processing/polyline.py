"""
Encoded polyline codec (the format used by Google Directions, OSRM and ORS).

Each coordinate delta is zig-zag encoded, split into 5-bit chunks with 0x20 as
the continuation bit, and offset by 63 into printable ASCII.
"""

from typing import Sequence

from ..errors import DecodeError
from ..models.geo import GeoPoint

# A 32-bit delta needs at most 7 chunks; anything longer is corrupt input.
_MAX_CHUNKS = 7
_MIN_CHAR = 63
_MAX_CHAR = 63 + 0x3F


def _decode_value(encoded: str, index: int) -> tuple[int, int]:
    """Decode one signed delta starting at index. Returns (value, next_index)."""
    result = 0
    shift = 0
    for _ in range(_MAX_CHUNKS):
        if index >= len(encoded):
            raise DecodeError(index, "truncated")
        code = ord(encoded[index])
        if not _MIN_CHAR <= code <= _MAX_CHAR:
            raise DecodeError(index, f"invalid character {encoded[index]!r}")
        byte = code - _MIN_CHAR
        index += 1
        result |= (byte & 0x1F) << shift
        shift += 5
        if byte < 0x20:
            break
    else:
        raise DecodeError(index, "value too long")

    value = ~(result >> 1) if result & 1 else result >> 1
    return value, index


def decode(encoded: str, precision: int = 5) -> list[GeoPoint]:
    """Decode an encoded polyline into points."""
    factor = 10 ** precision
    points: list[GeoPoint] = []
    index = 0
    lat = 0
    lon = 0

    while index < len(encoded):
        start = index
        lat_delta, index = _decode_value(encoded, index)
        if index >= len(encoded):
            raise DecodeError(index, "latitude without longitude")
        lon_delta, index = _decode_value(encoded, index)

        lat += lat_delta
        lon += lon_delta
        if abs(lat) > 90 * factor or abs(lon) > 180 * factor:
            raise DecodeError(start, "coordinate out of range")
        points.append(GeoPoint(lat=lat / factor, lon=lon / factor))

    return points


def _encode_value(value: int) -> str:
    value = ~(value << 1) if value < 0 else value << 1
    chunks = []
    while value >= 0x20:
        chunks.append(chr((0x20 | (value & 0x1F)) + _MIN_CHAR))
        value >>= 5
    chunks.append(chr(value + _MIN_CHAR))
    return "".join(chunks)


def encode(points: Sequence[GeoPoint], precision: int = 5) -> str:
    """Encode points as a polyline string."""
    factor = 10 ** precision
    parts = []
    prev_lat = 0
    prev_lon = 0
    for point in points:
        lat = round(point.lat * factor)
        lon = round(point.lon * factor)
        parts.append(_encode_value(lat - prev_lat))
        parts.append(_encode_value(lon - prev_lon))
        prev_lat, prev_lon = lat, lon
    return "".join(parts)
