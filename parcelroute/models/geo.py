"""Geographic value types shared by the geocoding and routing adapters."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


class GeoPoint(BaseModel):
    """Latitude/longitude pair. Always named fields, never positional tuples."""
    model_config = ConfigDict(frozen=True)

    lat: float = Field(description="Latitude in decimal degrees", ge=-90, le=90)
    lon: float = Field(description="Longitude in decimal degrees", ge=-180, le=180)


class AddressKind(str, Enum):
    """Coarse object type of a geocoding result."""
    HOUSE = "house"
    STREET = "street"
    METRO = "metro"
    DISTRICT = "district"
    LOCALITY = "locality"
    OTHER = "other"


class AddressCandidate(BaseModel):
    """One geocoding match, in provider relevance order."""
    text: str = Field(description="Full address text")
    point: GeoPoint
    kind: AddressKind = Field(default=AddressKind.OTHER)


class Location(BaseModel):
    """Caller-supplied location: an address, coordinates, or both."""
    address: Optional[str] = Field(default=None, description="Free-form address text")
    point: Optional[GeoPoint] = Field(default=None, description="Known coordinates")

    @model_validator(mode="after")
    def _require_something(self) -> "Location":
        if self.point is None and not (self.address and self.address.strip()):
            raise ValueError("Either address or point must be provided")
        return self


class RouteResult(BaseModel):
    """Driving route between two points."""
    distance_km: float = Field(ge=0)
    geometry: list[GeoPoint] = Field(default_factory=list)
    is_estimate: bool = Field(
        default=False,
        description="True when distance is a straight-line estimate, not a routed one",
    )
