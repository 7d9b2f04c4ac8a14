"""
Query construction for Electricity Maps requests.

Every upstream call is addressed by one process-wide location: either a grid
zone code or a latitude/longitude pair. The location parameters come first,
followed by any per-call extras in insertion order. An extra whose key
matches a location key replaces that value in place, so the resulting string
is stable for the same logical request and safe to use in cache keys.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import urlencode


@dataclass(frozen=True)
class ZoneLocation:
    """Address requests by provider zone code (e.g. ``AT``)."""
    zone: str

    def to_params(self) -> Dict[str, str]:
        return {"zone": self.zone}


@dataclass(frozen=True)
class CoordinateLocation:
    """Address requests by coordinates."""
    lat: float
    lon: float

    def to_params(self) -> Dict[str, str]:
        return {"lat": format_param(self.lat), "lon": format_param(self.lon)}


Location = Union[ZoneLocation, CoordinateLocation]


def location_from_config(config: Any) -> Location:
    """Pick the location mode from service configuration."""
    if config.use_latlon:
        return CoordinateLocation(lat=config.em_lat, lon=config.em_lon)
    return ZoneLocation(zone=config.em_zone)


def format_param(value: Any) -> str:
    """Render a query parameter value as text."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_query(location: Location, params: Optional[Mapping[str, Any]] = None) -> str:
    """Build the canonical query string for a request."""
    query = location.to_params()
    if params:
        for key, value in params.items():
            query[key] = format_param(value)
    return urlencode(query)
