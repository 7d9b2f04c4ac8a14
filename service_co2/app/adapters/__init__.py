"""
Adapters package for the CO2 Service.

Wraps the Electricity Maps HTTP API. The client owns the request cache,
query construction and the mapping of upstream failures onto shared errors.
Keep adapters thin and side-effect free outside of explicit calls.
"""

from .electricity_maps_client import ElectricityMapsClient, LATEST_PATH, HISTORY_PATH
from .query_builder import ZoneLocation, CoordinateLocation, build_query, location_from_config

__all__ = [
    "ElectricityMapsClient",
    "LATEST_PATH",
    "HISTORY_PATH",
    "ZoneLocation",
    "CoordinateLocation",
    "build_query",
    "location_from_config",
]
