#!/usr/bin/env python3
"""
Fetch the Electricity Maps readings the CO2 service relies on.

Builds a client from the same configuration the service uses (environment or
``.env``) and requests the latest reading plus the history window once. Handy
as a smoke check of the auth token and location settings before deploying.
"""

import argparse
import asyncio
import json
from typing import Optional

from shared.config import get_config
from shared.errors import ServiceException
from shared.logging import configure_logging
from service_co2.app.adapters.electricity_maps_client import ElectricityMapsClient


async def probe(*, hours: float, zone: Optional[str] = None) -> dict:
    """Fetch latest + history and return a summary."""
    overrides = {"em_zone": zone, "use_latlon": False} if zone else {}
    config = get_config("co2", **overrides)
    client = ElectricityMapsClient.from_config(config)

    summary = {"location": repr(client.location), "errors": []}

    try:
        latest = await client.get_latest()
        summary["latest_gCO2_per_kWh"] = latest.get("carbonIntensity")
        summary["updatedAt"] = latest.get("updatedAt")
    except ServiceException as exc:
        summary["errors"].append({"path": "latest", "code": exc.code, "message": exc.message})

    try:
        history = await client.get_history(hours)
        summary["history_points"] = len(history.get("history", []))
    except ServiceException as exc:
        summary["errors"].append({"path": "history", "code": exc.code, "message": exc.message})

    summary["cache_entries"] = len(client.cache)
    return summary


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--hours", type=float, default=24, help="History window in hours (1-168)")
    parser.add_argument("--zone", default=None, help="Override the configured zone code")
    args = parser.parse_args()

    if not 1 <= args.hours <= 168:
        parser.error("--hours must be between 1 and 168")

    configure_logging("co2", "warning")
    summary = asyncio.run(probe(hours=args.hours, zone=args.zone))
    print(json.dumps(summary, indent=2))
    return 1 if summary["errors"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
