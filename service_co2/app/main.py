"""
CO2 service for the CO2 bridge.
"""

from typing import Any, Dict, Optional

import httpx
from fastapi import Query

from shared.base_service import BaseService
from shared.config import ServiceConfig

from .adapters.electricity_maps_client import ElectricityMapsClient
from .adapters.query_builder import ZoneLocation
from .domain.calculations import (
    DEFAULT_GAS_EFFICIENCY,
    g_to_kg,
    gas_alternative,
    heat_pump_co2,
    history_point,
    savings,
    summarize_history,
)
from .domain.models import (
    DEFAULT_HISTORY_HOURS,
    MAX_HISTORY_HOURS,
    GasAlternativeRequest,
    HeatPumpRequest,
    IntensityHistory,
    LatestIntensity,
    SavingsRequest,
    parse_upstream,
)


class CO2Service(BaseService):
    """CO2 service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__("co2", config)

        self.client = ElectricityMapsClient.from_config(
            self.config,
            metrics=self.metrics,
            transport=transport,
        )

        if not self.config.em_auth_token:
            self.logger.warning("EM_AUTH_TOKEN is not set; upstream calls will be rejected")

        self.logger.info(
            "CO2 service configured",
            location=self._describe_location(),
            cache_ttl_seconds=self.config.cache_ttl_seconds,
            single_flight=self.config.single_flight,
        )

        self._setup_co2_routes()

    def _setup_co2_routes(self):
        """Set up CO2-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "co2",
                "message": "CO2 bridge - Electricity Maps carbon intensity",
                "version": "1.0.0",
                "location": self._describe_location(),
            }

        @self.app.get("/co2/latest")
        async def co2_latest():
            """Current carbon intensity in kgCO2/kWh plus the raw upstream reading."""
            raw = await self.client.get_latest()
            latest = parse_upstream(LatestIntensity, raw)
            return {
                "kgCO2_per_kWh": g_to_kg(latest.carbonIntensity),
                "raw": raw,
            }

        @self.app.get("/co2/history")
        async def co2_history(
            hours: float = Query(DEFAULT_HISTORY_HOURS, ge=1, le=MAX_HISTORY_HOURS)
        ):
            """Carbon intensity history with its average."""
            raw = await self.client.get_history(hours)
            history = parse_upstream(IntensityHistory, raw)
            return summarize_history(
                history_point(p.datetime, p.carbonIntensity) for p in history.history
            )

        @self.app.post("/calc/wp")
        async def calc_heat_pump(body: HeatPumpRequest):
            """CO2 of the given heat-pump electricity at the current grid factor."""
            latest = await self._latest()
            factor_kg = g_to_kg(latest.carbonIntensity)
            return {
                "input": {"kWh": body.kWh},
                "factor_kgCO2_per_kWh": factor_kg,
                "co2_kg": heat_pump_co2(body.kWh, factor_kg),
                "sourceUpdatedAt": latest.updatedAt,
            }

        @self.app.post("/calc/alt")
        async def calc_gas_alternative(body: GasAlternativeRequest):
            """Fuel and CO2 of delivering the same heat with a gas boiler."""
            result = gas_alternative(body.heat_kWh, body.efficiency, body.gasFactor_kg_per_kWh)
            return {
                "input": {
                    "heat_kWh": body.heat_kWh,
                    "efficiency": body.efficiency,
                    "gasFactor_kg_per_kWh": body.gasFactor_kg_per_kWh,
                },
                **result,
            }

        @self.app.post("/calc/savings")
        async def calc_savings(body: SavingsRequest):
            """Heat pump vs. gas boiler CO2 at the current grid factor."""
            latest = await self._latest()
            factor_kg = g_to_kg(latest.carbonIntensity)
            result = savings(body.heat_kWh, body.cop, factor_kg, body.gasFactor_kg_per_kWh)
            return {
                "input": {
                    "heat_kWh": body.heat_kWh,
                    "cop": body.cop,
                    "elec_kWh": result["elec_kWh"],
                },
                "factors": {
                    "electricity_kgCO2_per_kWh": factor_kg,
                    "gas_kgCO2_per_kWh": body.gasFactor_kg_per_kWh,
                    "gas_efficiency": DEFAULT_GAS_EFFICIENCY,
                },
                "co2_wp_kg": result["co2_wp_kg"],
                "co2_gas_kg": result["co2_gas_kg"],
                "savings_kg": result["savings_kg"],
                "sourceUpdatedAt": latest.updatedAt,
            }

    async def _latest(self) -> LatestIntensity:
        return parse_upstream(LatestIntensity, await self.client.get_latest())

    def _describe_location(self) -> str:
        location = self.client.location
        if isinstance(location, ZoneLocation):
            return f"zone:{location.zone}"
        return f"latlon:{location.lat},{location.lon}"

    async def _check_dependencies(self) -> Dict[str, Any]:
        """Check CO2 service dependencies."""
        return {
            "electricity_maps": "configured" if self.config.em_auth_token else "missing_token",
            "location": self._describe_location(),
            "cache_entries": len(self.client.cache),
        }


def create_app():
    """Create CO2 service application."""
    service = CO2Service()
    return service.app


def main():
    """Run the CO2 service with uvicorn."""
    service = CO2Service()
    service.run()


if __name__ == "__main__":
    main()
