"""
Unit conversions behind the CO2 endpoints.

Electricity Maps reports carbon intensity in gCO2eq/kWh; every figure this
service returns is in kilograms. Gas heating is modelled as a boiler with a
fixed efficiency burning fuel with a fixed emission factor.
"""

from typing import Any, Dict, Iterable, Optional


DEFAULT_GAS_EFFICIENCY = 0.85
DEFAULT_GAS_FACTOR_KG_PER_KWH = 0.201


def g_to_kg(grams: float) -> float:
    return grams / 1000


def history_point(datetime: str, g_per_kwh: Optional[float]) -> Dict[str, Any]:
    return {
        "datetime": datetime,
        "gCO2_per_kWh": g_per_kwh,
        "kgCO2_per_kWh": None if g_per_kwh is None else g_to_kg(g_per_kwh),
    }


def summarize_history(points: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """Count and average a list of history points.

    Hours without a reading (``None`` intensity) stay in ``points`` but are
    left out of the average, which is ``None`` when no hour has a reading.
    """
    points = list(points)
    readings = [p["gCO2_per_kWh"] for p in points if p["gCO2_per_kWh"] is not None]
    avg_kg: Optional[float] = None
    if readings:
        avg_kg = g_to_kg(sum(readings) / len(readings))

    return {
        "count": len(points),
        "avg_kgCO2_per_kWh": avg_kg,
        "points": points,
    }


def heat_pump_co2(kwh: float, factor_kg_per_kwh: float) -> float:
    """CO2 in kg for ``kwh`` of electricity at the given grid factor."""
    return kwh * factor_kg_per_kwh


def gas_alternative(
    heat_kwh: float,
    efficiency: float = DEFAULT_GAS_EFFICIENCY,
    gas_factor_kg_per_kwh: float = DEFAULT_GAS_FACTOR_KG_PER_KWH,
) -> Dict[str, float]:
    """Fuel needed and CO2 emitted to deliver ``heat_kwh`` with a gas boiler."""
    required_fuel = heat_kwh / efficiency
    return {
        "requiredFuel_kWh": required_fuel,
        "co2_kg": required_fuel * gas_factor_kg_per_kwh,
    }


def savings(
    heat_kwh: float,
    cop: float,
    electricity_factor_kg_per_kwh: float,
    gas_factor_kg_per_kwh: float = DEFAULT_GAS_FACTOR_KG_PER_KWH,
) -> Dict[str, float]:
    """Compare a heat pump with ``cop`` against the default gas boiler.

    The boiler efficiency is always ``DEFAULT_GAS_EFFICIENCY`` here.
    """
    elec_kwh = heat_kwh / cop
    co2_wp = heat_pump_co2(elec_kwh, electricity_factor_kg_per_kwh)
    co2_gas = gas_alternative(heat_kwh, DEFAULT_GAS_EFFICIENCY, gas_factor_kg_per_kwh)["co2_kg"]
    return {
        "elec_kWh": elec_kwh,
        "co2_wp_kg": co2_wp,
        "co2_gas_kg": co2_gas,
        "savings_kg": co2_gas - co2_wp,
    }
