"""
CO2 Service package for the CO2 bridge.

The service fronts the Electricity Maps carbon-intensity API and turns its
readings into heat-pump and gas-heating CO2 figures.

Structure:
- app.main: FastAPI app, routes and wiring.
- app.adapters: Electricity Maps client and query construction.
- app.caching: In-process TTL cache used by the client.
- app.domain: Request/response models and the unit conversions.
"""
