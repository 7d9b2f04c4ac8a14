"""
Domain helpers for the CO2 service: request models, upstream payload
validation and the gCO2/kgCO2/fuel conversions.
"""
