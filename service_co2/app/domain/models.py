"""
Request bodies and upstream payload shapes for the CO2 service.
"""

from typing import Any, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from shared.errors import ParseError
from .calculations import DEFAULT_GAS_EFFICIENCY, DEFAULT_GAS_FACTOR_KG_PER_KWH


MAX_HISTORY_HOURS = 168
DEFAULT_HISTORY_HOURS = 24


class HeatPumpRequest(BaseModel):
    """Body of POST /calc/wp."""
    model_config = ConfigDict(strict=True)

    kWh: float = Field(gt=0)


class GasAlternativeRequest(BaseModel):
    """Body of POST /calc/alt."""
    model_config = ConfigDict(strict=True)

    heat_kWh: float = Field(gt=0)
    efficiency: float = Field(default=DEFAULT_GAS_EFFICIENCY, gt=0, le=1)
    gasFactor_kg_per_kWh: float = Field(default=DEFAULT_GAS_FACTOR_KG_PER_KWH, gt=0)


class SavingsRequest(BaseModel):
    """Body of POST /calc/savings."""
    model_config = ConfigDict(strict=True)

    heat_kWh: float = Field(gt=0)
    cop: float = Field(gt=0)
    gasFactor_kg_per_kWh: float = Field(default=DEFAULT_GAS_FACTOR_KG_PER_KWH, gt=0)


class LatestIntensity(BaseModel):
    """Fields of the Electricity Maps ``latest`` payload the handlers read."""
    model_config = ConfigDict(extra="allow")

    carbonIntensity: float
    updatedAt: Optional[str] = None


class HistoryPoint(BaseModel):
    model_config = ConfigDict(extra="allow")

    carbonIntensity: Optional[float] = None
    datetime: str


class IntensityHistory(BaseModel):
    model_config = ConfigDict(extra="allow")

    history: List[HistoryPoint]


PayloadT = TypeVar("PayloadT", bound=BaseModel)


def parse_upstream(model: Type[PayloadT], data: Any) -> PayloadT:
    """Validate an upstream payload, raising ParseError when it does not fit."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ParseError(
            f"Unexpected upstream payload for {model.__name__}",
            details={"errors": exc.errors(include_url=False, include_context=False)}
        ) from exc
