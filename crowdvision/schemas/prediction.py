# crowdvision/schemas/prediction.py
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Any, Optional

from crowdvision.domain import DensityLevel


class PredictionOut(BaseModel):
    """Shape enforced on the inference service's JSON reply and returned to callers."""
    risk_score: float = Field(ge=0, le=100)
    forecasted_count: int = Field(ge=0)
    recommendations: list[str]

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class PredictionRequest(BaseModel):
    current_count: int = Field(ge=0)
    density: DensityLevel
    recent_trend: Optional[list[Any]] = None   # None → the live trend window

    class Config:
        alias_generator = to_camel
        populate_by_name = True
