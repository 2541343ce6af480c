from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class WeightingSchemeCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    weights: dict[str, float]


class FeatureCollectionIn(BaseModel):
    """Loose FeatureCollection body; feature contents are checked by the validator."""
    type: str = "FeatureCollection"
    features: list[Any]
