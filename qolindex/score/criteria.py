"""Criterion definitions for the Quality of Living Index."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

INDEX_CALC_VERSION = "qol_index_v1"

# Decade years covered by every raw series: 2000, 2010, ..., 2100
DECADE_YEARS: tuple[int, ...] = tuple(range(2000, 2101, 10))


class CriterionId(str, Enum):
    FLOODS = "floods"
    CYCLONES = "cyclones"
    EXTREME_HEAT = "extremeHeat"
    WILDFIRES = "wildfires"
    WATER_SCARCITY = "waterScarcity"
    GDP_PER_CAPITA = "gdpPerCapita"
    FOOD_SECURITY = "foodSecurity"


class Category(str, Enum):
    ENVIRONMENTAL_RISK = "Environmental Risk"
    ECONOMIC_PROSPERITY = "Economic Prosperity"
    SOCIAL_WELFARE = "Social Welfare"


class UnknownCriterionError(ValueError):
    def __init__(self, criterion: str) -> None:
        super().__init__(f"Unknown criterion: {criterion}")
        self.criterion = criterion


@dataclass(frozen=True)
class CriterionConfig:
    id: CriterionId
    kind: str  # climate | economic
    invert_score: bool  # True when a higher raw value means worse quality of living
    weight: float
    description: str
    category: Category

    def to_dict(self) -> dict:
        return {
            "id": self.id.value,
            "type": self.kind,
            "invert_score": self.invert_score,
            "weight": self.weight,
            "description": self.description,
            "category": self.category.value,
        }


def _climate(cid: CriterionId, description: str) -> CriterionConfig:
    return CriterionConfig(
        id=cid,
        kind="climate",
        invert_score=True,
        weight=1.0,
        description=description,
        category=Category.ENVIRONMENTAL_RISK,
    )


CRITERIA: dict[CriterionId, CriterionConfig] = {
    CriterionId.FLOODS: _climate(CriterionId.FLOODS, "River flood risk index"),
    CriterionId.CYCLONES: _climate(CriterionId.CYCLONES, "Tropical cyclone risk index"),
    CriterionId.EXTREME_HEAT: _climate(CriterionId.EXTREME_HEAT, "Extreme heat risk index"),
    CriterionId.WILDFIRES: _climate(CriterionId.WILDFIRES, "Wildfire risk index"),
    CriterionId.WATER_SCARCITY: _climate(CriterionId.WATER_SCARCITY, "Water scarcity risk index"),
    CriterionId.GDP_PER_CAPITA: CriterionConfig(
        id=CriterionId.GDP_PER_CAPITA,
        kind="economic",
        invert_score=False,
        weight=1.0,
        description="GDP per capita (USD)",
        category=Category.ECONOMIC_PROSPERITY,
    ),
    CriterionId.FOOD_SECURITY: CriterionConfig(
        id=CriterionId.FOOD_SECURITY,
        kind="economic",
        invert_score=True,
        weight=1.0,
        description="Food insecurity percentage",
        category=Category.SOCIAL_WELFARE,
    ),
}

# A country needs valid scores for at least this many criteria to be indexed
MIN_VALID_CRITERIA = -(-len(CRITERIA) // 2)


def get_criterion(criterion: str | CriterionId) -> CriterionConfig:
    """Look up a criterion config by id, raising UnknownCriterionError."""
    try:
        return CRITERIA[CriterionId(criterion)]
    except ValueError:
        raise UnknownCriterionError(str(criterion)) from None
