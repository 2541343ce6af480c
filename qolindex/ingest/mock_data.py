"""Reproducible mock series used when upstream providers are unavailable."""
from __future__ import annotations

import random

from qolindex.ingest.data_source import RawDataPoint, RawSeries
from qolindex.score.criteria import DECADE_YEARS, CriterionId, get_criterion
from qolindex.score.normalize import round_half_up

MOCK_COUNTRIES: tuple[str, ...] = (
    "USA", "CAN", "MEX", "BRA", "ARG", "GBR", "FRA", "DEU", "ITA", "ESP",
    "RUS", "CHN", "JPN", "IND", "AUS", "ZAF", "EGY", "NGA", "KEN", "GHA",
)

MOCK_GENERATED_AT = "2024-01-01T00:00:00+00:00"

_HIGH_INCOME = {"GBR", "FRA", "DEU", "JPN", "AUS"}
_MIDDLE_INCOME = {"CHN", "BRA", "RUS"}


def _base_gdp(country: str) -> float:
    if country == "USA":
        return 50000.0
    if country in _HIGH_INCOME:
        return 35000.0
    if country in _MIDDLE_INCOME:
        return 15000.0
    return 8000.0


def _climate_series(criterion: CriterionId, rng: random.Random) -> RawSeries:
    series: RawSeries = {}
    for year in DECADE_YEARS:
        series[year] = {}
        for country in MOCK_COUNTRIES:
            # Risk drifts upward by up to 30 points over the century
            base_risk = rng.random() * 50 + 10
            risk = min(100.0, base_risk + (year - 2000) / 100 * 30)
            series[year][country] = RawDataPoint(
                value=round_half_up(risk, 1),
                confidence=rng.random() * 0.4 + 0.6,
                source=f"IPCC AR6 {criterion.value} projections",
                last_updated=MOCK_GENERATED_AT,
            )
    return series


def _economic_series(criterion: CriterionId, rng: random.Random) -> RawSeries:
    series: RawSeries = {}
    for year in DECADE_YEARS:
        series[year] = {}
        for country in MOCK_COUNTRIES:
            if criterion is CriterionId.GDP_PER_CAPITA:
                growth = rng.random() * 0.03 + 0.01
                value = float(round(_base_gdp(country) * (1 + growth) ** (year - 2020)))
            else:
                value = rng.random() * 20 + 5  # percent food insecure
            series[year][country] = RawDataPoint(
                value=round_half_up(value, 1),
                confidence=0.9,
                source=f"World Bank {criterion.value} data",
                last_updated=MOCK_GENERATED_AT,
            )
    return series


def generate_mock_series(criterion: CriterionId, seed: int = 2024) -> RawSeries:
    """Generate a mock series; the same (criterion, seed) always yields the same data."""
    config = get_criterion(criterion)
    rng = random.Random(f"{seed}:{config.id.value}")
    if config.kind == "economic":
        return _economic_series(config.id, rng)
    return _climate_series(config.id, rng)
