"""Pooled distribution statistics for a single criterion."""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Iterable


@dataclass(frozen=True)
class GlobalStats:
    min: float
    max: float
    mean: float
    std: float
    p10: float
    p90: float
    count: int
    range: float

    def to_dict(self) -> dict:
        return asdict(self)


# Returned when a criterion has no usable values so normalization never divides by zero
NEUTRAL_STATS = GlobalStats(min=0.0, max=100.0, mean=50.0, std=25.0, p10=10.0, p90=90.0, count=0, range=100.0)


def is_number(value: object) -> bool:
    """True for int/float values that are not NaN. Booleans are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


def flatten_series(series: dict) -> list[float]:
    """Collect every numeric value from a {year: {country: point}} series."""
    values: list[float] = []
    for countries in series.values():
        for point in (countries or {}).values():
            value = getattr(point, "value", None) if not isinstance(point, dict) else point.get("value")
            if is_number(value):
                values.append(float(value))
    return values


def compute_stats(values: Iterable[float]) -> GlobalStats:
    """Compute min/max/mean/population std and nearest-rank p10/p90.

    Percentiles are read straight from the sorted list at floor(0.1*n) and
    floor(0.9*n), without interpolation. An empty input returns NEUTRAL_STATS.
    """
    ordered = sorted(float(v) for v in values if is_number(v))
    n = len(ordered)
    if n == 0:
        return NEUTRAL_STATS

    mean = sum(ordered) / n
    variance = sum((v - mean) ** 2 for v in ordered) / n

    return GlobalStats(
        min=ordered[0],
        max=ordered[-1],
        mean=mean,
        std=math.sqrt(variance),
        p10=ordered[math.floor(n * 0.1)],
        p90=ordered[math.floor(n * 0.9)],
        count=n,
        range=ordered[-1] - ordered[0],
    )
