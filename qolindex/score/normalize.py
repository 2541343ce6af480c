"""Percentile-clamped 0-100 normalization of raw criterion values."""
from __future__ import annotations

import math
from dataclasses import dataclass

from qolindex.score.criteria import CriterionConfig, CriterionId
from qolindex.score.stats import GlobalStats, is_number

DEFAULT_CONFIDENCE = 0.8
DEFAULT_SOURCE = "Unknown"


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like the dashboard does (halves go up), not banker's rounding."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def normalize_value(
    raw_value: object,
    stats: GlobalStats,
    config: CriterionConfig,
) -> float | None:
    """Map a raw value onto 0-100 using the criterion's p10/p90 window.

    Missing or non-numeric input returns None. A zero-width window returns
    the midpoint 50. Otherwise the value is clamped into [p10, p90], rescaled,
    inverted for criteria where higher raw values are worse, and rounded to
    one decimal.
    """
    if not is_number(raw_value):
        return None

    p10, p90 = stats.p10, stats.p90
    window = p90 - p10
    if window == 0:
        return 50.0

    clamped = max(p10, min(p90, float(raw_value)))
    normalized = (clamped - p10) / window
    if config.invert_score:
        normalized = 1 - normalized

    return math.floor(normalized * 1000 + 0.5) / 10


@dataclass(frozen=True)
class NormalizedScore:
    criterion: CriterionId
    year: int
    raw_value: object
    normalized_score: float | None
    confidence: float
    source: str
    last_updated: str | None
    global_stats: GlobalStats

    def to_dict(self) -> dict:
        return {
            "criterion": self.criterion.value,
            "year": self.year,
            "raw_value": self.raw_value,
            "normalized_score": self.normalized_score,
            "confidence": self.confidence,
            "source": self.source,
            "last_updated": self.last_updated,
            "global_stats": {
                "min": self.global_stats.min,
                "max": self.global_stats.max,
                "mean": self.global_stats.mean,
                "percentile10": self.global_stats.p10,
                "percentile90": self.global_stats.p90,
            },
        }
