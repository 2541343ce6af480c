"""Raw per-criterion time series: point type and data source interface."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol

from qolindex.score.criteria import CriterionId


@dataclass(frozen=True)
class RawDataPoint:
    value: Any
    confidence: float | None = None
    source: str | None = None
    last_updated: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RawDataPoint":
        """Build a point from an upstream dict (camelCase or snake_case keys)."""
        return cls(
            value=data.get("value"),
            confidence=data.get("confidence"),
            source=data.get("source"),
            last_updated=data.get("lastUpdated", data.get("last_updated")),
        )

    def to_dict(self) -> dict:
        return {
            "value": self.value,
            "confidence": self.confidence,
            "source": self.source,
            "last_updated": self.last_updated,
        }


# {year: {country_code: RawDataPoint}}
RawSeries = dict[int, dict[str, RawDataPoint]]


def coerce_series(series: Mapping[Any, Mapping[str, Any]]) -> RawSeries:
    """Normalise a loosely-typed series (string years, dict points) to RawSeries.

    Years that are not integers and points that are neither dicts nor
    RawDataPoints are dropped.
    """
    result: RawSeries = {}
    for year_key, countries in series.items():
        try:
            year = int(year_key)
        except (TypeError, ValueError):
            continue
        points: dict[str, RawDataPoint] = {}
        for country, point in (countries or {}).items():
            if isinstance(point, RawDataPoint):
                points[country] = point
            elif isinstance(point, Mapping):
                points[country] = RawDataPoint.from_dict(point)
        result[year] = points
    return result


class RawDataSource(Protocol):
    """Supplies raw series per criterion. Missing years/countries are normal."""

    async def fetch_series(self, criterion: CriterionId) -> RawSeries:
        ...

    def clear_cache(self) -> None:
        ...

    def cache_stats(self) -> dict:
        ...


class StaticDataSource:
    """In-memory data source, used offline and in tests."""

    def __init__(self, series: Mapping[str, Mapping[Any, Mapping[str, Any]]] | None = None) -> None:
        self._series: dict[CriterionId, RawSeries] = {
            CriterionId(criterion): coerce_series(data)
            for criterion, data in (series or {}).items()
        }
        self.fetch_count = 0

    async def fetch_series(self, criterion: CriterionId) -> RawSeries:
        self.fetch_count += 1
        return self._series.get(CriterionId(criterion), {})

    def clear_cache(self) -> None:
        pass

    def cache_stats(self) -> dict:
        return {"criteria": len(self._series)}
