"""Fill missing decade/country gaps from the nearest year that has data."""
from __future__ import annotations

from dataclasses import replace

from qolindex.ingest.data_source import RawDataPoint, RawSeries
from qolindex.score.criteria import DECADE_YEARS

INTERPOLATED_CONFIDENCE_FACTOR = 0.7
DEFAULT_FILL_CONFIDENCE = 0.8


def _nearest_point(series: RawSeries, target_year: int, country: str) -> RawDataPoint | None:
    """Nearest-year point for a country; the earlier year wins ties."""
    best: RawDataPoint | None = None
    best_distance: int | None = None
    for year in sorted(series):
        point = series[year].get(country)
        if point is None:
            continue
        distance = abs(year - target_year)
        if best_distance is None or distance < best_distance:
            best, best_distance = point, distance
    return best


def fill_missing_years(series: RawSeries) -> RawSeries:
    """Return a copy of ``series`` covering every decade year for every country.

    Filled points are copies of the nearest real point with confidence scaled
    by INTERPOLATED_CONFIDENCE_FACTOR and " (interpolated)" appended to the
    source. Only points present in the input are used as donors.
    """
    filled: RawSeries = {year: dict(points) for year, points in series.items()}

    countries: dict[str, None] = {}
    for year in sorted(series):
        for country in series[year]:
            countries.setdefault(country, None)

    for year in DECADE_YEARS:
        year_points = filled.setdefault(year, {})
        for country in countries:
            if country in year_points:
                continue
            donor = _nearest_point(series, year, country)
            if donor is None:
                continue
            confidence = donor.confidence if donor.confidence is not None else DEFAULT_FILL_CONFIDENCE
            year_points[country] = replace(
                donor,
                confidence=confidence * INTERPOLATED_CONFIDENCE_FACTOR,
                source=f"{donor.source or 'Unknown'} (interpolated)",
            )

    return filled
