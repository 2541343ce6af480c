"""Ranking, comparison and recommendation-context views over the composite index."""
from __future__ import annotations

from typing import Iterable

from qolindex.score.composite import CompositeResult
from qolindex.score.engine import IndexEngine
from qolindex.score.weighting import DEFAULT_SCHEME


def rank_order(results: dict[str, CompositeResult]) -> list[CompositeResult]:
    """Results by descending composite score; equal scores keep insertion order."""
    return sorted(results.values(), key=lambda r: r.composite_score, reverse=True)


async def get_country_rankings(
    engine: IndexEngine,
    year: int,
    weighting_scheme: str = DEFAULT_SCHEME,
    limit: int = 10,
) -> dict:
    """Top and bottom ``limit`` countries.

    The bottom slice is reversed, so it starts with the lowest-scoring
    country. An empty index returns {"top": [], "bottom": []}.
    """
    composite = await engine.calculate_composite_index(year, weighting_scheme)
    if not composite:
        return {"top": [], "bottom": []}

    ordered = rank_order(composite)
    if limit <= 0:
        top: list[CompositeResult] = []
        bottom: list[CompositeResult] = []
    else:
        top = ordered[:limit]
        bottom = list(reversed(ordered[-limit:]))

    return {"top": top, "bottom": bottom, "total": len(ordered)}


async def compare_countries(
    engine: IndexEngine,
    countries: Iterable[str],
    year: int,
    weighting_scheme: str = DEFAULT_SCHEME,
) -> dict[str, CompositeResult]:
    """Composite results for the requested countries; countries without one are omitted."""
    composite = await engine.calculate_composite_index(year, weighting_scheme)
    return {c: composite[c] for c in countries if c in composite}


async def build_recommendation_context(
    engine: IndexEngine,
    year: int,
    weighting_scheme: str = DEFAULT_SCHEME,
    limit: int = 20,
) -> list[dict]:
    """Ranked country list handed to the external recommendation service.

    Ordered by descending composite score, ties broken by country code, with
    per-criterion scores keyed by criterion id.
    """
    composite = await engine.calculate_composite_index(year, weighting_scheme)
    ordered = sorted(composite.values(), key=lambda r: (-r.composite_score, r.country))

    context = []
    for result in ordered[:max(limit, 0)]:
        context.append({
            "country": result.country,
            "score": result.composite_score,
            "rank": result.ranking.rank if result.ranking else None,
            "percentile": result.ranking.percentile if result.ranking else None,
            "components": {c.value: s.score for c, s in result.component_scores.items()},
        })
    return context
