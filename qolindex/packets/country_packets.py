"""Country breakdown packet: composite result plus strengths/weaknesses analysis."""
from __future__ import annotations

from qolindex.score.composite import CompositeResult
from qolindex.score.engine import IndexEngine
from qolindex.score.weighting import DEFAULT_SCHEME

STRENGTH_THRESHOLD = 75.0
WEAKNESS_THRESHOLD = 25.0


def _analyse(result: CompositeResult) -> dict:
    strengths: list[dict] = []
    weaknesses: list[dict] = []

    for criterion, component in result.component_scores.items():
        entry = {
            "criterion": criterion.value,
            "score": component.score,
            "description": component.description,
            "category": component.category.value,
        }
        if component.score >= STRENGTH_THRESHOLD:
            strengths.append(entry)
        elif component.score <= WEAKNESS_THRESHOLD:
            weaknesses.append(entry)

    recommendations: list[str] = []
    if weaknesses:
        recommendations.append(
            f"Consider the {len(weaknesses)} areas of concern, "
            f"particularly {weaknesses[0]['description'].lower()}."
        )
    if strengths:
        recommendations.append(
            f"This location excels in {len(strengths)} areas, "
            f"especially {strengths[0]['description'].lower()}."
        )

    return {"strengths": strengths, "weaknesses": weaknesses, "recommendations": recommendations}


async def get_country_breakdown(
    engine: IndexEngine,
    country: str,
    year: int,
    weighting_scheme: str = DEFAULT_SCHEME,
) -> dict | None:
    """Build the breakdown packet for one country.

    Returns None when the country has no composite result for that year,
    either because it has no data or because it failed the completeness gate.
    Assembled strictly from the composite result, no invented narrative.
    """
    composite = await engine.calculate_composite_index(year, weighting_scheme)
    result = composite.get(country)
    if result is None:
        return None

    content = result.to_dict()
    content["analysis"] = _analyse(result)
    return content
