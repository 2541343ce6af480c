"""Weighted composite Quality of Living Index with completeness gate and ranking."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace

from qolindex.score.criteria import CRITERIA, MIN_VALID_CRITERIA, Category, CriterionId
from qolindex.score.normalize import NormalizedScore, round_half_up
from qolindex.score.weighting import WeightingScheme

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComponentScore:
    score: float
    raw_value: float
    confidence: float
    weight: float
    category: Category
    description: str
    kind: str
    inverted_score: bool

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "raw_value": self.raw_value,
            "confidence": self.confidence,
            "weight": self.weight,
            "category": self.category.value,
            "description": self.description,
            "type": self.kind,
            "inverted_score": self.inverted_score,
        }


@dataclass(frozen=True)
class Ranking:
    rank: int
    percentile: int
    total_countries: int

    def to_dict(self) -> dict:
        return {"rank": self.rank, "percentile": self.percentile, "total_countries": self.total_countries}


@dataclass(frozen=True)
class CompositeResult:
    country: str
    composite_score: float
    component_scores: dict[CriterionId, ComponentScore]
    category_scores: dict[Category, float]
    data_completeness: float
    confidence: float
    year: int
    weighting_scheme: str
    total_criteria: int
    valid_criteria: int
    ranking: Ranking | None = field(default=None)

    def to_dict(self) -> dict:
        return {
            "country": self.country,
            "composite_score": self.composite_score,
            "component_scores": {c.value: s.to_dict() for c, s in self.component_scores.items()},
            "category_scores": {c.value: s for c, s in self.category_scores.items()},
            "data_completeness": self.data_completeness,
            "confidence": self.confidence,
            "year": self.year,
            "weighting_scheme": self.weighting_scheme,
            "total_criteria": self.total_criteria,
            "valid_criteria": self.valid_criteria,
            "ranking": self.ranking.to_dict() if self.ranking else None,
        }


def _score_country(
    country: str,
    normalized: dict[CriterionId, dict[str, NormalizedScore]],
    scheme: WeightingScheme,
    year: int,
) -> CompositeResult | None:
    """Score one country, or return None when it fails the completeness gate."""
    components: dict[CriterionId, ComponentScore] = {}
    weighted_sum = 0.0
    total_weight = 0.0
    min_confidence = 1.0
    category_sums: dict[Category, float] = {}
    category_weights: dict[Category, float] = {}

    for criterion, config in CRITERIA.items():
        point = normalized.get(criterion, {}).get(country)
        if point is None or point.normalized_score is None:
            continue

        weight = scheme.weight_for(criterion)
        score = point.normalized_score
        components[criterion] = ComponentScore(
            score=score,
            raw_value=float(point.raw_value),
            confidence=point.confidence,
            weight=weight,
            category=config.category,
            description=config.description,
            kind=config.kind,
            inverted_score=config.invert_score,
        )

        weighted_sum += score * weight
        total_weight += weight
        min_confidence = min(min_confidence, point.confidence)
        category_sums[config.category] = category_sums.get(config.category, 0.0) + score * weight
        category_weights[config.category] = category_weights.get(config.category, 0.0) + weight

    if len(components) < MIN_VALID_CRITERIA:
        return None

    composite = weighted_sum / total_weight if total_weight > 0 else 0.0
    category_scores = {
        category: category_sums[category] / category_weights[category]
        for category in Category
        if category_weights.get(category, 0.0) > 0
    }

    return CompositeResult(
        country=country,
        composite_score=round_half_up(composite, 1),
        component_scores=components,
        category_scores=category_scores,
        data_completeness=len(components) / len(CRITERIA),
        confidence=min_confidence,
        year=year,
        weighting_scheme=scheme.id,
        total_criteria=len(CRITERIA),
        valid_criteria=len(components),
    )


def assign_rankings(results: dict[str, CompositeResult]) -> dict[str, CompositeResult]:
    """Attach dense rank/percentile from the descending composite scores.

    Tied scores share the rank of the first equal score in the sorted list.
    Returns new result objects; the input mapping is left untouched.
    """
    if not results:
        return {}

    ordered = sorted((r.composite_score for r in results.values()), reverse=True)
    total = len(ordered)
    first_position: dict[float, int] = {}
    for i, score in enumerate(ordered):
        first_position.setdefault(score, i + 1)

    ranked: dict[str, CompositeResult] = {}
    for country, result in results.items():
        rank = first_position[result.composite_score]
        percentile = int(round_half_up((1 - (rank - 1) / total) * 100))
        ranked[country] = replace(
            result,
            ranking=Ranking(rank=rank, percentile=percentile, total_countries=total),
        )
    return ranked


def compute_composite(
    normalized: dict[CriterionId, dict[str, NormalizedScore]],
    scheme: WeightingScheme,
    year: int,
) -> dict[str, CompositeResult]:
    """Compute ranked composite results for every country with enough data.

    ``normalized`` maps criterion -> {country: NormalizedScore} for one year.
    Countries with fewer than MIN_VALID_CRITERIA valid scores are left out.
    A failure while scoring one country is logged and only drops that country.
    """
    countries: dict[str, None] = {}
    for criterion in CRITERIA:
        for country in normalized.get(criterion, {}):
            countries.setdefault(country, None)

    results: dict[str, CompositeResult] = {}
    for country in countries:
        try:
            result = _score_country(country, normalized, scheme, year)
        except Exception:
            logger.exception("Failed to score %s for %s", country, year)
            continue
        if result is not None:
            results[country] = result

    return assign_rankings(results)
