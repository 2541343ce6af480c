"""Index engine: raw series -> global stats -> normalized scores -> composite index.

One IndexEngine instance owns its statistics and composite caches. Both share
the same freshness window and are cleared together by ``clear_cache``. A
computation that was already running when the caches were cleared finishes
for its caller but never writes its result back.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from qolindex.config import get_settings
from qolindex.ingest.data_source import RawDataSource
from qolindex.score.cache import FreshnessCache
from qolindex.score.composite import CompositeResult, compute_composite
from qolindex.score.criteria import CRITERIA, DECADE_YEARS, CriterionConfig, CriterionId, get_criterion
from qolindex.score.normalize import DEFAULT_CONFIDENCE, DEFAULT_SOURCE, NormalizedScore, normalize_value
from qolindex.score.stats import NEUTRAL_STATS, GlobalStats, compute_stats, flatten_series
from qolindex.score.weighting import DEFAULT_SCHEME, WeightingRegistry, WeightingScheme

logger = logging.getLogger(__name__)


class IndexEngine:
    def __init__(
        self,
        data_source: RawDataSource,
        weighting: WeightingRegistry | None = None,
        cache_ttl_seconds: float | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        if cache_ttl_seconds is None:
            cache_ttl_seconds = get_settings().index_cache_ttl_seconds
        self._data_source = data_source
        self._weighting = weighting or WeightingRegistry()
        self._stats_cache: FreshnessCache[GlobalStats] = FreshnessCache(cache_ttl_seconds, clock=clock)
        self._composite_cache: FreshnessCache[dict[str, CompositeResult]] = FreshnessCache(
            cache_ttl_seconds, clock=clock,
        )
        self._generation = 0

    @property
    def data_source(self) -> RawDataSource:
        return self._data_source

    # ------------------------------------------------------------------
    # Statistics and normalization
    # ------------------------------------------------------------------

    async def calculate_global_stats(self, criterion: str | CriterionId) -> GlobalStats:
        """Pooled stats for a criterion across all years and countries.

        Raises UnknownCriterionError for unknown ids. Any other failure
        returns NEUTRAL_STATS, which is not cached.
        """
        config = get_criterion(criterion)
        cached = self._stats_cache.get(config.id)
        if cached is not None:
            return cached

        generation = self._generation
        try:
            series = await self._data_source.fetch_series(config.id)
            stats = compute_stats(flatten_series(series))
        except Exception:
            logger.exception("Failed to calculate global stats for %s", config.id.value)
            return NEUTRAL_STATS

        if stats.count == 0:
            logger.warning("No valid data found for criterion %s, using neutral stats", config.id.value)
            return stats

        if generation == self._generation:
            self._stats_cache.set(config.id, stats)
        return stats

    async def normalize_and_score(
        self,
        criterion: str | CriterionId,
        year: int,
    ) -> dict[str, NormalizedScore]:
        """Normalized scores for every country present in ``year``'s raw data."""
        config = get_criterion(criterion)

        try:
            series = await self._data_source.fetch_series(config.id)
            stats = await self.calculate_global_stats(config.id)
        except Exception:
            logger.exception("Failed to normalize %s for %s", config.id.value, year)
            return {}

        year_data = series.get(year)
        if not year_data:
            logger.warning("No data available for %s in year %s", config.id.value, year)
            return {}

        return {
            country: self._normalized_point(config, year, point, stats)
            for country, point in year_data.items()
            if point is not None
        }

    @staticmethod
    def _normalized_point(config: CriterionConfig, year: int, point, stats: GlobalStats) -> NormalizedScore:
        return NormalizedScore(
            criterion=config.id,
            year=year,
            raw_value=point.value,
            normalized_score=normalize_value(point.value, stats, config),
            confidence=point.confidence if point.confidence is not None else DEFAULT_CONFIDENCE,
            source=point.source or DEFAULT_SOURCE,
            last_updated=point.last_updated,
            global_stats=stats,
        )

    async def get_all_normalized_scores(self, year: int) -> dict[CriterionId, dict[str, NormalizedScore]]:
        """Normalized scores for all criteria; a failing criterion yields {}."""
        criteria = list(CRITERIA)
        outcomes = await asyncio.gather(
            *(self.normalize_and_score(c, year) for c in criteria),
            return_exceptions=True,
        )
        results: dict[CriterionId, dict[str, NormalizedScore]] = {}
        for criterion, outcome in zip(criteria, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("Failed to get normalized scores for %s: %s", criterion.value, outcome)
                results[criterion] = {}
            else:
                results[criterion] = outcome
        return results

    # ------------------------------------------------------------------
    # Composite index
    # ------------------------------------------------------------------

    async def calculate_composite_index(
        self,
        year: int,
        weighting_scheme: str = DEFAULT_SCHEME,
    ) -> dict[str, CompositeResult]:
        """Ranked composite results keyed by country code.

        Unknown scheme names fall back to "equal". Countries failing the
        completeness gate are absent from the result. Only decade years are
        cached; any other year is computed on every call.
        """
        scheme = self._weighting.resolve(weighting_scheme)
        key = (year, scheme.id)
        cached = self._composite_cache.get(key)
        if cached is not None:
            return dict(cached)

        generation = self._generation
        try:
            normalized = await self.get_all_normalized_scores(year)
            results = compute_composite(normalized, scheme, year)
        except Exception:
            logger.exception("Failed to calculate composite index for year %s", year)
            return {}

        if year in DECADE_YEARS and generation == self._generation:
            self._composite_cache.set(key, results)
        return dict(results)

    # ------------------------------------------------------------------
    # Configuration and cache management
    # ------------------------------------------------------------------

    def get_available_criteria(self) -> list[CriterionConfig]:
        return list(CRITERIA.values())

    def get_weighting_schemes(self) -> dict[str, WeightingScheme]:
        return self._weighting.snapshot()

    def register_weighting_scheme(self, name: str, description: str, weights: dict[str, float]) -> str:
        """Register a custom scheme; cached composites for a replaced id are dropped."""
        scheme_id = self._weighting.register(name, description, weights)
        self._composite_cache.invalidate()
        return scheme_id

    def clear_cache(self) -> None:
        self._generation += 1
        self._stats_cache.invalidate()
        self._composite_cache.invalidate()
        self._data_source.clear_cache()
        logger.info("Index caches cleared (generation %d)", self._generation)

    def get_cache_stats(self) -> dict[str, Any]:
        return {
            "global_stats": self._stats_cache.stats,
            "composite_index": self._composite_cache.stats,
            "generation": self._generation,
            "data_source": self._data_source.cache_stats(),
        }
