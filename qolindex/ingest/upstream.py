"""Raw data source backed by the IPCC and World Bank endpoints.

Every fetch is bounded by ``Settings.fetch_timeout_seconds``. Any failure
(timeout, HTTP error, unparseable or empty payload) is logged and replaced by
the reproducible mock series for that criterion, so callers always get data.
Series are gap-filled to cover every decade year and memoised per criterion.
"""
from __future__ import annotations

import logging
from typing import Any, Callable

import httpx

from qolindex.config import Settings, get_settings
from qolindex.ingest.data_source import RawSeries, coerce_series
from qolindex.ingest.gap_fill import fill_missing_years
from qolindex.ingest.mock_data import generate_mock_series
from qolindex.ingest.world_bank import WORLD_BANK_INDICATORS, fetch_world_bank_indicator
from qolindex.score.cache import FreshnessCache
from qolindex.score.criteria import CriterionConfig, CriterionId, get_criterion

logger = logging.getLogger(__name__)

_CLIMATE_PATHS: dict[CriterionId, str] = {
    CriterionId.FLOODS: "floods",
    CriterionId.CYCLONES: "cyclones",
    CriterionId.EXTREME_HEAT: "extreme-heat",
    CriterionId.WILDFIRES: "wildfires",
    CriterionId.WATER_SCARCITY: "water-scarcity",
}

_HEADERS = {"Accept": "application/json", "User-Agent": "qolindex/0.1"}


async def fetch_climate_series(client: httpx.AsyncClient, url: str) -> tuple[RawSeries, str]:
    """Fetch a ``{year: {country: point}}`` climate projection document."""
    resp = await client.get(url)
    resp.raise_for_status()
    raw = resp.text
    data = resp.json()
    if not isinstance(data, dict):
        return {}, raw
    return coerce_series(data), raw


class UpstreamDataSource:
    """Fetches, falls back, gap-fills and caches raw series per criterion."""

    def __init__(
        self,
        settings: Settings | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._cache: FreshnessCache[RawSeries] = FreshnessCache(
            self._settings.raw_data_cache_ttl_seconds, clock=clock,
        )
        self.fallback_count = 0

    def url_for(self, config: CriterionConfig) -> str:
        if config.kind == "economic":
            indicator = WORLD_BANK_INDICATORS[config.id]
            return f"{self._settings.world_bank_api_base}/country/all/indicator/{indicator}"
        return f"{self._settings.ipcc_api_base}/climate/{_CLIMATE_PATHS[config.id]}"

    async def fetch_series(self, criterion: CriterionId) -> RawSeries:
        config = get_criterion(criterion)
        cached = self._cache.get(config.id)
        if cached is not None:
            return cached

        series = fill_missing_years(await self._load(config))
        self._cache.set(config.id, series)
        return series

    async def _load(self, config: CriterionConfig) -> RawSeries:
        if self._settings.use_mock_data:
            return generate_mock_series(config.id, self._settings.mock_seed)

        try:
            series = await self._fetch(config)
        except Exception as e:
            logger.warning("Upstream fetch failed for %s (%s): %s, using mock data",
                           config.id.value, self.url_for(config), e)
            series = {}

        if not any(series.values()):
            logger.info("No usable upstream data for %s, using mock data", config.id.value)
            self.fallback_count += 1
            return generate_mock_series(config.id, self._settings.mock_seed)
        return series

    async def _fetch(self, config: CriterionConfig) -> RawSeries:
        async with httpx.AsyncClient(
            timeout=self._settings.fetch_timeout_seconds, headers=_HEADERS,
        ) as client:
            if config.kind == "economic":
                series, _ = await fetch_world_bank_indicator(
                    client,
                    self._settings.world_bank_api_base,
                    WORLD_BANK_INDICATORS[config.id],
                )
            else:
                series, _ = await fetch_climate_series(client, self.url_for(config))
        return series

    def clear_cache(self) -> None:
        self._cache.invalidate()

    def cache_stats(self) -> dict[str, Any]:
        return {**self._cache.stats, "fallbacks": self.fallback_count}
