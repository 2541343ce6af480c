"""Tests for ingest modules: uses mocked HTTP responses."""
from __future__ import annotations

import json
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from qolindex.config import Settings
from qolindex.ingest.data_source import RawDataPoint, StaticDataSource, coerce_series
from qolindex.ingest.gap_fill import fill_missing_years
from qolindex.ingest.mock_data import MOCK_COUNTRIES, generate_mock_series
from qolindex.ingest.upstream import UpstreamDataSource, fetch_climate_series
from qolindex.ingest.world_bank import fetch_world_bank_indicator, parse_world_bank_rows
from qolindex.score.criteria import CRITERIA, DECADE_YEARS, CriterionId


def _mock_response(payload) -> MagicMock:
    mock_resp = MagicMock()
    mock_resp.text = json.dumps(payload)
    mock_resp.json.return_value = payload
    mock_resp.raise_for_status = MagicMock()
    return mock_resp


# ---------------------------------------------------------------------------
# World Bank
# ---------------------------------------------------------------------------

_WB_RESPONSE = [
    {"page": 1, "pages": 1, "total": 5, "lastupdated": "2024-06-28"},
    [
        {"countryiso3code": "USA", "date": "2020", "value": 64317.4},
        {"countryiso3code": "USA", "date": "2019", "value": 65120.4},  # not a decade year
        {"countryiso3code": "CAN", "date": "2020", "value": None},
        {"countryiso3code": "", "date": "2020", "value": 10926.2},  # aggregate region
        {"countryiso3code": "CAN", "date": "2010", "value": 47562.1},
    ],
]


@pytest.mark.asyncio
async def test_fetch_world_bank_indicator_parses_response():
    mock_client = AsyncMock()
    mock_client.get.return_value = _mock_response(_WB_RESPONSE)

    series, raw = await fetch_world_bank_indicator(mock_client, "https://wb.test/v2", "NY.GDP.PCAP.CD")

    assert series == {
        2020: {
            "USA": RawDataPoint(
                value=64317.4, confidence=0.9, source="World Bank NY.GDP.PCAP.CD", last_updated="2024-06-28",
            ),
        },
        2010: {
            "CAN": RawDataPoint(
                value=47562.1, confidence=0.9, source="World Bank NY.GDP.PCAP.CD", last_updated="2024-06-28",
            ),
        },
    }
    assert raw == json.dumps(_WB_RESPONSE)
    url = mock_client.get.call_args.args[0]
    assert url == "https://wb.test/v2/country/all/indicator/NY.GDP.PCAP.CD"
    assert mock_client.get.call_args.kwargs["params"]["date"] == "2000:2100"


@pytest.mark.parametrize("payload", [
    [{"page": 1, "pages": 0, "total": 0}, None],
    [{"message": [{"id": "120", "value": "Invalid value"}]}],
    {"unexpected": True},
])
def test_parse_world_bank_empty_or_error(payload):
    assert parse_world_bank_rows(payload, "NY.GDP.PCAP.CD") == {}


# ---------------------------------------------------------------------------
# Climate endpoint and series coercion
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_fetch_climate_series_coerces_keys():
    payload = {"2050": {"USA": {"value": 42.0, "confidence": 0.7, "lastUpdated": "2024-01-01"}}}
    mock_client = AsyncMock()
    mock_client.get.return_value = _mock_response(payload)

    series, _ = await fetch_climate_series(mock_client, "https://ipcc.test/climate/floods")

    assert series == {2050: {"USA": RawDataPoint(value=42.0, confidence=0.7, last_updated="2024-01-01")}}


def test_coerce_series_drops_bad_keys():
    series = coerce_series({"2000": {"USA": {"value": 1}}, "latest": {"USA": {"value": 2}}, 2010: None})
    assert set(series) == {2000, 2010}
    assert series[2010] == {}


# ---------------------------------------------------------------------------
# Gap filling
# ---------------------------------------------------------------------------

def test_fill_missing_years_uses_nearest_with_reduced_confidence():
    series = {
        2000: {"USA": RawDataPoint(value=10.0, confidence=1.0, source="IPCC")},
        2050: {"USA": RawDataPoint(value=50.0, confidence=0.9, source="IPCC")},
    }
    filled = fill_missing_years(series)

    assert set(filled) == set(DECADE_YEARS)
    assert filled[2000]["USA"] is series[2000]["USA"]
    assert filled[2010]["USA"].value == 10.0
    assert filled[2010]["USA"].confidence == pytest.approx(0.7)
    assert filled[2010]["USA"].source == "IPCC (interpolated)"
    assert filled[2100]["USA"].value == 50.0
    assert filled[2100]["USA"].confidence == pytest.approx(0.63)


def test_fill_missing_years_tie_prefers_earlier_year():
    series = {
        2000: {"USA": RawDataPoint(value=10.0)},
        2020: {"USA": RawDataPoint(value=20.0)},
    }
    filled = fill_missing_years(series)
    assert filled[2010]["USA"].value == 10.0
    assert filled[2010]["USA"].confidence == pytest.approx(0.56)  # default 0.8 * 0.7
    assert filled[2010]["USA"].source == "Unknown (interpolated)"


def test_fill_missing_years_does_not_mutate_input():
    series = {2000: {"USA": RawDataPoint(value=1.0)}}
    fill_missing_years(series)
    assert list(series) == [2000]


# ---------------------------------------------------------------------------
# Mock data
# ---------------------------------------------------------------------------

def test_mock_series_is_reproducible():
    assert generate_mock_series(CriterionId.FLOODS, 7) == generate_mock_series(CriterionId.FLOODS, 7)
    assert generate_mock_series(CriterionId.FLOODS, 7) != generate_mock_series(CriterionId.FLOODS, 8)


@pytest.mark.parametrize("criterion", list(CRITERIA))
def test_mock_series_covers_all_decades(criterion):
    series = generate_mock_series(criterion)
    assert set(series) == set(DECADE_YEARS)
    for points in series.values():
        assert set(points) == set(MOCK_COUNTRIES)
        for point in points.values():
            assert point.value >= 0
            assert 0.6 <= point.confidence <= 1.0


# ---------------------------------------------------------------------------
# UpstreamDataSource
# ---------------------------------------------------------------------------

def _settings(**overrides) -> Settings:
    return Settings(
        ipcc_api_base="https://ipcc.test",
        world_bank_api_base="https://wb.test/v2",
        **overrides,
    )


@pytest.mark.asyncio
async def test_upstream_uses_mock_data_when_configured():
    source = UpstreamDataSource(_settings(use_mock_data=True, mock_seed=11))
    with patch("qolindex.ingest.upstream.UpstreamDataSource._fetch") as mock_fetch:
        series = await source.fetch_series(CriterionId.WILDFIRES)
    mock_fetch.assert_not_called()
    assert series == generate_mock_series(CriterionId.WILDFIRES, 11)


@pytest.mark.asyncio
async def test_upstream_falls_back_on_http_error(caplog):
    source = UpstreamDataSource(_settings())
    with patch(
        "qolindex.ingest.upstream.UpstreamDataSource._fetch",
        new_callable=AsyncMock,
        side_effect=httpx.ConnectTimeout("timed out"),
    ), caplog.at_level(logging.WARNING):
        series = await source.fetch_series(CriterionId.FLOODS)

    assert series == generate_mock_series(CriterionId.FLOODS, 2024)
    assert source.fallback_count == 1
    assert any("Upstream fetch failed for floods" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_upstream_falls_back_on_empty_payload():
    source = UpstreamDataSource(_settings())
    with patch("qolindex.ingest.upstream.UpstreamDataSource._fetch", new_callable=AsyncMock, return_value={}):
        series = await source.fetch_series(CriterionId.GDP_PER_CAPITA)
    assert series == generate_mock_series(CriterionId.GDP_PER_CAPITA, 2024)
    assert source.fallback_count == 1


@pytest.mark.asyncio
async def test_upstream_gap_fills_and_caches(fake_clock):
    clock = fake_clock
    source = UpstreamDataSource(_settings(raw_data_cache_ttl_seconds=60), clock=clock)
    upstream = {2050: {"USA": RawDataPoint(value=33.0, confidence=1.0, source="IPCC")}}

    with patch(
        "qolindex.ingest.upstream.UpstreamDataSource._fetch", new_callable=AsyncMock, return_value=upstream,
    ) as mock_fetch:
        first = await source.fetch_series(CriterionId.CYCLONES)
        second = await source.fetch_series(CriterionId.CYCLONES)
        assert mock_fetch.await_count == 1

        clock.now = 61
        await source.fetch_series(CriterionId.CYCLONES)
        assert mock_fetch.await_count == 2

    assert first is second
    assert first[2000]["USA"].confidence == pytest.approx(0.7)
    assert source.cache_stats()["entries"] == 1

    source.clear_cache()
    assert source.cache_stats()["entries"] == 0


def test_upstream_urls():
    source = UpstreamDataSource(_settings())
    assert source.url_for(CRITERIA[CriterionId.EXTREME_HEAT]) == "https://ipcc.test/climate/extreme-heat"
    assert source.url_for(CRITERIA[CriterionId.FOOD_SECURITY]) == (
        "https://wb.test/v2/country/all/indicator/SN.ITK.DEFC.ZS"
    )


@pytest.mark.asyncio
async def test_static_source_counts_fetches():
    source = StaticDataSource({"floods": {"2000": {"USA": {"value": 1.0}}}})
    assert (await source.fetch_series(CriterionId.FLOODS))[2000]["USA"].value == 1.0
    assert await source.fetch_series(CriterionId.CYCLONES) == {}
    assert source.fetch_count == 2
