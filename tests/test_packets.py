"""Tests for breakdown, ranking and comparison packets."""
from __future__ import annotations

import pytest

from qolindex.ingest.data_source import StaticDataSource
from qolindex.packets.country_packets import get_country_breakdown
from qolindex.packets.rankings import (
    build_recommendation_context,
    compare_countries,
    get_country_rankings,
)
from qolindex.score.criteria import CRITERIA
from qolindex.score.engine import IndexEngine

# Composite scores with equal weights: AAA 90, BBB 70, CCC 50, DDD 30, EEE 10
_LEVELS = {"AAA": 90.0, "BBB": 70.0, "CCC": 50.0, "DDD": 30.0, "EEE": 10.0}

# Pads the distribution so p10/p90 land on the 0 and 100 levels
_PADDING = {"LO1": 0.0, "LO2": 0.0, "HI1": 100.0, "HI2": 100.0}


def _series() -> dict:
    """Same spread of values for every criterion, flipped for inverted ones."""
    series = {}
    for criterion, config in CRITERIA.items():
        values = {
            country: (100.0 - level if config.invert_score else level)
            for country, level in {**_LEVELS, **_PADDING}.items()
        }
        series[criterion.value] = {2030: {c: {"value": v} for c, v in values.items()}}
    return series


def _engine() -> IndexEngine:
    return IndexEngine(StaticDataSource(_series()), cache_ttl_seconds=300)


# ---------------------------------------------------------------------------
# Breakdown
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_breakdown_strengths():
    packet = await get_country_breakdown(_engine(), "AAA", 2030)

    assert packet["country"] == "AAA"
    assert packet["composite_score"] == 90.0
    assert len(packet["component_scores"]) == 7
    analysis = packet["analysis"]
    assert len(analysis["strengths"]) == 7
    assert analysis["weaknesses"] == []
    assert analysis["recommendations"] == [
        "This location excels in 7 areas, especially river flood risk index."
    ]


@pytest.mark.asyncio
async def test_breakdown_weaknesses():
    packet = await get_country_breakdown(_engine(), "EEE", 2030)
    analysis = packet["analysis"]
    assert len(analysis["weaknesses"]) == 7
    assert analysis["strengths"] == []
    assert analysis["recommendations"][0].startswith("Consider the 7 areas of concern")


@pytest.mark.asyncio
async def test_breakdown_midrange_has_no_analysis_items():
    packet = await get_country_breakdown(_engine(), "CCC", 2030)
    assert packet["analysis"] == {"strengths": [], "weaknesses": [], "recommendations": []}


@pytest.mark.asyncio
async def test_breakdown_missing_country():
    assert await get_country_breakdown(_engine(), "ZZZ", 2030) is None
    assert await get_country_breakdown(_engine(), "AAA", 1990) is None


# ---------------------------------------------------------------------------
# Rankings
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_rankings_top_and_bottom():
    ranked = await get_country_rankings(_engine(), 2030, "equal", 2)

    assert [r.country for r in ranked["top"]][0] in ("HI1", "HI2")
    assert ranked["top"][0].ranking.rank == 1
    assert [r.country for r in ranked["bottom"]] in (["LO1", "LO2"], ["LO2", "LO1"])
    assert ranked["total"] == 9


@pytest.mark.asyncio
async def test_rankings_bottom_starts_with_lowest():
    ranked = await get_country_rankings(_engine(), 2030, "equal", 4)
    bottom_scores = [r.composite_score for r in ranked["bottom"]]
    assert bottom_scores == [0.0, 0.0, 10.0, 30.0]


@pytest.mark.asyncio
async def test_rankings_empty_index():
    engine = IndexEngine(StaticDataSource(), cache_ttl_seconds=300)
    assert await get_country_rankings(engine, 2020, "equal", 10) == {"top": [], "bottom": []}


@pytest.mark.asyncio
async def test_rankings_zero_limit():
    ranked = await get_country_rankings(_engine(), 2030, "equal", 0)
    assert ranked["top"] == []
    assert ranked["bottom"] == []


# ---------------------------------------------------------------------------
# Compare and recommendation context
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_compare_omits_missing():
    results = await compare_countries(_engine(), ["BBB", "ZZZ", "DDD"], 2030)
    assert list(results) == ["BBB", "DDD"]
    assert results["BBB"].composite_score == 70.0
    assert results["DDD"].composite_score == 30.0


@pytest.mark.asyncio
async def test_recommendation_context():
    context = await build_recommendation_context(_engine(), 2030, "equal", limit=3)

    assert [c["country"] for c in context] == ["HI1", "HI2", "AAA"]
    assert context[0]["rank"] == 1
    assert context[1]["rank"] == 1  # tied with HI1
    assert context[2]["rank"] == 3
    assert context[2]["score"] == 90.0
    assert set(context[2]["components"]) == {c.value for c in CRITERIA}
