"""World Bank Indicators API ingest."""
from __future__ import annotations

from typing import Any

import httpx

from qolindex.ingest.data_source import RawDataPoint, RawSeries
from qolindex.score.criteria import DECADE_YEARS, CriterionId

# series -> World Bank indicator code
WORLD_BANK_INDICATORS: dict[CriterionId, str] = {
    CriterionId.GDP_PER_CAPITA: "NY.GDP.PCAP.CD",
    CriterionId.FOOD_SECURITY: "SN.ITK.DEFC.ZS",
}

_WB_CONFIDENCE = 0.9


def parse_world_bank_rows(data: Any, indicator: str) -> RawSeries:
    """Parse a World Bank ``[metadata, rows]`` response into a decade series.

    Rows without an ISO3 code (regional aggregates), without a value, or
    outside the decade years are skipped.
    """
    if not isinstance(data, list) or len(data) < 2 or data[1] is None:
        return {}

    meta = data[0] if isinstance(data[0], dict) else {}
    last_updated = meta.get("lastupdated")

    series: RawSeries = {}
    for item in data[1]:
        iso3 = item.get("countryiso3code")
        value = item.get("value")
        if not iso3 or value is None:
            continue
        try:
            year = int(item["date"])
        except (KeyError, TypeError, ValueError):
            continue
        if year not in DECADE_YEARS:
            continue
        series.setdefault(year, {})[iso3] = RawDataPoint(
            value=float(value),
            confidence=_WB_CONFIDENCE,
            source=f"World Bank {indicator}",
            last_updated=last_updated,
        )
    return series


async def fetch_world_bank_indicator(
    client: httpx.AsyncClient,
    base_url: str,
    indicator: str,
    start_year: int = DECADE_YEARS[0],
    end_year: int = DECADE_YEARS[-1],
) -> tuple[RawSeries, str]:
    """Fetch an indicator for all countries from the World Bank API.

    Returns (parsed decade series, raw response text).
    """
    url = f"{base_url}/country/all/indicator/{indicator}"
    params = {"date": f"{start_year}:{end_year}", "format": "json", "per_page": "20000"}
    resp = await client.get(url, params=params)
    resp.raise_for_status()
    raw = resp.text
    return parse_world_bank_rows(resp.json(), indicator), raw
