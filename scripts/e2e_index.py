"""End-to-end smoke test for the index and border endpoints.

Usage: python -m scripts.e2e_index

Requires:
  - Backend running (uvicorn qolindex.main:app), USE_MOCK_DATA=true for offline runs

Steps:
  1. GET /v1/criteria: verify the seven criteria
  2. GET /v1/index/2050: verify scores in range and dense ranks
  3. GET /v1/country/{code}/breakdown for the top country
  4. POST /v1/borders/validate with one valid and one broken feature
  5. Print summary table
"""
from __future__ import annotations

import os
import sys

import httpx

BASE = os.environ.get("E2E_BASE_URL", "http://localhost:8000")
YEAR = int(os.environ.get("E2E_YEAR", "2050"))

SQUARE = [[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0], [0.0, 0.0]]


def main():
    client = httpx.Client(base_url=BASE, timeout=30)

    # 1. Criteria
    print("=== Step 1: Verify /v1/criteria ===")
    r = client.get("/v1/criteria")
    assert r.status_code == 200, f"Criteria endpoint failed: {r.status_code}"
    criteria = r.json()
    assert len(criteria) == 7, f"Expected 7 criteria, got {len(criteria)}"
    print(f"  {', '.join(c['id'] for c in criteria)}")

    # 2. Composite index
    print(f"\n=== Step 2: Verify /v1/index/{YEAR} ===")
    r = client.get(f"/v1/index/{YEAR}")
    assert r.status_code == 200, f"Index endpoint failed: {r.status_code}"
    index = r.json()
    if not index:
        print("  Index is empty. Is upstream data or USE_MOCK_DATA configured?")
        sys.exit(1)

    ordered = sorted(index.values(), key=lambda c: c["ranking"]["rank"])
    print(f"  {'Rank':<5} {'Country':<8} {'Score':>6} {'Pctl':>5} {'Complete':>9}")
    print(f"  {'-'*5} {'-'*8} {'-'*6} {'-'*5} {'-'*9}")
    previous = None
    for c in ordered:
        print(
            f"  #{c['ranking']['rank']:<4} {c['country']:<8} {c['composite_score']:>6.1f} "
            f"{c['ranking']['percentile']:>5} {c['data_completeness']:>9.2f}"
        )
        assert 0 <= c["composite_score"] <= 100, f"{c['country']} score out of range"
        assert c["valid_criteria"] >= 4, f"{c['country']} passed the gate with too few criteria"
        if previous is not None and c["composite_score"] == previous["composite_score"]:
            assert c["ranking"]["rank"] == previous["ranking"]["rank"], "Tied scores must share a rank"
        previous = c

    # 3. Breakdown
    top = ordered[0]["country"]
    print(f"\n=== Step 3: Verify /v1/country/{top}/breakdown ===")
    r = client.get(f"/v1/country/{top}/breakdown", params={"year": YEAR})
    assert r.status_code == 200, f"Breakdown endpoint failed: {r.status_code}"
    packet = r.json()
    assert packet["country"] == top
    assert "analysis" in packet
    print(f"  Strengths: {len(packet['analysis']['strengths'])}")
    print(f"  Weaknesses: {len(packet['analysis']['weaknesses'])}")

    # 4. Borders
    print("\n=== Step 4: Verify /v1/borders/validate ===")
    collection = {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"ISO_A3": "AAA", "NAME": "Square"},
                "geometry": {"type": "Polygon", "coordinates": [SQUARE]},
            },
            {
                "type": "Feature",
                "properties": {"ISO_A3": "BBB", "NAME": "Open ring"},
                "geometry": {"type": "Polygon", "coordinates": [SQUARE[:-1] + [[0.5, 0.5]]]},
            },
        ],
    }
    r = client.post("/v1/borders/validate", json=collection)
    assert r.status_code == 200, f"Validate endpoint failed: {r.status_code}"
    report = r.json()
    assert report["valid_features"] == 1, report
    assert report["invalid_features"] == 1, report
    print(f"  Valid: {report['valid_features']}  Invalid: {report['invalid_features']}")
    for issue in report["issues"]:
        print(f"  {issue['type']} {issue['feature']}: {issue['message']}")

    print("\n=== E2E PASSED ===")


if __name__ == "__main__":
    main()
