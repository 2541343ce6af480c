"""Quality of living index endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from qolindex.api.deps import get_engine
from qolindex.api.schemas import WeightingSchemeCreate
from qolindex.packets.country_packets import get_country_breakdown
from qolindex.packets.rankings import (
    build_recommendation_context,
    compare_countries,
    get_country_rankings,
)
from qolindex.score.criteria import UnknownCriterionError
from qolindex.score.engine import IndexEngine
from qolindex.score.weighting import DEFAULT_SCHEME

router = APIRouter(prefix="/v1", tags=["index"])


@router.get("/criteria")
async def list_criteria(engine: IndexEngine = Depends(get_engine)):
    return [c.to_dict() for c in engine.get_available_criteria()]


@router.get("/criteria/{criterion}/stats")
async def criterion_stats(criterion: str, engine: IndexEngine = Depends(get_engine)):
    """Global statistics for one criterion, pooled across years and countries."""
    try:
        stats = await engine.calculate_global_stats(criterion)
    except UnknownCriterionError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"criterion": criterion, **stats.to_dict()}


@router.get("/weighting-schemes")
async def list_weighting_schemes(engine: IndexEngine = Depends(get_engine)):
    return {sid: s.to_dict() for sid, s in engine.get_weighting_schemes().items()}


@router.post("/weighting-schemes", status_code=201)
async def create_weighting_scheme(
    body: WeightingSchemeCreate,
    engine: IndexEngine = Depends(get_engine),
):
    try:
        scheme_id = engine.register_weighting_scheme(body.name, body.description, body.weights)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"id": scheme_id}


@router.get("/index/{year}")
async def composite_index(
    year: int,
    scheme: str = Query(DEFAULT_SCHEME),
    engine: IndexEngine = Depends(get_engine),
):
    """Composite results for every country passing the completeness gate."""
    results = await engine.calculate_composite_index(year, scheme)
    return {country: result.to_dict() for country, result in results.items()}


@router.get("/country/{code}/breakdown")
async def country_breakdown(
    code: str,
    year: int = Query(...),
    scheme: str = Query(DEFAULT_SCHEME),
    engine: IndexEngine = Depends(get_engine),
):
    packet = await get_country_breakdown(engine, code.upper(), year, scheme)
    if packet is None:
        raise HTTPException(status_code=404, detail=f"No index data for {code} in {year}")
    return packet


@router.get("/rankings")
async def rankings(
    year: int = Query(...),
    scheme: str = Query(DEFAULT_SCHEME),
    limit: int = Query(10),
    engine: IndexEngine = Depends(get_engine),
):
    ranked = await get_country_rankings(engine, year, scheme, limit)
    content = {
        "top": [r.to_dict() for r in ranked["top"]],
        "bottom": [r.to_dict() for r in ranked["bottom"]],
    }
    if "total" in ranked:
        content["total"] = ranked["total"]
    return content


@router.get("/compare")
async def compare(
    countries: str = Query(..., description="Comma-separated ISO3 codes"),
    year: int = Query(...),
    scheme: str = Query(DEFAULT_SCHEME),
    engine: IndexEngine = Depends(get_engine),
):
    codes = [c.strip().upper() for c in countries.split(",") if c.strip()]
    results = await compare_countries(engine, codes, year, scheme)
    return {country: result.to_dict() for country, result in results.items()}


@router.get("/recommendation-context")
async def recommendation_context(
    year: int = Query(...),
    scheme: str = Query(DEFAULT_SCHEME),
    limit: int = Query(20),
    engine: IndexEngine = Depends(get_engine),
):
    return await build_recommendation_context(engine, year, scheme, limit)


@router.post("/cache/clear")
async def clear_cache(engine: IndexEngine = Depends(get_engine)):
    engine.clear_cache()
    return {"status": "cleared"}


@router.get("/cache/stats")
async def cache_stats(engine: IndexEngine = Depends(get_engine)):
    return engine.get_cache_stats()
