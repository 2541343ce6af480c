from __future__ import annotations

from fastapi import APIRouter

from qolindex.score.criteria import INDEX_CALC_VERSION

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {"status": "ok", "calc_version": INDEX_CALC_VERSION}
