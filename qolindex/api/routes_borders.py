"""Country border validation endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from qolindex.api.deps import get_validator
from qolindex.api.schemas import FeatureCollectionIn
from qolindex.geometry.validator import GeometryValidator

router = APIRouter(prefix="/v1/borders", tags=["borders"])


@router.post("/validate")
async def validate_borders(
    body: FeatureCollectionIn,
    validator: GeometryValidator = Depends(get_validator),
):
    report = validator.validate_borders(body.model_dump())
    return report.to_dict()


@router.get("")
async def list_validations(validator: GeometryValidator = Depends(get_validator)):
    """Latest validation result per country code."""
    return {code: r.to_dict() for code, r in validator.get_all_validation_results().items()}


@router.get("/{code}")
async def country_validation(code: str, validator: GeometryValidator = Depends(get_validator)):
    result = validator.get_country_validation(code.upper())
    if result is None:
        raise HTTPException(status_code=404, detail=f"No validation result for {code}")
    return result.to_dict()
