from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from qolindex.api.deps import get_validator
from qolindex.api.health import router as health_router
from qolindex.api.routes_borders import router as borders_router
from qolindex.api.routes_index import router as index_router
from qolindex.config import get_settings
from qolindex.geometry.validator import load_feature_collection

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: validate the configured borders file so /v1/borders has results
    settings = get_settings()
    if settings.borders_geojson_path:
        try:
            collection = load_feature_collection(settings.borders_geojson_path)
        except (OSError, ValueError):
            logger.warning("Could not read borders file %s", settings.borders_geojson_path, exc_info=True)
        else:
            report = get_validator().validate_borders(collection)
            logger.info(
                "Startup border validation: %d/%d features valid",
                report.valid_features, report.total_features,
            )

    yield


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(title="Quality of Living Index", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.app_url, "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(index_router)
    app.include_router(borders_router)

    return app


app = create_app()
