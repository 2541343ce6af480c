from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    ipcc_api_base: str = "https://api.ipcc.ch"
    world_bank_api_base: str = "https://api.worldbank.org/v2"

    fetch_timeout_seconds: float = 10.0
    use_mock_data: bool = False
    mock_seed: int = 2024

    index_cache_ttl_seconds: float = 5 * 60
    raw_data_cache_ttl_seconds: float = 24 * 60 * 60

    borders_geojson_path: str = ""

    app_url: str = "http://localhost:3000"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
