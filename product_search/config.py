"""Application configuration and constants."""
from __future__ import annotations

import os
from dataclasses import dataclass


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


def _get_bool(name: str, default: str) -> bool:
    return _get_env(name, default).lower() in {"1", "true", "yes"}


@dataclass(frozen=True)
class Settings:
    """Simple settings container with environment variable overrides."""

    catalog_backend: str = _get_env("CATALOG_BACKEND", "memory")
    catalog_path: str = _get_env("CATALOG_PATH", "data/products.json")
    es_host: str = _get_env("ES_HOST", "http://localhost:9200")
    es_index: str = _get_env("ES_INDEX", "products")
    mapping_path: str = _get_env("MAPPING_PATH", "product-mapping.json")
    load_on_startup: bool = _get_bool("LOAD_ON_STARTUP", "true")
    redis_host: str = _get_env("REDIS_HOST", "localhost")
    redis_port: int = int(_get_env("REDIS_PORT", "6379"))
    cache_enabled: bool = _get_bool("CACHE_ENABLED", "true")
    cache_ttl_seconds: int = int(_get_env("CACHE_TTL_SECONDS", "300"))
    max_search_results: int = int(_get_env("MAX_SEARCH_RESULTS", "100"))
    fuzzy_threshold: float = float(_get_env("FUZZY_THRESHOLD", "0.45"))
    catalog_timeout_seconds: float = float(_get_env("CATALOG_TIMEOUT_SECONDS", "5"))
    log_level: str = _get_env("LOG_LEVEL", "INFO")

    @property
    def uses_elasticsearch(self) -> bool:
        return self.catalog_backend.lower() in {"es", "elastic", "elasticsearch"}


settings = Settings()
