"""Unity Catalog configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_int, optional_env_var, require_env_vars
from .errors import InvalidConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig

UNITY_CATALOG_API_PATH = "/api/2.1/unity-catalog/"
UNITY_CATALOG_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class UnityCatalogConfig:
    """Holds Unity Catalog server configuration values."""

    endpoint: str
    token: str | None
    resilience: ResilienceConfig


def is_cacheable_payload(payload: object) -> bool:
    """Error envelopes are never served from the cache."""

    return not (isinstance(payload, dict) and "error_code" in payload)


def _read_cache() -> CacheConfig | None:
    # Off unless UNITY_CATALOG_CACHE_TTL is set; a refresh must see the latest catalog state.
    ttl = env_int("UNITY_CATALOG_CACHE_TTL", 0)
    if ttl < 0:
        raise InvalidConfigurationError("UNITY_CATALOG_CACHE_TTL must not be negative")
    if ttl == 0:
        return None
    return CacheConfig(default_ttl_seconds=float(ttl), should_cache=is_cacheable_payload)


def get_unity_catalog_config(
    *,
    endpoint: str | None = None,
    resilience: ResilienceConfig | None = None,
) -> UnityCatalogConfig:
    resolved = endpoint or require_env_vars(("UNITY_CATALOG_URL",))["UNITY_CATALOG_URL"]
    resolved = resolved.rstrip("/")
    token = optional_env_var("UNITY_CATALOG_TOKEN")
    headers = {"Authorization": f"Bearer {token}"} if token else None
    return UnityCatalogConfig(
        endpoint=resolved,
        token=token,
        resilience=resilience
        or ResilienceConfig(
            name="unitycatalog",
            base_url=f"{resolved}{UNITY_CATALOG_API_PATH}",
            timeout_seconds=UNITY_CATALOG_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=20, per_seconds=1.0),
            cache=_read_cache(),
            default_headers=headers,
        ),
    )
