from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from catalogsync.adapters.http_resilience import ResilientClient
from catalogsync.adapters.unitycatalog import UnityCatalogClient
from catalogsync.config.unitycatalog import get_unity_catalog_config

if TYPE_CHECKING:
    from collections.abc import Callable

    from catalogsync.config.http_resilience import ResilienceConfig

type Handler = Callable[[httpx.Request], httpx.Response]


def make_client_factory(handler: Handler) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            transport=httpx.MockTransport(async_handler),
            base_url=resilience.base_url or "",
            headers=dict(resilience.default_headers or {}),
        )
        return client

    return factory


@pytest.fixture
def make_uc_client(
    monkeypatch: pytest.MonkeyPatch,
) -> Callable[[Handler], UnityCatalogClient]:
    monkeypatch.setenv("UNITY_CATALOG_TOKEN", "secret")
    monkeypatch.delenv("UNITY_CATALOG_CACHE_TTL", raising=False)

    def build(handler: Handler) -> UnityCatalogClient:
        config = get_unity_catalog_config(endpoint="http://uc.test/")
        return UnityCatalogClient(
            config=config, client_factory=make_client_factory(handler), max_results=2
        )

    return build
