"""Unity Catalog REST client."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from catalogsync.adapters.http_resilience import ResilientClient
from catalogsync.domain.model import EntityKind
from catalogsync.domain.ports import RemoteEntityNotFound, RemoteServiceError

from .schema import (
    CatalogInfo,
    ErrorResponse,
    FunctionInfo,
    ListCatalogsResponse,
    ListFunctionsResponse,
    ListRegisteredModelsResponse,
    ListSchemasResponse,
    ListTablesResponse,
    ListVolumesResponse,
    RegisteredModelInfo,
    SchemaInfo,
    TableInfo,
    VolumeInfo,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from catalogsync.config.http_resilience import ResilienceConfig
    from catalogsync.config.unitycatalog import UnityCatalogConfig

    from .schema import EntityInfo

log = getLogger(__name__)

DEFAULT_MAX_RESULTS = 100
HTTP_NOT_FOUND = 404


@dataclass(frozen=True, slots=True)
class _Resource:
    path: str
    list_key: str
    item: type[EntityInfo]
    listing: type[BaseModel]
    force_delete: bool = False


_RESOURCES: dict[EntityKind, _Resource] = {
    EntityKind.CATALOG: _Resource(
        "catalogs", "catalogs", CatalogInfo, ListCatalogsResponse, force_delete=True
    ),
    EntityKind.SCHEMA: _Resource(
        "schemas", "schemas", SchemaInfo, ListSchemasResponse, force_delete=True
    ),
    EntityKind.TABLE: _Resource("tables", "tables", TableInfo, ListTablesResponse),
    EntityKind.VOLUME: _Resource("volumes", "volumes", VolumeInfo, ListVolumesResponse),
    EntityKind.FUNCTION: _Resource("functions", "functions", FunctionInfo, ListFunctionsResponse),
    EntityKind.MODEL: _Resource(
        "models",
        "registered_models",
        RegisteredModelInfo,
        ListRegisteredModelsResponse,
        force_delete=True,
    ),
}


class UnityCatalogClient:
    """Low-level HTTP client for the Unity Catalog REST API.

    Every public method is synchronous and runs its own event loop; listing
    follows ``next_page_token`` until the server stops returning one. A 404 is
    reported as ``RemoteEntityNotFound``; any other failure as
    ``RemoteServiceError``.
    """

    def __init__(
        self,
        *,
        config: UnityCatalogConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._max_results = max_results

    @property
    def endpoint(self) -> str:
        return self._config.endpoint

    # ---------------------------------------------------------------- listing

    def list_catalogs(self) -> list[CatalogInfo]:
        return self.fetch_list(EntityKind.CATALOG)  # type: ignore[return-value]

    def list_schemas(self, catalog_name: str) -> list[SchemaInfo]:
        return self.fetch_list(  # type: ignore[return-value]
            EntityKind.SCHEMA, catalog_name=catalog_name
        )

    def list_tables(self, catalog_name: str, schema_name: str) -> list[TableInfo]:
        return self.fetch_list(  # type: ignore[return-value]
            EntityKind.TABLE, catalog_name=catalog_name, schema_name=schema_name
        )

    def list_volumes(self, catalog_name: str, schema_name: str) -> list[VolumeInfo]:
        return self.fetch_list(  # type: ignore[return-value]
            EntityKind.VOLUME, catalog_name=catalog_name, schema_name=schema_name
        )

    def list_functions(self, catalog_name: str, schema_name: str) -> list[FunctionInfo]:
        return self.fetch_list(  # type: ignore[return-value]
            EntityKind.FUNCTION, catalog_name=catalog_name, schema_name=schema_name
        )

    def list_models(self, catalog_name: str, schema_name: str) -> list[RegisteredModelInfo]:
        return self.fetch_list(  # type: ignore[return-value]
            EntityKind.MODEL, catalog_name=catalog_name, schema_name=schema_name
        )

    def fetch_list(
        self,
        kind: EntityKind,
        *,
        catalog_name: str | None = None,
        schema_name: str | None = None,
    ) -> list[EntityInfo]:
        params: dict[str, str] = {}
        if catalog_name is not None:
            params["catalog_name"] = catalog_name
        if schema_name is not None:
            params["schema_name"] = schema_name
        return asyncio.run(self._list_async(kind, params))

    # ------------------------------------------------------------ single item

    def fetch(self, kind: EntityKind, full_name: str) -> EntityInfo:
        payload = asyncio.run(self._call(kind, "GET", full_name))
        return self._validate(_RESOURCES[kind].item, payload)

    def create(self, kind: EntityKind, body: dict[str, object]) -> EntityInfo:
        payload = asyncio.run(self._call(kind, "POST", None, json=body))
        return self._validate(_RESOURCES[kind].item, payload)

    def update(self, kind: EntityKind, full_name: str, body: dict[str, object]) -> EntityInfo:
        payload = asyncio.run(self._call(kind, "PATCH", full_name, json=body))
        return self._validate(_RESOURCES[kind].item, payload)

    def delete(self, kind: EntityKind, full_name: str) -> None:
        params = {"force": "true"} if _RESOURCES[kind].force_delete else None
        asyncio.run(self._call(kind, "DELETE", full_name, params=params))

    # -------------------------------------------------------------- internals

    async def _list_async(self, kind: EntityKind, params: dict[str, str]) -> list[EntityInfo]:
        resource = _RESOURCES[kind]
        items: list[EntityInfo] = []
        page_token: str | None = None
        seen_tokens: set[str] = set()
        async with self._client_factory(self._resilience) as client:
            while True:
                query = {**params, "max_results": str(self._max_results)}
                if page_token:
                    query["page_token"] = page_token
                payload = await self._perform(client, kind, "GET", resource.path, params=query)
                page = self._validate(resource.listing, payload)
                items.extend(getattr(page, resource.list_key))
                page_token = getattr(page, "next_page_token", None)
                if not page_token:
                    break
                if page_token in seen_tokens:
                    log.warning(f"Unity Catalog repeated page token for {resource.path}; stopping")
                    break
                seen_tokens.add(page_token)
        log.debug(f"Listed {len(items)} {resource.path} with {params}")
        return items

    async def _call(
        self,
        kind: EntityKind,
        method: str,
        full_name: str | None,
        *,
        json: dict[str, object] | None = None,
        params: dict[str, str] | None = None,
    ) -> object:
        resource = _RESOURCES[kind]
        path = resource.path if full_name is None else f"{resource.path}/{quote(full_name)}"
        async with self._client_factory(self._resilience) as client:
            return await self._perform(
                client, kind, method, path, params=params, json=json, full_name=full_name
            )

    async def _perform(  # noqa: PLR0913
        self,
        client: ResilientClient,
        kind: EntityKind,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, object] | None = None,
        full_name: str | None = None,
    ) -> object:
        try:
            response = await client.request(method, path, params=params, json=json)
        except httpx.HTTPError as exc:
            raise RemoteServiceError(f"{method} {path} failed: {exc}") from exc

        if response.status_code == HTTP_NOT_FOUND and full_name is not None:
            raise RemoteEntityNotFound(kind, full_name)
        if response.is_error:
            raise RemoteServiceError(
                f"{method} {path} returned {response.status_code}: {_error_message(response)}"
            )
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteServiceError(f"{method} {path} returned invalid JSON") from exc

    @staticmethod
    def _validate[TModel: BaseModel](model: type[TModel], payload: object) -> TModel:
        if not isinstance(payload, dict):
            raise RemoteServiceError(f"Unexpected Unity Catalog payload for {model.__name__}")
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise RemoteServiceError(f"Invalid {model.__name__} payload: {exc}") from exc


def _error_message(response: httpx.Response) -> str:
    try:
        error = ErrorResponse.model_validate(response.json())
    except (ValueError, ValidationError):
        return response.text[:200]
    return f"{error.error_code or 'ERROR'}: {error.message or ''}".strip()
