from __future__ import annotations

import json
from typing import TYPE_CHECKING

import httpx
import pytest

from catalogsync.adapters.unitycatalog import UnityCatalogRemote
from catalogsync.adapters.unitycatalog.schema import CatalogInfo, TableInfo
from catalogsync.domain.model import ColumnInfo, EntityKind, ExternalEntity
from catalogsync.domain.ports import RemoteCatalog, RemoteEntityNotFound, RemoteServiceError

if TYPE_CHECKING:
    from collections.abc import Callable

    from catalogsync.adapters.unitycatalog import UnityCatalogClient

    type ClientBuilder = Callable[[Callable[[httpx.Request], httpx.Response]], UnityCatalogClient]

API = "/api/2.1/unity-catalog"


def _table(name: str) -> dict[str, object]:
    return {
        "name": name,
        "catalog_name": "main",
        "schema_name": "sales",
        "table_type": "MANAGED",
        "data_source_format": "DELTA",
        "table_id": f"tid-{name}",
        "created_at": 1_700_000_000_000,
        "updated_at": 1_700_000_500_000,
        "columns": [
            {"name": "id", "type_name": "LONG", "type_text": "bigint", "position": 0},
        ],
    }


def test_listing_follows_page_tokens(make_uc_client: ClientBuilder) -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.params.get("page_token") == "p2":
            return httpx.Response(200, json={"tables": [_table("c")]})
        return httpx.Response(
            200, json={"tables": [_table("a"), _table("b")], "next_page_token": "p2"}
        )

    tables = make_uc_client(handler).list_tables("main", "sales")

    assert [table.name for table in tables] == ["a", "b", "c"]
    assert all(isinstance(table, TableInfo) for table in tables)
    assert requests[0].url.path == f"{API}/tables"
    assert requests[0].url.params["catalog_name"] == "main"
    assert requests[0].url.params["schema_name"] == "sales"
    assert requests[0].url.params["max_results"] == "2"
    assert requests[0].headers["Authorization"] == "Bearer secret"


def test_listing_stops_on_repeated_token(make_uc_client: ClientBuilder) -> None:
    calls: list[int] = []

    def handler(_request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(200, json={"catalogs": [{"name": "main"}], "next_page_token": "x"})

    catalogs = make_uc_client(handler).list_catalogs()

    assert len(calls) == 2
    assert [catalog.name for catalog in catalogs] == ["main", "main"]


def test_fetch_missing_entity_raises_not_found(make_uc_client: ClientBuilder) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            404, json={"error_code": "NOT_FOUND", "message": "Table not found"}
        )

    with pytest.raises(RemoteEntityNotFound) as excinfo:
        make_uc_client(handler).fetch(EntityKind.TABLE, "main.sales.missing")

    assert excinfo.value.full_name == "main.sales.missing"
    assert excinfo.value.kind is EntityKind.TABLE


def test_server_error_raises_service_error(make_uc_client: ClientBuilder) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error_code": "INTERNAL", "message": "kaputt"})

    with pytest.raises(RemoteServiceError, match="INTERNAL: kaputt"):
        make_uc_client(handler).fetch(EntityKind.CATALOG, "main")


def test_transport_error_raises_service_error(make_uc_client: ClientBuilder) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(RemoteServiceError):
        make_uc_client(handler).list_catalogs()


def test_invalid_payload_raises_service_error(make_uc_client: ClientBuilder) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"comment": "no name"})

    with pytest.raises(RemoteServiceError, match="CatalogInfo"):
        make_uc_client(handler).fetch(EntityKind.CATALOG, "main")


def test_create_posts_body(make_uc_client: ClientBuilder) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"name": "main", "id": "cid-1"})

    created = make_uc_client(handler).create(EntityKind.CATALOG, {"name": "main"})

    assert isinstance(created, CatalogInfo)
    assert created.id == "cid-1"
    assert seen[0].method == "POST"
    assert seen[0].url.path == f"{API}/catalogs"
    assert json.loads(seen[0].content) == {"name": "main"}


def test_update_patches_by_full_name(make_uc_client: ClientBuilder) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_table("orders"))

    make_uc_client(handler).update(EntityKind.TABLE, "main.sales.orders", {"comment": "x"})

    assert seen[0].method == "PATCH"
    assert seen[0].url.path == f"{API}/tables/main.sales.orders"


@pytest.mark.parametrize(
    ("kind", "full_name", "path", "forced"),
    [
        (EntityKind.CATALOG, "main", "catalogs/main", True),
        (EntityKind.SCHEMA, "main.sales", "schemas/main.sales", True),
        (EntityKind.VOLUME, "main.sales.raw", "volumes/main.sales.raw", False),
        (EntityKind.MODEL, "main.sales.churn", "models/main.sales.churn", True),
    ],
)
def test_delete_uses_force_for_containers(
    make_uc_client: ClientBuilder,
    kind: EntityKind,
    full_name: str,
    path: str,
    forced: bool,
) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    make_uc_client(handler).delete(kind, full_name)

    assert seen[0].method == "DELETE"
    assert seen[0].url.path == f"{API}/{path}"
    assert (seen[0].url.params.get("force") == "true") is forced


def test_remote_translates_listing(make_uc_client: ClientBuilder) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"tables": [_table("orders")]})

    remote = UnityCatalogRemote(make_uc_client(handler))

    entities = remote.list_entities(EntityKind.TABLE, "main.sales")

    assert isinstance(remote, RemoteCatalog)
    assert remote.endpoint == "http://uc.test"
    assert entities[0].full_name == "main.sales.orders"
    assert entities[0].external_id == "tid-orders"
    assert entities[0].columns == (
        ColumnInfo(name="id", type_name="LONG", type_text="bigint", position=0),
    )
    assert seen[0].url.params["schema_name"] == "sales"


def test_remote_rejects_leaf_listing_without_schema(make_uc_client: ClientBuilder) -> None:
    remote = UnityCatalogRemote(make_uc_client(lambda _request: httpx.Response(200, json={})))

    with pytest.raises(ValueError, match="schema"):
        remote.list_entities(EntityKind.TABLE, None)


def test_remote_create_round_trip(make_uc_client: ClientBuilder) -> None:
    bodies: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        bodies.append(body)
        return httpx.Response(
            200,
            json={**body, "schema_id": "sid-1", "full_name": "main.sales", "created_at": 1},
        )

    remote = UnityCatalogRemote(make_uc_client(handler))

    created = remote.create_entity(
        ExternalEntity(kind=EntityKind.SCHEMA, full_name="main.sales", comment="Sales")
    )

    assert bodies == [
        {"name": "sales", "catalog_name": "main", "comment": "Sales", "properties": {}}
    ]
    assert created.external_id == "sid-1"
    assert created.comment == "Sales"


def test_remote_reports_updatable_fields(make_uc_client: ClientBuilder) -> None:
    remote = UnityCatalogRemote(make_uc_client(lambda _request: httpx.Response(200, json={})))

    assert "columns" in remote.updatable_fields(EntityKind.TABLE)
    assert remote.updatable_fields(EntityKind.VOLUME) == frozenset({"comment", "owner"})
    assert remote.updatable_fields(EntityKind.FUNCTION) == frozenset({"owner"})
