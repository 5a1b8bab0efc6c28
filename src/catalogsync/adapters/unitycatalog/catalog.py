"""Unity Catalog implementation of the remote catalog port."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.domain.model import EntityKind

from .translator import (
    UPDATABLE_FIELDS,
    create_request,
    split_full_name,
    translate_entity,
    update_request,
)

if TYPE_CHECKING:
    from catalogsync.domain.model import ExternalEntity

    from .client import UnityCatalogClient

log = getLogger(__name__)


class UnityCatalogRemote:
    """Adapts ``UnityCatalogClient`` payloads to domain snapshots."""

    def __init__(self, client: UnityCatalogClient) -> None:
        self._client = client

    @property
    def endpoint(self) -> str:
        return self._client.endpoint

    def list_entities(self, kind: EntityKind, parent_name: str | None) -> list[ExternalEntity]:
        if kind is EntityKind.CATALOG:
            payloads = self._client.fetch_list(kind)
        elif kind is EntityKind.SCHEMA:
            if parent_name is None:
                raise ValueError("Schemas are listed under a catalog")
            payloads = self._client.fetch_list(kind, catalog_name=parent_name)
        else:
            if parent_name is None:
                raise ValueError(f"{kind} entities are listed under a schema")
            catalog_name, schema_name = split_full_name(parent_name, EntityKind.SCHEMA)
            payloads = self._client.fetch_list(
                kind, catalog_name=catalog_name, schema_name=schema_name
            )
        return [translate_entity(kind, payload) for payload in payloads]

    def get_entity(self, kind: EntityKind, full_name: str) -> ExternalEntity:
        return translate_entity(kind, self._client.fetch(kind, full_name))

    def create_entity(self, entity: ExternalEntity) -> ExternalEntity:
        payload = self._client.create(entity.kind, create_request(entity))
        log.debug(f"Created {entity.kind} {entity.full_name}")
        return translate_entity(entity.kind, payload)

    def updatable_fields(self, kind: EntityKind) -> frozenset[str]:
        return UPDATABLE_FIELDS[kind]

    def update_entity(self, entity: ExternalEntity) -> ExternalEntity:
        payload = self._client.update(entity.kind, entity.full_name, update_request(entity))
        return translate_entity(entity.kind, payload)

    def delete_entity(self, kind: EntityKind, full_name: str) -> None:
        self._client.delete(kind, full_name)
