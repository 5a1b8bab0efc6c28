"""Kind-specific behaviour plugged into the generic synchronizer.

Each entity kind contributes how to read its remote snapshots, how a snapshot
maps onto an element's property bag, which nested elements it owns, and how to
rebuild a remote entity from an element.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from catalogsync.domain.model import ColumnInfo, ElementType, EntityKind, ExternalEntity

from .fetch import fetch
from .naming import column_qualified_name, root_schema_qualified_name

if TYPE_CHECKING:
    from collections.abc import Mapping

    from catalogsync.domain.metadata_graph import MetadataGraph
    from catalogsync.domain.model import MetadataElement, PropertyValue
    from catalogsync.domain.ports import RemoteCatalog

    from .fetch import FetchResult

log = getLogger(__name__)

# Property keys on graph elements.
FULL_NAME = "fullName"
NAME = "name"
OWNER = "owner"
STORAGE_LOCATION = "storageLocation"
DATA_FORMAT = "dataFormat"
ENTITY_TYPE = "entityType"
ADDITIONAL = "additionalProperties"
DETAILS = "details"
POSITION = "position"
TYPE_NAME = "typeName"
TYPE_TEXT = "typeText"
NULLABLE = "nullable"
PARAMETER_MODE = "parameterMode"


class KindCapability(Protocol):
    @property
    def kind(self) -> EntityKind: ...

    def fetch_remote(self, remote: RemoteCatalog, full_name: str) -> FetchResult: ...

    def fetch_remote_list(
        self, remote: RemoteCatalog, parent_name: str | None
    ) -> list[ExternalEntity]: ...

    def to_properties(self, entity: ExternalEntity) -> dict[str, PropertyValue]: ...

    def apply_nested_structure(
        self,
        graph: MetadataGraph,
        element: MetadataElement,
        entity: ExternalEntity,
        *,
        user_id: str,
    ) -> None: ...

    @property
    def has_nested_structure(self) -> bool: ...

    def to_remote(
        self,
        graph: MetadataGraph,
        element: MetadataElement,
        full_name: str,
        *,
        include_nested: bool = True,
    ) -> ExternalEntity: ...


@dataclass(frozen=True, slots=True)
class ContainerCapability:
    """Kinds whose elements carry only a property bag (no nested structure)."""

    kind: EntityKind

    @property
    def has_nested_structure(self) -> bool:
        return False

    def fetch_remote(self, remote: RemoteCatalog, full_name: str) -> FetchResult:
        return fetch(full_name, lambda name: remote.get_entity(self.kind, name))

    def fetch_remote_list(
        self, remote: RemoteCatalog, parent_name: str | None
    ) -> list[ExternalEntity]:
        return remote.list_entities(self.kind, parent_name)

    def to_properties(self, entity: ExternalEntity) -> dict[str, PropertyValue]:
        return _base_properties(entity)

    def apply_nested_structure(
        self,
        graph: MetadataGraph,
        element: MetadataElement,
        entity: ExternalEntity,
        *,
        user_id: str,
    ) -> None:
        return None

    def to_remote(
        self,
        graph: MetadataGraph,
        element: MetadataElement,
        full_name: str,
        *,
        include_nested: bool = True,  # noqa: ARG002
    ) -> ExternalEntity:
        return _base_remote(self.kind, element, full_name)


@dataclass(frozen=True, slots=True)
class ColumnarCapability(ContainerCapability):
    """Kinds owning a root schema type with one attribute per column or parameter.

    Tables map their columns; functions map their input parameters and keep the
    return type on the root schema type.
    """

    @property
    def has_nested_structure(self) -> bool:
        return True

    def apply_nested_structure(
        self,
        graph: MetadataGraph,
        element: MetadataElement,
        entity: ExternalEntity,
        *,
        user_id: str,
    ) -> None:
        root = self._ensure_root_schema_type(graph, element, entity, user_id=user_id)
        existing = {
            attribute.qualified_name: attribute
            for attribute in graph.page_members(root.id, ElementType.SCHEMA_ATTRIBUTE, limit=None)
        }
        wanted: set[str] = set()
        for column in entity.columns:
            attribute_name = column_qualified_name(element.qualified_name, column.name)
            wanted.add(attribute_name)
            properties = _column_properties(column)
            current = existing.get(attribute_name)
            if current is None:
                graph.create_element(
                    user_id=user_id,
                    element_type=ElementType.SCHEMA_ATTRIBUTE,
                    qualified_name=attribute_name,
                    display_name=column.name,
                    description=column.comment,
                    properties=properties,
                    parent_id=root.id,
                )
            elif current.properties != properties or current.description != column.comment:
                graph.update_element(
                    current.id,
                    user_id=user_id,
                    description=column.comment,
                    properties=properties,
                    merge=False,
                )

        for stale_name, stale in existing.items():
            if stale_name not in wanted:
                log.debug(f"Removing attribute {stale_name} no longer present remotely")
                graph.delete_element(stale.id, user_id=user_id)

    def to_remote(
        self,
        graph: MetadataGraph,
        element: MetadataElement,
        full_name: str,
        *,
        include_nested: bool = True,
    ) -> ExternalEntity:
        base = _base_remote(self.kind, element, full_name)
        if not include_nested:
            return base
        root = graph.find_by_qualified_name(root_schema_qualified_name(element.qualified_name))
        if root is None:
            return base
        attributes = graph.page_members(root.id, ElementType.SCHEMA_ATTRIBUTE, limit=None)
        columns = tuple(
            sorted(
                (_column_from(attribute) for attribute in attributes),
                key=lambda column: (column.position is None, column.position or 0, column.name),
            )
        )
        return replace(base, columns=columns)

    def _ensure_root_schema_type(
        self,
        graph: MetadataGraph,
        element: MetadataElement,
        entity: ExternalEntity,
        *,
        user_id: str,
    ) -> MetadataElement:
        root_name = root_schema_qualified_name(element.qualified_name)
        display_name = f"{entity.name} root schema type"
        properties: dict[str, PropertyValue] = {NAME: display_name}
        if self.kind is EntityKind.FUNCTION:
            properties["returnType"] = entity.details.get("full_data_type") or entity.details.get(
                "data_type"
            )
        root = graph.find_by_qualified_name(root_name)
        if root is None:
            return graph.create_element(
                user_id=user_id,
                element_type=ElementType.SCHEMA_TYPE,
                qualified_name=root_name,
                display_name=display_name,
                properties=properties,
                parent_id=element.id,
            )
        if any(root.properties.get(key) != value for key, value in properties.items()):
            root = graph.update_element(root.id, user_id=user_id, properties=properties)
        return root


def default_capabilities() -> dict[EntityKind, KindCapability]:
    return {
        EntityKind.CATALOG: ContainerCapability(EntityKind.CATALOG),
        EntityKind.SCHEMA: ContainerCapability(EntityKind.SCHEMA),
        EntityKind.TABLE: ColumnarCapability(EntityKind.TABLE),
        EntityKind.VOLUME: ContainerCapability(EntityKind.VOLUME),
        EntityKind.FUNCTION: ColumnarCapability(EntityKind.FUNCTION),
        EntityKind.MODEL: ContainerCapability(EntityKind.MODEL),
    }


def _base_properties(entity: ExternalEntity) -> dict[str, PropertyValue]:
    properties: dict[str, PropertyValue] = {
        NAME: entity.name,
        FULL_NAME: entity.full_name,
    }
    optional: dict[str, str | None] = {
        OWNER: entity.owner,
        STORAGE_LOCATION: entity.storage_location,
        DATA_FORMAT: entity.data_format,
        ENTITY_TYPE: entity.entity_type,
    }
    properties.update({key: value for key, value in optional.items() if value is not None})
    if entity.properties:
        properties[ADDITIONAL] = dict(entity.properties)
    if entity.details:
        properties[DETAILS] = dict(entity.details)
    return properties


def _base_remote(kind: EntityKind, element: MetadataElement, full_name: str) -> ExternalEntity:
    return ExternalEntity(
        kind=kind,
        full_name=full_name,
        comment=element.description,
        owner=element.property_str(OWNER),
        storage_location=element.property_str(STORAGE_LOCATION),
        data_format=element.property_str(DATA_FORMAT),
        entity_type=element.property_str(ENTITY_TYPE),
        properties=_string_mapping(element.properties.get(ADDITIONAL)),
        details=_string_mapping(element.properties.get(DETAILS)),
    )


def _column_properties(column: ColumnInfo) -> dict[str, PropertyValue]:
    properties: dict[str, PropertyValue] = {NAME: column.name}
    optional: dict[str, PropertyValue] = {
        POSITION: column.position,
        TYPE_NAME: column.type_name,
        TYPE_TEXT: column.type_text,
        NULLABLE: column.nullable,
        PARAMETER_MODE: column.parameter_mode,
    }
    properties.update({key: value for key, value in optional.items() if value is not None})
    return properties


def _column_from(attribute: MetadataElement) -> ColumnInfo:
    position = attribute.properties.get(POSITION)
    nullable = attribute.properties.get(NULLABLE)
    return ColumnInfo(
        name=attribute.property_str(NAME) or attribute.display_name or attribute.qualified_name,
        type_name=attribute.property_str(TYPE_NAME),
        type_text=attribute.property_str(TYPE_TEXT),
        position=position if isinstance(position, int) else None,
        nullable=nullable if isinstance(nullable, bool) else None,
        comment=attribute.description,
        parameter_mode=attribute.property_str(PARAMETER_MODE),
    )


def _string_mapping(value: PropertyValue) -> Mapping[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(key): str(item) for key, item in value.items() if item is not None}


__all__ = [
    "ColumnarCapability",
    "ContainerCapability",
    "KindCapability",
    "default_capabilities",
]
