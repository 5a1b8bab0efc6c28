"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityKind(StrEnum):
    """Kinds of catalog entity mirrored between the two systems."""

    CATALOG = "catalog"
    SCHEMA = "schema"
    TABLE = "table"
    VOLUME = "volume"
    FUNCTION = "function"
    MODEL = "model"

    @property
    def parent(self) -> EntityKind | None:
        return _PARENT_KIND[self]

    @property
    def label(self) -> str:
        """Label used as the first segment of derived qualified names."""
        return _KIND_LABELS[self]

    @property
    def element_type(self) -> ElementType:
        return ElementType(self.value)


_PARENT_KIND: dict[EntityKind, EntityKind | None] = {
    EntityKind.CATALOG: None,
    EntityKind.SCHEMA: EntityKind.CATALOG,
    EntityKind.TABLE: EntityKind.SCHEMA,
    EntityKind.VOLUME: EntityKind.SCHEMA,
    EntityKind.FUNCTION: EntityKind.SCHEMA,
    EntityKind.MODEL: EntityKind.SCHEMA,
}

_KIND_LABELS: dict[EntityKind, str] = {
    EntityKind.CATALOG: "Unity Catalog Catalog",
    EntityKind.SCHEMA: "Unity Catalog Schema",
    EntityKind.TABLE: "Unity Catalog Table",
    EntityKind.VOLUME: "Unity Catalog Volume",
    EntityKind.FUNCTION: "Unity Catalog Function",
    EntityKind.MODEL: "Unity Catalog Registered Model",
}

# Dependency order used by the orchestrator: parents before children.
SYNC_ORDER: tuple[EntityKind, ...] = (
    EntityKind.CATALOG,
    EntityKind.SCHEMA,
    EntityKind.TABLE,
    EntityKind.VOLUME,
    EntityKind.FUNCTION,
    EntityKind.MODEL,
)


class ElementType(StrEnum):
    """Type discriminator for elements stored in the metadata graph."""

    SOFTWARE_SERVER = "software_server"
    CATALOG = "catalog"
    SCHEMA = "schema"
    TABLE = "table"
    VOLUME = "volume"
    FUNCTION = "function"
    MODEL = "model"

    # Nested structure owned by tables and functions
    SCHEMA_TYPE = "schema_type"
    SCHEMA_ATTRIBUTE = "schema_attribute"


class SyncDirection(StrEnum):
    """Which way changes may flow between the metadata graph and the third party."""

    BOTH_DIRECTIONS = "both_directions"
    FROM_THIRD_PARTY = "from_third_party"
    TO_THIRD_PARTY = "to_third_party"
    OTHER_PARTY_AUTHORITATIVE = "other_party_authoritative"

    @property
    def permits_pull(self) -> bool:
        return self is not SyncDirection.TO_THIRD_PARTY

    @property
    def permits_push(self) -> bool:
        return self in {SyncDirection.BOTH_DIRECTIONS, SyncDirection.TO_THIRD_PARTY}


class ChangeEventType(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
