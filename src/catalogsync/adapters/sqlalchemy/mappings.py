"""SQLAlchemy mapping metadata for the metadata graph."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    String,
    Table,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers, relationship

from catalogsync.domain.model import (
    CorrelationRecord,
    ElementType,
    MetadataElement,
    SyncDirection,
)

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

element_table = Table(
    "metadata_element",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("element_type", Enum(ElementType, native_enum=False), nullable=False),
    Column("qualified_name", String, nullable=False, unique=True),
    Column("display_name", String, nullable=True),
    Column("description", String, nullable=True),
    Column("properties", JSON, nullable=False, default=dict),
    Column(
        "parent_id",
        UUIDColumnType,
        ForeignKey("metadata_element.id", ondelete="CASCADE"),
        nullable=True,
    ),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=True),
    Column("created_by", String, nullable=True),
    Column("updated_by", String, nullable=True),
    Index("ix_metadata_element_members", "parent_id", "element_type", "qualified_name"),
)

correlation_table = Table(
    "correlation_record",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "owner_id",
        UUIDColumnType,
        ForeignKey("metadata_element.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("source", String, nullable=False),
    Column("external_id", String, nullable=False),
    Column("direction", Enum(SyncDirection, native_enum=False), nullable=False),
    Column("last_known_external_update", UTCDateTime(), nullable=True),
    Column("synchronized_at", UTCDateTime(), nullable=True),
    UniqueConstraint("owner_id", "source", name="uq_correlation_record_owner_source"),
    Index("ix_correlation_record_external", "source", "external_id"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(
        MetadataElement,
        element_table,
        properties={
            "_correlations": relationship(
                CorrelationRecord,
                cascade="all, delete-orphan",
                lazy="selectin",
                order_by=correlation_table.c.source,
            ),
        },
    )

    mapper_registry.map_imperatively(
        CorrelationRecord,
        correlation_table,
    )

    configure_mappers()
    return mapper_registry
