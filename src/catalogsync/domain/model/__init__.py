"""Public domain model surface."""

from __future__ import annotations

from catalogsync.domain.model.correlation import (
    Correlated,
    CorrelationConflictError,
    CorrelationRecord,
)
from catalogsync.domain.model.element import MetadataElement, PropertyValue
from catalogsync.domain.model.entity import Entity
from catalogsync.domain.model.enums import (
    SYNC_ORDER,
    ChangeEventType,
    ElementType,
    EntityKind,
    SyncDirection,
)
from catalogsync.domain.model.events import ChangeEvent
from catalogsync.domain.model.remote import ColumnInfo, ExternalEntity

__all__ = [  # noqa: RUF022
    # base
    "Entity",
    # correlation
    "Correlated",
    "CorrelationConflictError",
    "CorrelationRecord",
    # graph
    "MetadataElement",
    "PropertyValue",
    # third party
    "ColumnInfo",
    "ExternalEntity",
    # events
    "ChangeEvent",
    # enums
    "ChangeEventType",
    "ElementType",
    "EntityKind",
    "SYNC_ORDER",
    "SyncDirection",
]
