"""Read-only snapshots of entities held by the third-party catalog."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from catalogsync.domain.model.enums import EntityKind


@dataclass(frozen=True, slots=True, kw_only=True)
class ColumnInfo:
    """Column of a table or parameter of a function."""

    name: str
    type_name: str | None = None
    type_text: str | None = None
    position: int | None = None
    nullable: bool | None = None
    comment: str | None = None
    parameter_mode: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ExternalEntity:
    """Snapshot of one catalog entity; only valid for the cycle that read it."""

    kind: EntityKind
    full_name: str
    external_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    comment: str | None = None
    owner: str | None = None
    storage_location: str | None = None
    data_format: str | None = None
    entity_type: str | None = None
    properties: Mapping[str, str] = field(default_factory=dict["str", "str"])
    columns: tuple[ColumnInfo, ...] = ()
    # Kind-specific scalars (routine body, return type, ...)
    details: Mapping[str, str] = field(default_factory=dict["str", "str"])

    @property
    def name(self) -> str:
        return self.full_name.rsplit(".", 1)[-1]

    @property
    def parent_name(self) -> str | None:
        parent, sep, _ = self.full_name.rpartition(".")
        return parent if sep else None

    @property
    def last_changed_at(self) -> datetime | None:
        return self.updated_at or self.created_at
