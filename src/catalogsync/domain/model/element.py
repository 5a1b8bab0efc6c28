"""Elements of the internal metadata graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from catalogsync.domain.model.correlation import CorrelatedMixin

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from catalogsync.domain.model.enums import ElementType


type PropertyValue = str | int | float | bool | None | list[object] | dict[str, object]


@dataclass(eq=False, kw_only=True)
class MetadataElement(CorrelatedMixin):
    """A typed node in the metadata graph, anchored to an optional parent."""

    element_type: ElementType
    qualified_name: str
    display_name: str | None = None
    description: str | None = None
    properties: dict[str, PropertyValue] = field(default_factory=dict["str", "PropertyValue"])
    parent_id: UUID | None = None

    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str | None = None
    updated_by: str | None = None

    @property
    def last_changed_at(self) -> datetime | None:
        return self.updated_at or self.created_at

    def property_str(self, name: str) -> str | None:
        value = self.properties.get(name)
        if value is None:
            return None
        return str(value)

    def merge_properties(self, incoming: dict[str, PropertyValue]) -> bool:
        """Merge ``incoming`` without dropping keys it does not mention.

        Returns whether anything changed. A fresh dict is assigned so that
        persistence layers tracking the attribute see the change.
        """

        merged = dict(self.properties)
        merged.update(incoming)
        if merged == self.properties:
            return False
        self.properties = merged
        return True
