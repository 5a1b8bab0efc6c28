from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from catalogsync.domain.model.enums import ChangeEventType, ElementType


@dataclass(frozen=True, slots=True, kw_only=True)
class ChangeEvent:
    """Notification that an element of the metadata graph changed."""

    event_type: ChangeEventType
    element_id: UUID
    element_type: ElementType
    qualified_name: str
    update_time: datetime | None
    updated_by: str | None
