"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select

from catalogsync.adapters.sqlalchemy.mappings import element_table
from catalogsync.domain.model import MetadataElement

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.orm import Session

    from catalogsync.domain.model import ElementType


class SqlAlchemyElementRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: MetadataElement) -> None:
        self.session.add(entity)

    def get(self, element_id: uuid.UUID) -> MetadataElement | None:
        return self.session.get(MetadataElement, element_id)

    def get_by_qualified_name(self, qualified_name: str) -> MetadataElement | None:
        stmt = select(MetadataElement).where(element_table.c.qualified_name == qualified_name)
        return self.session.execute(stmt).scalar_one_or_none()

    def list_children(
        self,
        parent_id: uuid.UUID | None,
        element_type: ElementType | None = None,
        *,
        after: str | None = None,
        limit: int | None = None,
    ) -> list[MetadataElement]:
        if parent_id is None:
            stmt = select(MetadataElement).where(element_table.c.parent_id.is_(None))
        else:
            stmt = select(MetadataElement).where(element_table.c.parent_id == parent_id)
        if element_type is not None:
            stmt = stmt.where(element_table.c.element_type == element_type)
        if after is not None:
            stmt = stmt.where(element_table.c.qualified_name > after)
        stmt = stmt.order_by(element_table.c.qualified_name)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars())

    def remove(self, element: MetadataElement) -> None:
        # Flushed one at a time so children go before their parent.
        self.session.delete(element)
        self.session.flush()
