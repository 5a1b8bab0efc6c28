"""Ports for persisting metadata graph elements."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from uuid import UUID

    from catalogsync.domain.model import ElementType, MetadataElement


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class ElementRepository(Repository["MetadataElement"], Protocol):
    """Persistence contract for metadata graph elements."""

    def get(self, element_id: UUID) -> MetadataElement | None: ...

    def get_by_qualified_name(self, qualified_name: str) -> MetadataElement | None: ...

    def list_children(
        self,
        parent_id: UUID | None,
        element_type: ElementType | None = None,
        *,
        after: str | None = None,
        limit: int | None = None,
    ) -> list[MetadataElement]:
        """Children of ``parent_id`` ordered by qualified name, strictly after ``after``."""
        ...

    def remove(self, element: MetadataElement) -> None: ...
