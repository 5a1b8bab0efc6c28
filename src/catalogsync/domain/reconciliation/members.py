"""Lazy, cursor-paginated iteration over the members of a graph element."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator
    from uuid import UUID

    from catalogsync.domain.metadata_graph import MetadataGraph
    from catalogsync.domain.model import CorrelationRecord, ElementType, MetadataElement

log = getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


@dataclass(frozen=True, slots=True)
class MemberElement:
    """An element together with its correlation state for one source."""

    element: MetadataElement
    correlation: CorrelationRecord | None

    @property
    def correlated(self) -> bool:
        return self.correlation is not None


class MemberIterator:
    """Restartable sequence of the children of ``parent_id`` with a given type.

    Each call to ``__iter__`` starts from the beginning. Pages are keyed on the
    last qualified name seen, so removing members while iterating does not
    skip any of the remaining ones.
    """

    def __init__(
        self,
        graph: MetadataGraph,
        *,
        parent_id: UUID | None,
        element_type: ElementType,
        source: str,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self._graph = graph
        self._parent_id = parent_id
        self._element_type = element_type
        self._source = source
        self._page_size = page_size

    def __iter__(self) -> Iterator[MemberElement]:
        cursor: str | None = None
        while True:
            page = self._graph.page_members(
                self._parent_id,
                self._element_type,
                after=cursor,
                limit=self._page_size,
            )
            if not page:
                return
            for element in page:
                yield self._member(element)

            last = page[-1].qualified_name
            if cursor is not None and last <= cursor:
                log.warning(
                    f"Member paging under {self._parent_id} did not advance past "
                    f"{cursor!r}; stopping"
                )
                return
            if len(page) < self._page_size:
                return
            cursor = last

    def by_qualified_name(self, qualified_name: str) -> MemberElement | None:
        """Point lookup restricted to this iterator's parent and type."""

        element = self._graph.find_by_qualified_name(qualified_name)
        if element is None:
            return None
        if element.parent_id != self._parent_id or element.element_type != self._element_type:
            return None
        return self._member(element)

    def _member(self, element: MetadataElement) -> MemberElement:
        return MemberElement(element, element.correlation_for(self._source))
