"""Application service over the internal metadata graph.

Every public call runs in its own unit of work and commits before returning;
there is no transaction spanning two calls. Listeners receive a
``ChangeEvent`` after each committed write.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.domain.model import (
    ChangeEvent,
    ChangeEventType,
    CorrelationRecord,
    ElementType,
    MetadataElement,
    SyncDirection,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping
    from uuid import UUID

    from catalogsync.domain.model import PropertyValue
    from catalogsync.domain.ports import MetadataUnitOfWork

type UnitOfWorkFactory = Callable[[], MetadataUnitOfWork]
type Clock = Callable[[], datetime]
type ChangeListener = Callable[[ChangeEvent], None]

log = getLogger(__name__)

_PLACEHOLDER = re.compile(r"~\{([^}]+)\}~")

# Elements describing the structure of the table or function above them.
_NESTED_TYPES = frozenset({ElementType.SCHEMA_TYPE, ElementType.SCHEMA_ATTRIBUTE})


class ElementNotFoundError(LookupError):
    """Raised when a referenced element does not exist."""


class DuplicateQualifiedNameError(ValueError):
    """Raised when creating an element whose qualified name is already taken."""


def utc_now() -> datetime:
    return datetime.now(UTC)


def substitute_placeholders(value: PropertyValue, placeholders: Mapping[str, str]) -> PropertyValue:
    """Replace ``~{name}~`` markers in string values (recursing into containers).

    Unknown placeholders are left untouched.
    """

    if isinstance(value, str):
        return _PLACEHOLDER.sub(lambda match: placeholders.get(match[1], match[0]), value)
    if isinstance(value, list):
        return [substitute_placeholders(item, placeholders) for item in value]  # type: ignore[arg-type]
    if isinstance(value, dict):
        return {
            key: substitute_placeholders(item, placeholders)  # type: ignore[arg-type]
            for key, item in value.items()
        }
    return value


class MetadataGraph:
    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        clock: Clock = utc_now,
        listeners: Iterable[ChangeListener] = (),
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._clock = clock
        self._listeners: list[ChangeListener] = list(listeners)

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def now(self) -> datetime:
        return self._clock()

    # ------------------------------------------------------------------ reads

    def get_element(self, element_id: UUID) -> MetadataElement | None:
        with self._uow_factory() as uow:
            return uow.repositories.elements.get(element_id)

    def find_by_qualified_name(self, qualified_name: str) -> MetadataElement | None:
        with self._uow_factory() as uow:
            return uow.repositories.elements.get_by_qualified_name(qualified_name)

    def page_members(
        self,
        parent_id: UUID | None,
        element_type: ElementType | None = None,
        *,
        after: str | None = None,
        limit: int | None = 100,
    ) -> list[MetadataElement]:
        """One page of children, ordered by qualified name, strictly after ``after``."""

        with self._uow_factory() as uow:
            return uow.repositories.elements.list_children(
                parent_id, element_type, after=after, limit=limit
            )

    # ----------------------------------------------------------------- writes

    def create_element(
        self,
        *,
        user_id: str,
        element_type: ElementType,
        qualified_name: str,
        display_name: str | None = None,
        description: str | None = None,
        properties: Mapping[str, PropertyValue] | None = None,
        parent_id: UUID | None = None,
    ) -> MetadataElement:
        now = self._clock()
        element = MetadataElement(
            element_type=element_type,
            qualified_name=qualified_name,
            display_name=display_name,
            description=description,
            properties=dict(properties or {}),
            parent_id=parent_id,
            created_at=now,
            created_by=user_id,
        )
        with self._uow_factory() as uow:
            repository = uow.repositories.elements
            if repository.get_by_qualified_name(qualified_name) is not None:
                raise DuplicateQualifiedNameError(qualified_name)
            if parent_id is not None and repository.get(parent_id) is None:
                raise ElementNotFoundError(f"Parent element {parent_id} not found")
            repository.add(element)
            self._touch_owner(uow, element, now, user_id)
            uow.commit()
        self._notify(ChangeEventType.CREATED, element, now, user_id)
        return element

    def create_from_template(
        self,
        *,
        user_id: str,
        template_qualified_name: str,
        qualified_name: str,
        placeholders: Mapping[str, str] | None = None,
        element_type: ElementType | None = None,
        display_name: str | None = None,
        description: str | None = None,
        properties: Mapping[str, PropertyValue] | None = None,
        parent_id: UUID | None = None,
    ) -> MetadataElement:
        """Create an element by copying a template's property bag (and type, unless given).

        Placeholders in the template's string properties are substituted first,
        then ``properties`` is overlaid on top.
        """

        template = self.find_by_qualified_name(template_qualified_name)
        if template is None:
            raise ElementNotFoundError(f"Template {template_qualified_name!r} not found")

        bindings = dict(placeholders or {})
        merged: dict[str, PropertyValue] = {
            key: substitute_placeholders(value, bindings)
            for key, value in template.properties.items()
        }
        merged.update(properties or {})
        return self.create_element(
            user_id=user_id,
            element_type=element_type or template.element_type,
            qualified_name=qualified_name,
            display_name=display_name or template.display_name,
            description=description if description is not None else template.description,
            properties=merged,
            parent_id=parent_id,
        )

    def update_element(
        self,
        element_id: UUID,
        *,
        user_id: str,
        display_name: str | None = None,
        description: str | None = None,
        properties: Mapping[str, PropertyValue] | None = None,
        merge: bool = True,
    ) -> MetadataElement:
        """Update scalar fields and the property bag.

        With ``merge`` the incoming properties are merged key by key; otherwise
        they replace the bag. ``None`` scalars leave the stored value alone.
        """

        now = self._clock()
        with self._uow_factory() as uow:
            element = self._require(uow, element_id)
            if display_name is not None:
                element.display_name = display_name
            if description is not None:
                element.description = description
            if properties is not None:
                if merge:
                    element.merge_properties(dict(properties))
                else:
                    element.properties = dict(properties)
            element.updated_at = now
            element.updated_by = user_id
            self._touch_owner(uow, element, now, user_id)
            uow.commit()
        self._notify(ChangeEventType.UPDATED, element, now, user_id)
        return element

    def delete_element(self, element_id: UUID, *, user_id: str) -> None:
        """Delete an element together with every element anchored beneath it."""

        now = self._clock()
        with self._uow_factory() as uow:
            repository = uow.repositories.elements
            element = self._require(uow, element_id)
            removed = self._collect_subtree(uow, element)
            self._touch_owner(uow, element, now, user_id)
            for node in reversed(removed):
                repository.remove(node)
            uow.commit()
        log.debug(f"Deleted {element.qualified_name} ({len(removed)} element(s))")
        self._notify(ChangeEventType.DELETED, element, now, user_id)

    # ---------------------------------------------------- correlation records

    def add_external_identifier(
        self,
        element_id: UUID,
        *,
        user_id: str,
        external_id: str,
        source: str,
        direction: SyncDirection = SyncDirection.FROM_THIRD_PARTY,
        external_update_time: datetime | None = None,
    ) -> CorrelationRecord:
        """Link an element to an external identifier (upsert per source)."""

        now = self._clock()
        with self._uow_factory() as uow:
            element = self._require(uow, element_id)
            record = element.add_correlation(
                external_id=external_id,
                source=source,
                direction=direction,
                external_update_time=external_update_time,
                synchronized_at=now,
            )
            uow.commit()
        log.debug(f"Linked {element.qualified_name} to {external_id} at {source}")
        return record

    def update_external_identifier(
        self,
        element_id: UUID,
        *,
        user_id: str,
        source: str,
        external_id: str,
    ) -> CorrelationRecord:
        with self._uow_factory() as uow:
            element = self._require(uow, element_id)
            record = element.relink_correlation(source=source, external_id=external_id)
            uow.commit()
        log.info(f"{user_id} relinked {element.qualified_name} to {external_id} at {source}")
        return record

    def confirm_synchronization(
        self,
        element_id: UUID,
        *,
        user_id: str,
        source: str,
        external_update_time: datetime | None = None,
    ) -> CorrelationRecord:
        """Record that the element and its counterpart agree as of now."""

        now = self._clock()
        with self._uow_factory() as uow:
            element = self._require(uow, element_id)
            record = element.confirm_correlation(
                source=source,
                external_update_time=external_update_time,
                synchronized_at=now,
            )
            uow.commit()
        return record

    # -------------------------------------------------------------- internals

    @staticmethod
    def _require(uow: MetadataUnitOfWork, element_id: UUID) -> MetadataElement:
        element = uow.repositories.elements.get(element_id)
        if element is None:
            raise ElementNotFoundError(f"Element {element_id} not found")
        return element

    @staticmethod
    def _touch_owner(
        uow: MetadataUnitOfWork, element: MetadataElement, now: datetime, user_id: str
    ) -> None:
        """Mark the table or function owning a nested ``element`` as updated."""

        if element.element_type not in _NESTED_TYPES:
            return
        owner = element
        while owner.element_type in _NESTED_TYPES:
            if owner.parent_id is None:
                return
            parent = uow.repositories.elements.get(owner.parent_id)
            if parent is None:
                return
            owner = parent
        owner.updated_at = now
        owner.updated_by = user_id

    @staticmethod
    def _collect_subtree(
        uow: MetadataUnitOfWork, root: MetadataElement
    ) -> list[MetadataElement]:
        collected = [root]
        frontier = [root]
        while frontier:
            node = frontier.pop()
            children = uow.repositories.elements.list_children(node.id)
            collected.extend(children)
            frontier.extend(children)
        return collected

    def _notify(
        self,
        event_type: ChangeEventType,
        element: MetadataElement,
        when: datetime,
        user_id: str,
    ) -> None:
        event = ChangeEvent(
            event_type=event_type,
            element_id=element.id,
            element_type=element.element_type,
            qualified_name=element.qualified_name,
            update_time=when,
            updated_by=user_id,
        )
        for listener in self._listeners:
            listener(event)
