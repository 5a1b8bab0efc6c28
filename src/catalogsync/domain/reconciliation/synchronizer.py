"""Generic two-sweep reconciliation of one entity kind.

A cycle walks every parent scope of the kind (the server anchor for catalogs,
each catalog for schemas, each schema for the leaf kinds). Within a scope,
Sweep A starts from the elements already in the metadata graph and looks up
their remote counterparts; Sweep B lists the remote entities and handles those
Sweep A did not see. Errors are contained per entity.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING, assert_never

from catalogsync.domain.model import SyncDirection
from catalogsync.domain.ports import RemoteCatalogError

from .capabilities import FULL_NAME
from .context import CycleContext, CycleReport
from .correlation import no_mismatch
from .decision import SyncAction, decide
from .fetch import Absent, FetchFailed, Found
from .filters import NameFilter
from .members import DEFAULT_PAGE_SIZE, MemberElement, MemberIterator
from .naming import full_name_from, qualified_name

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping
    from datetime import datetime
    from uuid import UUID

    from catalogsync.domain.metadata_graph import MetadataGraph
    from catalogsync.domain.model import (
        CorrelationRecord,
        EntityKind,
        ExternalEntity,
        MetadataElement,
    )
    from catalogsync.domain.ports import RemoteCatalog

    from .capabilities import KindCapability

log = getLogger(__name__)

# Pushable ExternalEntity fields and their empty values.
_CLEARED: dict[str, object] = {
    "comment": None,
    "owner": None,
    "storage_location": None,
    "data_format": None,
    "entity_type": None,
    "properties": {},
    "details": {},
    "columns": (),
}


@dataclass(frozen=True, slots=True, kw_only=True)
class SyncSettings:
    """Per-endpoint settings shared by every kind synchronizer."""

    endpoint: str
    user_id: str
    direction: SyncDirection = SyncDirection.BOTH_DIRECTIONS
    name_filter: NameFilter = field(default_factory=NameFilter)
    templates: Mapping[EntityKind, str] = field(default_factory=dict["EntityKind", "str"])
    placeholders: Mapping[str, str] = field(default_factory=dict["str", "str"])
    page_size: int = DEFAULT_PAGE_SIZE
    allow_remote_delete: bool = False


@dataclass(frozen=True, slots=True)
class Scope:
    """A parent element and the remote full name its children are listed under."""

    parent_id: UUID
    full_name: str | None


@dataclass(slots=True)
class _Pair:
    full_name: str
    qualified_name: str
    scope: Scope
    member: MemberElement | None
    remote: ExternalEntity | None

    @property
    def element(self) -> MetadataElement:
        if self.member is None:
            raise RuntimeError(f"No local element for {self.qualified_name}")
        return self.member.element

    @property
    def correlation(self) -> CorrelationRecord | None:
        return None if self.member is None else self.member.correlation

    @property
    def entity(self) -> ExternalEntity:
        if self.remote is None:
            raise RuntimeError(f"No remote entity for {self.full_name}")
        return self.remote


class EntityKindSynchronizer:
    def __init__(
        self,
        capability: KindCapability,
        *,
        graph: MetadataGraph,
        remote: RemoteCatalog,
        settings: SyncSettings,
        server_id: UUID,
    ) -> None:
        self.capability = capability
        self.kind = capability.kind
        self._graph = graph
        self._remote = remote
        self._settings = settings
        self._server_id = server_id

    def cycle(self) -> CycleReport:
        """Run one reconciliation cycle over every scope of this kind."""

        context = CycleContext(self.kind)
        scopes = list(self._scopes(self.kind))
        log.debug(f"{self.kind} cycle over {len(scopes)} scope(s)")
        for scope in scopes:
            self._sweep_local(scope, context)
            self._sweep_remote(scope, context)

        report = context.report
        log.info(
            f"{self.kind} cycle done: decisions={dict(report.decisions)}, "
            f"mismatches={len(report.mismatches)}, failures={report.failures}"
        )
        return report

    # ----------------------------------------------------------------- sweeps

    def _sweep_local(self, scope: Scope, context: CycleContext) -> None:
        for member in self._iterate(scope, self.kind):
            element = member.element
            full_name = self._full_name_of(element, self.kind)
            if full_name is None:
                context.mark(element.qualified_name, element.id)
                log.warning(f"Cannot derive a catalog name for {element.qualified_name}; skipping")
                context.report.failures += 1
                continue
            # Sweep B looks remote entities up by the derived name.
            derived = qualified_name(self.kind, self._settings.endpoint, full_name)
            if context.seen(derived):
                log.warning(
                    f"{element.qualified_name} names {self.kind} {full_name}, already claimed "
                    f"by {context.element_id(derived)} in this cycle; skipping"
                )
                context.report.failures += 1
                continue
            context.mark(element.qualified_name, element.id)
            context.mark(derived, element.id)
            if not self._settings.name_filter.catalogues_path(full_name):
                context.report.filtered += 1
                continue

            try:
                result = self.capability.fetch_remote(self._remote, full_name)
                match result:
                    case Found(entity):
                        remote: ExternalEntity | None = entity
                    case Absent():
                        remote = None
                    case FetchFailed(error=error):
                        log.warning(f"Could not read {self.kind} {full_name}: {error}")
                        context.report.failures += 1
                        continue
                pair = _Pair(full_name, element.qualified_name, scope, member, remote)
                self._reconcile(pair, context)
            except Exception:  # noqa: BLE001
                log.exception(f"Failed to reconcile {element.qualified_name}")
                context.report.failures += 1

    def _sweep_remote(self, scope: Scope, context: CycleContext) -> None:
        try:
            entities = self.capability.fetch_remote_list(self._remote, scope.full_name)
        except RemoteCatalogError as exc:
            log.warning(f"Could not list {self.kind} entities under {scope.full_name}: {exc}")
            context.report.failures += 1
            return

        iterator = self._iterate(scope, self.kind)
        for entity in entities:
            name = qualified_name(self.kind, self._settings.endpoint, entity.full_name)
            if context.seen(name):
                continue
            context.mark(name)
            if not self._settings.name_filter.catalogues_path(entity.full_name):
                context.report.filtered += 1
                continue

            try:
                member = iterator.by_qualified_name(name)
                pair = _Pair(entity.full_name, name, scope, member, entity)
                self._reconcile(pair, context)
            except Exception:  # noqa: BLE001
                log.exception(f"Failed to reconcile remote {self.kind} {entity.full_name}")
                context.report.failures += 1

    # --------------------------------------------------------------- decision

    def _reconcile(self, pair: _Pair, context: CycleContext) -> None:
        member, remote = pair.member, pair.remote
        if (
            member is not None
            and remote is not None
            and not no_mismatch(
                remote.external_id,
                member.element,
                source=self._settings.endpoint,
                found=context.report.mismatches,
            )
        ):
            return

        local_created, local_updated = self._local_signals(member)
        remote_created, remote_updated = self._remote_signals(remote, pair.correlation)
        action = decide(
            local_exists=member is not None,
            remote_exists=remote is not None,
            direction=self._settings.direction,
            local_created=local_created,
            local_updated=local_updated,
            remote_created=remote_created,
            remote_updated=remote_updated,
            correlated=member is not None and member.correlated,
            allow_remote_delete=self._settings.allow_remote_delete,
        )
        context.record(action)

        if (
            pair.correlation is not None
            and (local_created or local_updated)
            and (remote_created or remote_updated)
        ):
            log.warning(
                f"{pair.qualified_name} changed on both sides since the last "
                f"synchronization; applying {action}"
            )
        if action is not SyncAction.NONE:
            log.debug(f"{pair.qualified_name}: {action}")
        self._dispatch(action, pair)

    def _local_signals(
        self, member: MemberElement | None
    ) -> tuple[datetime | None, datetime | None]:
        if member is None:
            return None, None
        element = member.element
        watermark = None if member.correlation is None else member.correlation.synchronized_at
        return _after(element.created_at, watermark), _after(element.updated_at, watermark)

    @staticmethod
    def _remote_signals(
        remote: ExternalEntity | None, correlation: CorrelationRecord | None
    ) -> tuple[datetime | None, datetime | None]:
        if remote is None:
            return None, None
        watermark = None if correlation is None else correlation.last_known_external_update
        return _after(remote.created_at, watermark), _after(remote.updated_at, watermark)

    # --------------------------------------------------------------- dispatch

    def _dispatch(self, action: SyncAction, pair: _Pair) -> None:
        match action:
            case SyncAction.NONE:
                return
            case SyncAction.CREATE_LOCAL:
                self._create_local(pair)
            case SyncAction.UPDATE_LOCAL:
                self._update_local(pair)
            case SyncAction.DELETE_LOCAL:
                self._delete_local(pair)
            case SyncAction.CREATE_REMOTE:
                self._create_remote(pair)
            case SyncAction.UPDATE_REMOTE:
                self._update_remote(pair)
            case SyncAction.DELETE_REMOTE:
                self._delete_remote(pair)
            case _:
                assert_never(action)

    def _create_local(self, pair: _Pair) -> None:
        entity = pair.entity
        settings = self._settings
        properties = self.capability.to_properties(entity)
        template = settings.templates.get(self.kind)
        if template is not None:
            element = self._graph.create_from_template(
                user_id=settings.user_id,
                template_qualified_name=template,
                qualified_name=pair.qualified_name,
                placeholders={**settings.placeholders, **self._entity_placeholders(entity)},
                element_type=self.kind.element_type,
                display_name=entity.name,
                description=entity.comment,
                properties=properties,
                parent_id=pair.scope.parent_id,
            )
        else:
            element = self._graph.create_element(
                user_id=settings.user_id,
                element_type=self.kind.element_type,
                qualified_name=pair.qualified_name,
                display_name=entity.name,
                description=entity.comment,
                properties=properties,
                parent_id=pair.scope.parent_id,
            )
        # Nested writes touch the element, so link it afterwards.
        self.capability.apply_nested_structure(
            self._graph, element, entity, user_id=settings.user_id
        )
        self._graph.add_external_identifier(
            element.id,
            user_id=settings.user_id,
            external_id=entity.external_id or entity.full_name,
            source=settings.endpoint,
            direction=SyncDirection.FROM_THIRD_PARTY,
            external_update_time=entity.last_changed_at,
        )
        log.info(f"Catalogued {self.kind} {entity.full_name} as {element.id}")

    def _update_local(self, pair: _Pair) -> None:
        element, entity = pair.element, pair.entity
        settings = self._settings
        self._graph.update_element(
            element.id,
            user_id=settings.user_id,
            description=entity.comment,
            properties=self.capability.to_properties(entity),
            merge=True,
        )
        self.capability.apply_nested_structure(
            self._graph, element, entity, user_id=settings.user_id
        )
        self._confirm(pair, entity, SyncDirection.FROM_THIRD_PARTY)
        log.info(f"Updated {element.qualified_name} from {entity.full_name}")

    def _delete_local(self, pair: _Pair) -> None:
        element = pair.element
        self._graph.delete_element(element.id, user_id=self._settings.user_id)
        log.info(f"Removed {element.qualified_name}; {pair.full_name} no longer exists")

    def _create_remote(self, pair: _Pair) -> None:
        element = pair.element
        payload = self.capability.to_remote(self._graph, element, pair.full_name)
        created = self._remote.create_entity(payload)
        self._graph.add_external_identifier(
            element.id,
            user_id=self._settings.user_id,
            external_id=created.external_id or created.full_name,
            source=self._settings.endpoint,
            direction=SyncDirection.TO_THIRD_PARTY,
            external_update_time=created.last_changed_at,
        )
        log.info(f"Published {element.qualified_name} as {self.kind} {created.full_name}")

    def _update_remote(self, pair: _Pair) -> None:
        element = pair.element
        accepted = self._remote.updatable_fields(self.kind)
        payload = self.capability.to_remote(
            self._graph, element, pair.full_name, include_nested="columns" in accepted
        )
        unsent = [name for name in _CLEARED if name not in accepted and getattr(payload, name)]
        if "columns" not in accepted and self.capability.has_nested_structure:
            unsent.append("columns")
        if unsent:
            log.info(
                f"Not pushing {', '.join(unsent)} of {self.kind} {pair.full_name}: "
                f"the remote does not update them"
            )
        payload = replace(
            payload, **{name: empty for name, empty in _CLEARED.items() if name not in accepted}
        )  # type: ignore[arg-type]
        updated = self._remote.update_entity(payload)
        self._confirm(pair, updated, SyncDirection.TO_THIRD_PARTY)
        log.info(f"Updated {self.kind} {pair.full_name} from {element.qualified_name}")

    def _delete_remote(self, pair: _Pair) -> None:
        self._remote.delete_entity(self.kind, pair.full_name)
        log.info(f"Deleted {self.kind} {pair.full_name}; it has no catalogued counterpart")

    def _confirm(self, pair: _Pair, entity: ExternalEntity, direction: SyncDirection) -> None:
        settings = self._settings
        if pair.correlation is None:
            self._graph.add_external_identifier(
                pair.element.id,
                user_id=settings.user_id,
                external_id=entity.external_id or entity.full_name,
                source=settings.endpoint,
                direction=direction,
                external_update_time=entity.last_changed_at,
            )
            return
        self._graph.confirm_synchronization(
            pair.element.id,
            user_id=settings.user_id,
            source=settings.endpoint,
            external_update_time=entity.last_changed_at,
        )

    # ---------------------------------------------------------------- helpers

    def _scopes(self, kind: EntityKind) -> Iterator[Scope]:
        parent_kind = kind.parent
        if parent_kind is None:
            yield Scope(self._server_id, None)
            return
        for outer in self._scopes(parent_kind):
            for member in self._iterate(outer, parent_kind):
                full_name = self._full_name_of(member.element, parent_kind)
                if full_name is None or not self._settings.name_filter.catalogues_path(full_name):
                    continue
                yield Scope(member.element.id, full_name)

    def _iterate(self, scope: Scope, kind: EntityKind) -> MemberIterator:
        return MemberIterator(
            self._graph,
            parent_id=scope.parent_id,
            element_type=kind.element_type,
            source=self._settings.endpoint,
            page_size=self._settings.page_size,
        )

    def _full_name_of(self, element: MetadataElement, kind: EntityKind) -> str | None:
        parsed = full_name_from(element.qualified_name, kind, self._settings.endpoint)
        if parsed is not None:
            return parsed
        return element.property_str(FULL_NAME)

    def _entity_placeholders(self, entity: ExternalEntity) -> dict[str, str]:
        return {
            "name": entity.name,
            "fullName": entity.full_name,
            "parentName": entity.parent_name or "",
            "serverEndpoint": self._settings.endpoint,
            "description": entity.comment or "",
        }


def _after(signal: datetime | None, watermark: datetime | None) -> datetime | None:
    """``signal`` if it is later than ``watermark``, else ``None``."""

    if signal is None:
        return None
    if watermark is not None and signal <= watermark:
        return None
    return signal
