"""Refresh lifecycle for one catalog endpoint."""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.config.errors import ConfigurationError
from catalogsync.domain.model import SYNC_ORDER, ElementType
from catalogsync.domain.ports import RemoteCatalog

from .capabilities import default_capabilities
from .naming import server_qualified_name
from .synchronizer import EntityKindSynchronizer

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from datetime import datetime
    from uuid import UUID

    from catalogsync.domain.metadata_graph import MetadataGraph
    from catalogsync.domain.model import ChangeEvent, EntityKind

    from .capabilities import KindCapability
    from .context import CycleReport
    from .decision import SyncAction
    from .synchronizer import SyncSettings

log = getLogger(__name__)


@dataclass(slots=True)
class RefreshResult:
    """Outcome of one ``refresh`` call."""

    started_at: datetime | None = None
    completed_at: datetime | None = None
    reports: dict[EntityKind, CycleReport] = field(default_factory=dict["EntityKind", "CycleReport"])
    failed_kinds: list[EntityKind] = field(default_factory=list["EntityKind"])
    cancelled: bool = False
    skipped: bool = False

    @property
    def decisions(self) -> Counter[SyncAction]:
        total: Counter[SyncAction] = Counter()
        for report in self.reports.values():
            total.update(report.decisions)
        return total

    @property
    def failures(self) -> int:
        return sum(report.failures for report in self.reports.values())

    @property
    def mismatches(self) -> int:
        return sum(len(report.mismatches) for report in self.reports.values())


class SynchronizationOrchestrator:
    """Runs the kind synchronizers for one endpoint in dependency order.

    Refreshes never overlap: a refresh requested while one is running is
    skipped, and change events arriving meanwhile are ignored. Cancellation
    takes effect between kinds.
    """

    def __init__(
        self,
        *,
        graph: MetadataGraph,
        remote: object,
        settings: SyncSettings,
        capabilities: Mapping[EntityKind, KindCapability] | None = None,
        server_qualified_name: str | None = None,
        order: Sequence[EntityKind] = SYNC_ORDER,
    ) -> None:
        self._graph = graph
        self._remote = remote
        self._settings = settings
        self._capabilities = dict(capabilities or default_capabilities())
        self._configured_server = server_qualified_name
        self._order = tuple(order)

        self._server_id: UUID | None = None
        self._catalog: RemoteCatalog | None = None
        self._gate = threading.Lock()
        self._cancel = threading.Event()
        self._last_refresh_complete: datetime | None = None

    @property
    def graph(self) -> MetadataGraph:
        return self._graph

    @property
    def settings(self) -> SyncSettings:
        return self._settings

    @property
    def started(self) -> bool:
        return self._server_id is not None

    @property
    def refresh_in_progress(self) -> bool:
        return self._gate.locked()

    @property
    def last_refresh_complete(self) -> datetime | None:
        return self._last_refresh_complete

    @property
    def server_id(self) -> UUID | None:
        return self._server_id

    def start(self) -> None:
        """Validate collaborators and bindings; raises ``ConfigurationError``."""

        if not isinstance(self._remote, RemoteCatalog):
            raise ConfigurationError(
                f"{type(self._remote).__name__} does not implement the remote catalog port"
            )
        self._catalog = self._remote

        missing = [kind for kind in self._order if kind not in self._capabilities]
        if missing:
            raise ConfigurationError(f"No synchronizer capability for {', '.join(missing)}")

        for kind, template in self._settings.templates.items():
            if self._graph.find_by_qualified_name(template) is None:
                raise ConfigurationError(f"Template {template!r} for {kind} does not exist")

        self._server_id = self._resolve_server()

        name_filter = self._settings.name_filter
        log.info(
            f"Synchronizing {self._settings.endpoint} ({self._settings.direction}); "
            f"include={sorted(name_filter.include)}, exclude={sorted(name_filter.exclude)}"
        )

    def refresh(self) -> RefreshResult:
        """Run one full cycle for every kind; returns normally on per-kind failures."""

        if not self.started:
            self.start()
        if not self._gate.acquire(blocking=False):
            log.info(f"Refresh of {self._settings.endpoint} already in progress; skipping")
            return RefreshResult(skipped=True)

        try:
            self._cancel.clear()
            result = RefreshResult(started_at=self._graph.now())
            for kind in self._order:
                if self._cancel.is_set():
                    log.info(f"Refresh cancelled before {kind}")
                    result.cancelled = True
                    break
                try:
                    result.reports[kind] = self._synchronizer(kind).cycle()
                except Exception:  # noqa: BLE001
                    log.exception(f"Synchronization of {kind} failed")
                    result.failed_kinds.append(kind)

            result.completed_at = self._graph.now()
            if not result.cancelled:
                self._last_refresh_complete = result.completed_at
            log.info(
                f"Refresh of {self._settings.endpoint} finished: "
                f"decisions={dict(result.decisions)}, failures={result.failures}, "
                f"failed_kinds={[str(kind) for kind in result.failed_kinds]}"
            )
            return result
        finally:
            self._gate.release()

    def process_event(self, event: ChangeEvent) -> bool:
        """Refresh in response to a change notification; returns whether it did."""

        if self.refresh_in_progress:
            log.debug(f"Ignoring {event.event_type} of {event.qualified_name}: refresh running")
            return False
        if event.updated_by == self._settings.user_id:
            return False
        watermark = self._last_refresh_complete
        if watermark is not None and (event.update_time is None or event.update_time <= watermark):
            return False

        log.info(f"{event.event_type} of {event.qualified_name} by {event.updated_by}; refreshing")
        self.refresh()
        return True

    def cancel(self) -> None:
        self._cancel.set()

    def _synchronizer(self, kind: EntityKind) -> EntityKindSynchronizer:
        if self._catalog is None or self._server_id is None:
            raise ConfigurationError("Orchestrator used before start()")
        return EntityKindSynchronizer(
            self._capabilities[kind],
            graph=self._graph,
            remote=self._catalog,
            settings=self._settings,
            server_id=self._server_id,
        )

    def _resolve_server(self) -> UUID:
        endpoint = self._settings.endpoint
        name = self._configured_server or server_qualified_name(endpoint)
        server = self._graph.find_by_qualified_name(name)
        if server is not None:
            return server.id
        if self._configured_server is not None:
            raise ConfigurationError(f"Server element {name!r} does not exist")

        server = self._graph.create_element(
            user_id=self._settings.user_id,
            element_type=ElementType.SOFTWARE_SERVER,
            qualified_name=name,
            display_name=endpoint,
            properties={"endpoint": endpoint},
        )
        log.info(f"Created server element {name}")
        return server.id
