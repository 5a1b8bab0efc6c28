"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from catalogsync.adapters.unitycatalog import build_unity_catalog_remote
from catalogsync.config import get_sync_config
from catalogsync.domain.metadata_graph import MetadataGraph
from catalogsync.domain.ports.unit_of_work import MetadataUnitOfWork
from catalogsync.domain.reconciliation import (
    NameFilter,
    RefreshResult,
    SynchronizationOrchestrator,
    SyncSettings,
)

if TYPE_CHECKING:
    from catalogsync.config import SyncConfig
    from catalogsync.domain.ports import RemoteCatalog

UnitOfWorkFactory = Callable[[], MetadataUnitOfWork]

log = getLogger(__name__)


def build_settings(config: SyncConfig, *, endpoint: str) -> SyncSettings:
    return SyncSettings(
        endpoint=endpoint,
        user_id=config.user_id,
        direction=config.direction,
        name_filter=NameFilter.from_lists(config.include, config.exclude),
        templates=dict(config.templates),
        placeholders=dict(config.placeholders),
        page_size=config.page_size,
        allow_remote_delete=config.allow_remote_delete,
    )


def build_orchestrator(
    *,
    remote: RemoteCatalog | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    sync_config: SyncConfig | None = None,
    endpoint: str | None = None,
) -> SynchronizationOrchestrator:
    """Wire the metadata graph, the Unity Catalog remote and the settings together."""

    if unit_of_work_factory is None and not is_started():
        startup()
    effective_remote = remote or build_unity_catalog_remote(endpoint=endpoint)
    effective_uow = unit_of_work_factory or SqlAlchemyUnitOfWork
    config = sync_config or get_sync_config()

    graph = MetadataGraph(effective_uow)
    return SynchronizationOrchestrator(
        graph=graph,
        remote=effective_remote,
        settings=build_settings(config, endpoint=effective_remote.endpoint),
        server_qualified_name=config.server_qualified_name,
    )


def refresh_unity_catalog(
    *,
    orchestrator: SynchronizationOrchestrator | None = None,
    remote: RemoteCatalog | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    sync_config: SyncConfig | None = None,
    endpoint: str | None = None,
) -> RefreshResult:
    """Run one full reconciliation of the configured Unity Catalog server."""

    effective = orchestrator or build_orchestrator(
        remote=remote,
        unit_of_work_factory=unit_of_work_factory,
        sync_config=sync_config,
        endpoint=endpoint,
    )
    if not effective.started:
        effective.start()
    result = effective.refresh()
    log.info(
        f"Finished Unity Catalog refresh: decisions={dict(result.decisions)}, "
        f"failures={result.failures}, mismatches={result.mismatches}, "
        f"cancelled={result.cancelled}"
    )
    return result
