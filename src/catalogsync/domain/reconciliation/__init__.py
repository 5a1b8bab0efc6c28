"""Bidirectional reconciliation between the metadata graph and a remote catalog.

Layered flow per entity kind:
1) enumerate parent scopes from the graph
2) Sweep A: local elements, remote lookups by derived name
3) Sweep B: remote listings not seen in Sweep A
4) identity check, then one decision per pair
5) dispatch to create/update/delete on either side and advance watermarks
"""

from __future__ import annotations

from .capabilities import (
    ColumnarCapability,
    ContainerCapability,
    KindCapability,
    default_capabilities,
)
from .context import CycleContext, CycleReport
from .correlation import IdentityMismatch, find_mismatch, no_mismatch
from .decision import SyncAction, change_signal, decide
from .fetch import Absent, FetchFailed, FetchResult, Found, fetch
from .filters import NameFilter
from .members import MemberElement, MemberIterator
from .naming import qualified_name, server_qualified_name
from .orchestrator import RefreshResult, SynchronizationOrchestrator
from .synchronizer import EntityKindSynchronizer, Scope, SyncSettings

__all__ = [
    "Absent",
    "ColumnarCapability",
    "ContainerCapability",
    "CycleContext",
    "CycleReport",
    "EntityKindSynchronizer",
    "FetchFailed",
    "FetchResult",
    "Found",
    "IdentityMismatch",
    "KindCapability",
    "MemberElement",
    "MemberIterator",
    "NameFilter",
    "RefreshResult",
    "Scope",
    "SyncAction",
    "SyncSettings",
    "SynchronizationOrchestrator",
    "change_signal",
    "decide",
    "default_capabilities",
    "fetch",
    "find_mismatch",
    "no_mismatch",
    "qualified_name",
    "server_qualified_name",
]
