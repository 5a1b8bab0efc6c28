"""Per-cycle state for one entity-kind reconciliation."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

    from catalogsync.domain.model import EntityKind

    from .correlation import IdentityMismatch
    from .decision import SyncAction


@dataclass(slots=True)
class CycleReport:
    """Counters for one kind's cycle."""

    kind: EntityKind
    decisions: Counter[SyncAction] = field(default_factory=Counter["SyncAction"])
    mismatches: list[IdentityMismatch] = field(default_factory=list["IdentityMismatch"])
    failures: int = 0
    filtered: int = 0

    @property
    def decided(self) -> int:
        return sum(self.decisions.values())

    def count(self, action: SyncAction) -> int:
        return self.decisions[action]


@dataclass(slots=True)
class CycleContext:
    """Names handled so far in this cycle, mapped to the internal id if known.

    Built fresh for each cycle and discarded afterwards; Sweep B consults it to
    skip pairs Sweep A already handled.
    """

    kind: EntityKind
    names: dict[str, UUID | None] = field(default_factory=dict["str", "UUID | None"])
    report: CycleReport = field(init=False)

    def __post_init__(self) -> None:
        self.report = CycleReport(self.kind)

    def mark(self, qualified_name: str, element_id: UUID | None = None) -> None:
        self.names[qualified_name] = element_id

    def seen(self, qualified_name: str) -> bool:
        return qualified_name in self.names

    def element_id(self, qualified_name: str) -> UUID | None:
        return self.names.get(qualified_name)

    def record(self, action: SyncAction) -> None:
        self.report.decisions[action] += 1
