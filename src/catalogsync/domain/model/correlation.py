"""Correlation records linking graph elements to third-party identifiers.

A record is owned by exactly one element and scoped to one ``source`` (the
server endpoint of the third party). At most one record exists per
(element, source); changing the external id of an existing record is an
explicit operation and never a side effect of adding a link.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from catalogsync.domain.model.entity import Entity, new_id
from catalogsync.domain.model.enums import SyncDirection

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID


class CorrelationConflictError(ValueError):
    """Raised when a link would silently replace a different external id."""


@dataclass(eq=False, kw_only=True)
class CorrelationRecord:
    external_id: str
    source: str
    owner_id: UUID

    direction: SyncDirection = SyncDirection.FROM_THIRD_PARTY
    last_known_external_update: datetime | None = None
    synchronized_at: datetime | None = None
    id: UUID = field(default_factory=new_id)


class Correlated(Protocol):
    """Read-only access to correlation records."""

    @property
    def correlations(self) -> tuple[CorrelationRecord, ...]: ...

    def correlation_for(self, source: str) -> CorrelationRecord | None: ...


@dataclass(eq=False, kw_only=True)
class CorrelatedMixin(Entity, ABC):
    """Capability: owns correlation records, at most one per source."""

    _correlations: list[CorrelationRecord] = field(
        default_factory=list["CorrelationRecord"], repr=False, init=False
    )

    @property
    def correlations(self) -> tuple[CorrelationRecord, ...]:
        return tuple(self._correlations)

    def correlation_for(self, source: str) -> CorrelationRecord | None:
        for record in self._correlations:
            if record.source == source:
                return record
        return None

    def add_correlation(
        self,
        *,
        external_id: str,
        source: str,
        direction: SyncDirection,
        external_update_time: datetime | None,
        synchronized_at: datetime,
    ) -> CorrelationRecord:
        """Link this element to ``external_id`` for ``source`` (upsert).

        An existing record for the same id is refreshed in place; a record
        carrying a different id raises ``CorrelationConflictError``.
        """

        existing = self.correlation_for(source)
        if existing is not None:
            if existing.external_id != external_id:
                raise CorrelationConflictError(
                    f"Element {self.id} is already linked to {existing.external_id!r} "
                    f"for {source}; refusing to link {external_id!r}"
                )
            existing.direction = direction
            existing.last_known_external_update = external_update_time
            existing.synchronized_at = synchronized_at
            return existing

        record = CorrelationRecord(
            external_id=external_id,
            source=source,
            owner_id=self.id,
            direction=direction,
            last_known_external_update=external_update_time,
            synchronized_at=synchronized_at,
        )
        self._correlations.append(record)
        return record

    def relink_correlation(self, *, source: str, external_id: str) -> CorrelationRecord:
        """Point the record for ``source`` at a new external id."""

        record = self._require_correlation(source)
        record.external_id = external_id
        return record

    def confirm_correlation(
        self,
        *,
        source: str,
        external_update_time: datetime | None,
        synchronized_at: datetime,
    ) -> CorrelationRecord:
        """Advance the watermark after a successful reconciliation."""

        record = self._require_correlation(source)
        if external_update_time is not None:
            record.last_known_external_update = external_update_time
        record.synchronized_at = synchronized_at
        return record

    def _require_correlation(self, source: str) -> CorrelationRecord:
        record = self.correlation_for(source)
        if record is None:
            raise KeyError(f"Element {self.id} has no correlation for {source}")
        return record
