"""Identity checks between graph elements and remote entities."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

    from catalogsync.domain.model import MetadataElement

log = getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class IdentityMismatch:
    """A remote entity whose id disagrees with the element's recorded link."""

    element_id: UUID
    qualified_name: str
    source: str
    recorded_external_id: str
    reported_external_id: str


def find_mismatch(
    external_id: str | None,
    element: MetadataElement,
    *,
    source: str,
) -> IdentityMismatch | None:
    """Return the mismatch between ``external_id`` and ``element``, if any.

    There is no mismatch when the remote side reports no id, when the element
    has no record for ``source`` yet, or when the recorded id matches.
    """

    if external_id is None:
        return None
    record = element.correlation_for(source)
    if record is None or record.external_id == external_id:
        return None
    return IdentityMismatch(
        element_id=element.id,
        qualified_name=element.qualified_name,
        source=source,
        recorded_external_id=record.external_id,
        reported_external_id=external_id,
    )


def no_mismatch(
    external_id: str | None,
    element: MetadataElement,
    *,
    source: str,
    found: list[IdentityMismatch] | None = None,
) -> bool:
    """Whether the pair may be reconciled.

    A mismatch is logged with both ids and appended to ``found`` when given.
    """

    mismatch = find_mismatch(external_id, element, source=source)
    if mismatch is None:
        return True
    if found is not None:
        found.append(mismatch)
    log.warning(
        f"Identity mismatch for {mismatch.qualified_name} at {source}: element "
        f"{mismatch.element_id} is linked to {mismatch.recorded_external_id!r} but the "
        f"catalog reports {mismatch.reported_external_id!r}; skipping"
    )
    return False
