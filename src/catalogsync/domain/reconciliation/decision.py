"""Reconciliation decision policy.

``decide`` is pure: it sees only existence flags, change signals and the
synchronization direction, and produces exactly one action. Callers pass a
change signal of ``None`` when a side has not changed since the last
confirmed synchronization.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from catalogsync.domain.model import SyncDirection

if TYPE_CHECKING:
    from datetime import datetime


class SyncAction(StrEnum):
    NONE = "none"
    CREATE_LOCAL = "create_local"
    UPDATE_LOCAL = "update_local"
    DELETE_LOCAL = "delete_local"
    CREATE_REMOTE = "create_remote"
    UPDATE_REMOTE = "update_remote"
    DELETE_REMOTE = "delete_remote"


def change_signal(created: datetime | None, updated: datetime | None) -> datetime | None:
    """The updated timestamp, falling back to the created one."""

    return updated if updated is not None else created


def decide(  # noqa: PLR0911
    *,
    local_exists: bool,
    remote_exists: bool,
    direction: SyncDirection,
    local_created: datetime | None = None,
    local_updated: datetime | None = None,
    remote_created: datetime | None = None,
    remote_updated: datetime | None = None,
    correlated: bool = True,
    allow_remote_delete: bool = False,
) -> SyncAction:
    """Return the single action that moves both sides towards agreement.

    ``correlated`` tells a local element that was linked to a remote entity
    before (and so lost its counterpart) apart from one that was never
    published. Remote deletion of an entity with no local counterpart only
    happens when ``allow_remote_delete`` is set.
    """

    pull = direction.permits_pull
    push = direction.permits_push

    if not local_exists and not remote_exists:
        return SyncAction.NONE

    if local_exists and not remote_exists:
        if correlated:
            return SyncAction.DELETE_LOCAL if pull else SyncAction.NONE
        return SyncAction.CREATE_REMOTE if push else SyncAction.NONE

    if not local_exists:
        if pull:
            return SyncAction.CREATE_LOCAL
        if push and allow_remote_delete:
            return SyncAction.DELETE_REMOTE
        return SyncAction.NONE

    local_signal = change_signal(local_created, local_updated)
    remote_signal = change_signal(remote_created, remote_updated)

    if direction is SyncDirection.OTHER_PARTY_AUTHORITATIVE:
        if local_signal is None and remote_signal is None:
            return SyncAction.NONE
        return SyncAction.UPDATE_LOCAL

    if _is_newer(local_signal, remote_signal):
        return SyncAction.UPDATE_REMOTE if push else SyncAction.NONE
    if _is_newer(remote_signal, local_signal):
        return SyncAction.UPDATE_LOCAL if pull else SyncAction.NONE
    return SyncAction.NONE


def _is_newer(candidate: datetime | None, other: datetime | None) -> bool:
    if candidate is None:
        return False
    if other is None:
        return True
    return candidate > other
