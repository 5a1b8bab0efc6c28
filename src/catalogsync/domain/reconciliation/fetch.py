"""Explicit outcomes of looking up a remote entity."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

from catalogsync.domain.ports import RemoteEntityNotFound, RemoteServiceError

if TYPE_CHECKING:
    from collections.abc import Callable

    from catalogsync.domain.model import ExternalEntity


class FetchStatus(StrEnum):
    FOUND = "found"
    ABSENT = "absent"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Found:
    entity: ExternalEntity
    status: Literal[FetchStatus.FOUND] = FetchStatus.FOUND


@dataclass(frozen=True, slots=True)
class Absent:
    full_name: str
    status: Literal[FetchStatus.ABSENT] = FetchStatus.ABSENT


@dataclass(frozen=True, slots=True)
class FetchFailed:
    full_name: str
    error: Exception
    status: Literal[FetchStatus.FAILED] = FetchStatus.FAILED


type FetchResult = Found | Absent | FetchFailed


def fetch(full_name: str, lookup: Callable[[str], ExternalEntity]) -> FetchResult:
    """Run ``lookup`` and fold its exceptions into a fetch result.

    Only the catalog's own error types are folded; anything else is a bug and
    propagates.
    """

    try:
        return Found(lookup(full_name))
    except RemoteEntityNotFound:
        return Absent(full_name)
    except RemoteServiceError as exc:
        return FetchFailed(full_name, exc)
