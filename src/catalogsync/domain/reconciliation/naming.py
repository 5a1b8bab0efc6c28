"""Deterministic qualified names used as the join key between both sides."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from catalogsync.domain.model import EntityKind

SERVER_LABEL = "Unity Catalog Server"


def qualified_name(kind: EntityKind, endpoint: str, full_name: str) -> str:
    """``<kind label>:<server endpoint>:<dotted full name>``."""

    return f"{kind.label}:{endpoint}:{full_name}"


def server_qualified_name(endpoint: str) -> str:
    return f"{SERVER_LABEL}:{endpoint}"


def full_name_from(qualified: str, kind: EntityKind, endpoint: str) -> str | None:
    """Inverse of ``qualified_name``; ``None`` if ``qualified`` has another prefix."""

    prefix = f"{kind.label}:{endpoint}:"
    if not qualified.startswith(prefix):
        return None
    return qualified[len(prefix) :] or None


def column_qualified_name(owner_qualified_name: str, column: str) -> str:
    return f"{owner_qualified_name}::column::{column}"


def root_schema_qualified_name(owner_qualified_name: str) -> str:
    return f"{owner_qualified_name}::root_schema_type"
