"""Reconciliation settings loaded from the environment."""

from __future__ import annotations

from dataclasses import dataclass, field

from catalogsync.domain.model import EntityKind, SyncDirection

from .env import env_flag, env_int, env_list, env_mapping, optional_env_var
from .errors import InvalidConfigurationError

DEFAULT_USER_ID = "catalogsync"
DEFAULT_PAGE_SIZE = 100


@dataclass(frozen=True, slots=True)
class SyncConfig:
    """How one endpoint is mirrored into the metadata graph."""

    direction: SyncDirection = SyncDirection.BOTH_DIRECTIONS
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    user_id: str = DEFAULT_USER_ID
    page_size: int = DEFAULT_PAGE_SIZE
    allow_remote_delete: bool = False
    server_qualified_name: str | None = None
    templates: dict[EntityKind, str] = field(default_factory=dict["EntityKind", "str"])
    placeholders: dict[str, str] = field(default_factory=dict["str", "str"])


def parse_direction(value: str) -> SyncDirection:
    normalized = value.strip().lower().replace("-", "_")
    try:
        return SyncDirection(normalized)
    except ValueError as exc:
        choices = ", ".join(direction.value for direction in SyncDirection)
        raise InvalidConfigurationError(
            f"Unknown synchronization direction {value!r}; expected one of {choices}"
        ) from exc


def get_sync_config() -> SyncConfig:
    direction = optional_env_var("CATALOGSYNC_DIRECTION")
    page_size = env_int("CATALOGSYNC_PAGE_SIZE", DEFAULT_PAGE_SIZE)
    if page_size < 1:
        raise InvalidConfigurationError("CATALOGSYNC_PAGE_SIZE must be positive")

    templates: dict[EntityKind, str] = {}
    for kind in EntityKind:
        template = optional_env_var(f"CATALOGSYNC_TEMPLATE_{kind.name}")
        if template is not None:
            templates[kind] = template

    return SyncConfig(
        direction=parse_direction(direction) if direction else SyncDirection.BOTH_DIRECTIONS,
        include=env_list("CATALOGSYNC_INCLUDE"),
        exclude=env_list("CATALOGSYNC_EXCLUDE"),
        user_id=optional_env_var("CATALOGSYNC_USER_ID") or DEFAULT_USER_ID,
        page_size=page_size,
        allow_remote_delete=env_flag("CATALOGSYNC_ALLOW_REMOTE_DELETE"),
        server_qualified_name=optional_env_var("CATALOGSYNC_SERVER_QUALIFIED_NAME"),
        templates=templates,
        placeholders=env_mapping("CATALOGSYNC_PLACEHOLDERS"),
    )
