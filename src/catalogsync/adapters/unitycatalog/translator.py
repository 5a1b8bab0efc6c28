"""Translate Unity Catalog payloads to domain snapshots and back."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.domain.model import ColumnInfo, EntityKind, ExternalEntity

from .schema import (
    CatalogInfo,
    FunctionInfo,
    RegisteredModelInfo,
    SchemaInfo,
    TableInfo,
    VolumeInfo,
)

if TYPE_CHECKING:
    from .schema import EntityInfo, FunctionParameterInfo
    from .schema import ColumnInfo as ColumnPayload

log = getLogger(__name__)

_FUNCTION_DETAIL_FIELDS = (
    "data_type",
    "full_data_type",
    "routine_body",
    "routine_definition",
    "external_language",
    "parameter_style",
    "sql_data_access",
    "security_type",
    "specific_name",
)

# ExternalEntity fields each PATCH endpoint accepts; anything else is create-only.
UPDATABLE_FIELDS: dict[EntityKind, frozenset[str]] = {
    EntityKind.CATALOG: frozenset({"comment", "owner", "properties"}),
    EntityKind.SCHEMA: frozenset({"comment", "owner", "properties"}),
    EntityKind.TABLE: frozenset({"columns", "comment", "owner", "properties"}),
    EntityKind.VOLUME: frozenset({"comment", "owner"}),
    EntityKind.FUNCTION: frozenset({"owner"}),
    EntityKind.MODEL: frozenset({"comment", "owner"}),
}


def from_millis(value: int | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=UTC)


def split_full_name(full_name: str, kind: EntityKind) -> list[str]:
    """Split a dotted name into the segments ``kind`` expects (1, 2 or 3)."""

    expected = {EntityKind.CATALOG: 1, EntityKind.SCHEMA: 2}.get(kind, 3)
    parts = full_name.split(".")
    if len(parts) != expected or not all(parts):
        raise ValueError(f"{full_name!r} is not a valid {kind} name")
    return parts


def translate_entity(kind: EntityKind, payload: EntityInfo) -> ExternalEntity:  # noqa: PLR0911
    match payload:
        case CatalogInfo():
            return _common(kind, payload, payload.name, payload.id, properties=payload.properties)
        case SchemaInfo():
            full_name = payload.full_name or f"{payload.catalog_name}.{payload.name}"
            return _common(kind, payload, full_name, payload.schema_id, properties=payload.properties)
        case TableInfo():
            return _common(
                kind,
                payload,
                _three_part(payload),
                payload.table_id,
                properties=payload.properties,
                storage_location=payload.storage_location,
                data_format=payload.data_source_format,
                entity_type=payload.table_type,
                columns=tuple(_column(column) for column in payload.columns),
            )
        case VolumeInfo():
            return _common(
                kind,
                payload,
                payload.full_name or _three_part(payload),
                payload.volume_id,
                storage_location=payload.storage_location,
                entity_type=payload.volume_type,
            )
        case FunctionInfo():
            parameters = payload.input_params.parameters if payload.input_params else []
            details = {
                name: str(value)
                for name in _FUNCTION_DETAIL_FIELDS
                if (value := getattr(payload, name)) is not None
            }
            return _common(
                kind,
                payload,
                payload.full_name or _three_part(payload),
                payload.function_id,
                properties=_function_properties(payload.properties),
                columns=tuple(_parameter(parameter) for parameter in parameters),
                details=details,
            )
        case RegisteredModelInfo():
            return _common(
                kind,
                payload,
                payload.full_name or _three_part(payload),
                payload.id,
                storage_location=payload.storage_location,
            )
        case _:
            raise TypeError(f"Unsupported Unity Catalog payload: {type(payload).__name__}")


def create_request(entity: ExternalEntity) -> dict[str, object]:
    """Request body for creating ``entity``."""

    kind = entity.kind
    parts = split_full_name(entity.full_name, kind)
    body: dict[str, object] = {"name": parts[-1]}
    if kind is not EntityKind.CATALOG:
        body["catalog_name"] = parts[0]
    if len(parts) == 3:  # noqa: PLR2004
        body["schema_name"] = parts[1]
    if entity.comment is not None:
        body["comment"] = entity.comment

    match kind:
        case EntityKind.CATALOG | EntityKind.SCHEMA:
            body["properties"] = dict(entity.properties)
        case EntityKind.TABLE:
            body.update(
                table_type=entity.entity_type or "EXTERNAL",
                data_source_format=entity.data_format or "DELTA",
                columns=[_column_request(column) for column in entity.columns],
                properties=dict(entity.properties),
            )
            if entity.storage_location is not None:
                body["storage_location"] = entity.storage_location
        case EntityKind.VOLUME:
            body["volume_type"] = entity.entity_type or "EXTERNAL"
            if entity.storage_location is not None:
                body["storage_location"] = entity.storage_location
        case EntityKind.FUNCTION:
            return {"function_info": _function_request(entity, body)}
        case EntityKind.MODEL:
            if entity.storage_location is not None:
                body["storage_location"] = entity.storage_location
    return body


def update_request(entity: ExternalEntity) -> dict[str, object]:
    """Request body carrying the fields the update endpoint of ``entity.kind`` accepts."""

    accepted = UPDATABLE_FIELDS[entity.kind]
    body: dict[str, object] = {}
    if "comment" in accepted:
        body["comment"] = entity.comment or ""
    if "properties" in accepted:
        body["properties"] = dict(entity.properties)
    if "owner" in accepted and entity.owner is not None:
        body["owner"] = entity.owner
    if "columns" in accepted and entity.columns:
        body["columns"] = [_column_request(column) for column in entity.columns]
    return body


def _common(
    kind: EntityKind,
    payload: EntityInfo,
    full_name: str,
    external_id: str | None,
    *,
    properties: dict[str, str] | None = None,
    storage_location: str | None = None,
    data_format: str | None = None,
    entity_type: str | None = None,
    columns: tuple[ColumnInfo, ...] = (),
    details: dict[str, str] | None = None,
) -> ExternalEntity:
    return ExternalEntity(
        kind=kind,
        full_name=full_name,
        external_id=external_id,
        created_at=from_millis(payload.created_at),
        updated_at=from_millis(payload.updated_at),
        comment=payload.comment,
        owner=payload.owner,
        storage_location=storage_location,
        data_format=data_format,
        entity_type=entity_type,
        properties=dict(properties or {}),
        columns=columns,
        details=dict(details or {}),
    )


def _three_part(payload: TableInfo | VolumeInfo | FunctionInfo | RegisteredModelInfo) -> str:
    return f"{payload.catalog_name}.{payload.schema_name}.{payload.name}"


def _column(column: ColumnPayload) -> ColumnInfo:
    return ColumnInfo(
        name=column.name,
        type_name=column.type_name,
        type_text=column.type_text,
        position=column.position,
        nullable=column.nullable,
        comment=column.comment,
    )


def _parameter(parameter: FunctionParameterInfo) -> ColumnInfo:
    return ColumnInfo(
        name=parameter.name,
        type_name=parameter.type_name,
        type_text=parameter.type_text,
        position=parameter.position,
        comment=parameter.comment,
        parameter_mode=parameter.parameter_mode,
    )


def _function_properties(value: str | dict[str, str] | None) -> dict[str, str]:
    if value is None or isinstance(value, dict):
        return dict(value or {})
    if not value.strip():
        return {}
    try:
        decoded = json.loads(value)
    except json.JSONDecodeError:
        log.debug(f"Ignoring non-JSON function properties: {value!r}")
        return {}
    if not isinstance(decoded, dict):
        return {}
    return {str(key): str(item) for key, item in decoded.items()}


def _column_request(column: ColumnInfo) -> dict[str, object]:
    type_text = column.type_text or (column.type_name or "string").lower()
    body: dict[str, object] = {
        "name": column.name,
        "type_text": type_text,
        "type_name": (column.type_name or type_text).upper(),
        "type_json": json.dumps(
            {
                "name": column.name,
                "type": type_text,
                "nullable": column.nullable if column.nullable is not None else True,
                "metadata": {},
            }
        ),
        "nullable": column.nullable if column.nullable is not None else True,
    }
    if column.position is not None:
        body["position"] = column.position
    if column.comment is not None:
        body["comment"] = column.comment
    return body


def _function_request(entity: ExternalEntity, body: dict[str, object]) -> dict[str, object]:
    details = entity.details
    data_type = details.get("data_type", "STRING")
    info: dict[str, object] = {
        **body,
        "data_type": data_type,
        "full_data_type": details.get("full_data_type", data_type.lower()),
        "routine_body": details.get("routine_body", "EXTERNAL"),
        "routine_definition": details.get("routine_definition", ""),
        "parameter_style": details.get("parameter_style", "S"),
        "is_deterministic": True,
        "sql_data_access": details.get("sql_data_access", "NO_SQL"),
        "is_null_call": False,
        "security_type": details.get("security_type", "DEFINER"),
        "specific_name": details.get("specific_name", entity.name),
        "input_params": {
            "parameters": [
                {
                    "name": parameter.name,
                    "type_text": parameter.type_text or (parameter.type_name or "string").lower(),
                    "type_name": (parameter.type_name or "STRING").upper(),
                    "type_json": json.dumps(
                        {"name": parameter.name, "type": parameter.type_text or "string"}
                    ),
                    "position": (
                        parameter.position if parameter.position is not None else index
                    ),
                    "parameter_mode": parameter.parameter_mode or "IN",
                    "parameter_type": "PARAM",
                    **({"comment": parameter.comment} if parameter.comment else {}),
                }
                for index, parameter in enumerate(entity.columns)
            ]
        },
    }
    if "external_language" in details:
        info["external_language"] = details["external_language"]
    if entity.properties:
        info["properties"] = json.dumps(dict(entity.properties))
    return info
