"""Unity Catalog REST payload schemas (``/api/2.1/unity-catalog``)."""

from __future__ import annotations

import logging
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)

type EpochMillis = int


class UnityCatalogBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow")
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "Unity Catalog %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class _Audited(UnityCatalogBaseModel):
    comment: str | None = None
    owner: str | None = None
    created_at: EpochMillis | None = None
    created_by: str | None = None
    updated_at: EpochMillis | None = None
    updated_by: str | None = None


class CatalogInfo(_Audited):
    name: str
    id: str | None = None
    properties: dict[str, str] | None = None
    storage_root: str | None = None


class SchemaInfo(_Audited):
    name: str
    catalog_name: str
    full_name: str | None = None
    schema_id: str | None = None
    properties: dict[str, str] | None = None


class ColumnInfo(UnityCatalogBaseModel):
    name: str
    type_text: str | None = None
    type_json: str | None = None
    type_name: str | None = None
    type_precision: int | None = None
    type_scale: int | None = None
    type_interval_type: str | None = None
    position: int | None = None
    comment: str | None = None
    nullable: bool | None = None
    partition_index: int | None = None


class TableInfo(_Audited):
    name: str
    catalog_name: str
    schema_name: str
    table_type: str | None = None
    data_source_format: str | None = None
    columns: list[ColumnInfo] = Field(default_factory=list["ColumnInfo"])
    storage_location: str | None = None
    properties: dict[str, str] | None = None
    table_id: str | None = None


class VolumeInfo(_Audited):
    name: str
    catalog_name: str
    schema_name: str
    full_name: str | None = None
    volume_type: str | None = None
    storage_location: str | None = None
    volume_id: str | None = None


class FunctionParameterInfo(UnityCatalogBaseModel):
    name: str
    type_text: str | None = None
    type_json: str | None = None
    type_name: str | None = None
    type_precision: int | None = None
    type_scale: int | None = None
    type_interval_type: str | None = None
    position: int | None = None
    parameter_mode: str | None = None
    parameter_type: str | None = None
    parameter_default: str | None = None
    comment: str | None = None


class FunctionParameterInfos(UnityCatalogBaseModel):
    parameters: list[FunctionParameterInfo] = Field(
        default_factory=list["FunctionParameterInfo"]
    )


class FunctionInfo(_Audited):
    name: str
    catalog_name: str
    schema_name: str
    full_name: str | None = None
    function_id: str | None = None
    input_params: FunctionParameterInfos | None = None
    return_params: FunctionParameterInfos | None = None
    data_type: str | None = None
    full_data_type: str | None = None
    routine_body: str | None = None
    routine_definition: str | None = None
    external_language: str | None = None
    parameter_style: str | None = None
    is_deterministic: bool | None = None
    sql_data_access: str | None = None
    is_null_call: bool | None = None
    security_type: str | None = None
    specific_name: str | None = None
    # Serialized as a JSON string by the open-source server.
    properties: str | dict[str, str] | None = None


class RegisteredModelInfo(_Audited):
    name: str
    catalog_name: str
    schema_name: str
    full_name: str | None = None
    id: str | None = None
    storage_location: str | None = None


class ListCatalogsResponse(UnityCatalogBaseModel):
    catalogs: list[CatalogInfo] = Field(default_factory=list["CatalogInfo"])
    next_page_token: str | None = None


class ListSchemasResponse(UnityCatalogBaseModel):
    schemas: list[SchemaInfo] = Field(default_factory=list["SchemaInfo"])
    next_page_token: str | None = None


class ListTablesResponse(UnityCatalogBaseModel):
    tables: list[TableInfo] = Field(default_factory=list["TableInfo"])
    next_page_token: str | None = None


class ListVolumesResponse(UnityCatalogBaseModel):
    volumes: list[VolumeInfo] = Field(default_factory=list["VolumeInfo"])
    next_page_token: str | None = None


class ListFunctionsResponse(UnityCatalogBaseModel):
    functions: list[FunctionInfo] = Field(default_factory=list["FunctionInfo"])
    next_page_token: str | None = None


class ListRegisteredModelsResponse(UnityCatalogBaseModel):
    registered_models: list[RegisteredModelInfo] = Field(
        default_factory=list["RegisteredModelInfo"]
    )
    next_page_token: str | None = None


class ErrorResponse(UnityCatalogBaseModel):
    error_code: str | None = None
    message: str | None = None


type EntityInfo = (
    CatalogInfo | SchemaInfo | TableInfo | VolumeInfo | FunctionInfo | RegisteredModelInfo
)
