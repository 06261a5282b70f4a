"""Index declarations for the tables of an object store.

The schema is advisory: a table it does not mention is store-only, exactly
like a table declared with no indexes.
"""

import json
from pathlib import Path
from typing import Any, ClassVar, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from objstash.errors import StoreValidationError


def ensure_non_empty_text(value: str, field_name: str) -> str:
    if not value.strip():
        raise ValueError(f"{field_name} cannot be empty")
    return value


class IndexDeclaration(BaseModel):
    name: str
    fields: tuple[str, ...] = Field(min_length=1)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        return ensure_non_empty_text(value, "name")

    @field_validator("fields")
    @classmethod
    def _validate_fields(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for field in value:
            ensure_non_empty_text(field, "fields")
        return value


class TableSchema(BaseModel):
    indexes: tuple[IndexDeclaration, ...] = ()

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("indexes", mode="before")
    @classmethod
    def _coerce_indexes(cls, value: Any) -> Any:
        return () if value is None else value

    @model_validator(mode="after")
    def _validate_unique_names(self) -> "TableSchema":
        seen: set[str] = set()
        for index in self.indexes:
            if index.name in seen:
                raise ValueError(f"duplicate index name '{index.name}'")
            seen.add(index.name)
        return self


class StoreSchema(BaseModel):
    SCHEMA_VERSION: ClassVar[str] = "store_schema.v1"

    schema_version: str = Field(default=SCHEMA_VERSION)
    tables: dict[str, TableSchema] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("schema_version")
    @classmethod
    def _validate_schema_version(cls, value: str) -> str:
        if value != cls.SCHEMA_VERSION:
            raise ValueError(f"expected schema_version '{cls.SCHEMA_VERSION}'")
        return value

    @field_validator("tables", mode="before")
    @classmethod
    def _coerce_tables(cls, value: Any) -> Any:
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise ValueError("tables must be a mapping of table name to declaration")
        return {name: TableSchema() if decl is None else decl for name, decl in value.items()}

    def indexes_for(self, table: str) -> tuple[IndexDeclaration, ...]:
        """Indexes declared on ``table``; empty for store-only or unknown tables."""
        declaration = self.tables.get(table)
        if declaration is None:
            return ()
        return declaration.indexes

    def index(self, table: str, name: str) -> IndexDeclaration | None:
        for declaration in self.indexes_for(table):
            if declaration.name == name:
                return declaration
        return None

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> "StoreSchema":
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise StoreValidationError(f"invalid store schema record: {e}") from e

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "StoreSchema":
        """Build a schema from ``{table: {"indexes": [...]} | None}``."""
        try:
            return cls.model_validate({"tables": data})
        except ValidationError as e:
            raise StoreValidationError(f"invalid store schema: {e}") from e

    @classmethod
    def from_json(cls, text: str) -> "StoreSchema":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise StoreValidationError(f"store schema is not valid JSON: {e}") from e
        if not isinstance(data, Mapping):
            raise StoreValidationError("store schema must be a JSON object")
        return cls.from_mapping(data)

    @classmethod
    def from_file(cls, path: Path | str) -> "StoreSchema":
        return cls.from_json(Path(path).read_text(encoding="utf-8"))


__all__ = ["IndexDeclaration", "TableSchema", "StoreSchema"]
