"""Assembled entity metadata handed to code emission."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union


class ScalarType(str, Enum):
    """Portable scalar types, valued by their Python annotation."""

    INTEGER = "int"
    FLOAT = "float"
    STRING = "str"
    BOOLEAN = "bool"
    INSTANT = "datetime"
    MAPPING = "dict"


class StorageTag(str, Enum):
    """Storage format of a column, independent of the vendor spelling."""

    INTEGER = "integer"
    SMALLINT = "smallint"
    BIGINT = "bigint"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    JSON = "json"
    STRING = "string"
    TEXT = "text"
    BLOB = "blob"
    BINARY = "binary"
    UUID = "uuid"

    @property
    def is_datetime_like(self) -> bool:
        return self is StorageTag.DATETIME


@dataclass(frozen=True)
class TypeRef:
    """Scalar type qualified with nullability."""

    scalar: ScalarType
    nullable: bool = False

    def render(self) -> str:
        if self.nullable:
            return f"Optional[{self.scalar.value}]"
        return self.scalar.value

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class EnumTypeRef:
    """Reference to a generated enum class."""

    type_name: str
    module: str
    fully_qualified_reference: str
    values: Tuple[str, ...] = ()
    table_name: str = ""
    column_name: str = ""

    @property
    def import_line(self) -> str:
        return f"from {self.module} import {self.type_name}"


@dataclass(frozen=True)
class ColumnMeta:
    """A column mapped to an entity property."""

    name: str
    property_name: str
    scalar_type: TypeRef
    storage_type_tag: StorageTag
    nullable: bool
    raw_type: str = ""
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    default: Optional[str] = None
    auto_increment: bool = False
    comment: Optional[str] = None
    is_primary: bool = False
    is_foreign_key: bool = False
    needs_init_callback: bool = False
    enum_values: Optional[Tuple[str, ...]] = None
    set_values: Optional[Tuple[str, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "property_name": self.property_name,
            "scalar_type": self.scalar_type.render(),
            "storage_type_tag": self.storage_type_tag.value,
            "nullable": self.nullable,
            "raw_type": self.raw_type,
            "length": self.length,
            "precision": self.precision,
            "scale": self.scale,
            "default": self.default,
            "auto_increment": self.auto_increment,
            "comment": self.comment,
            "is_primary": self.is_primary,
            "is_foreign_key": self.is_foreign_key,
            "needs_init_callback": self.needs_init_callback,
            "enum_values": list(self.enum_values) if self.enum_values else None,
            "set_values": list(self.set_values) if self.set_values else None,
        }


@dataclass(frozen=True)
class ManyToOne:
    """Relation owned by a foreign key on this table."""

    target_entity: str
    target_table: str
    local_columns: Tuple[str, ...]
    foreign_columns: Tuple[str, ...]
    property_name: str
    on_delete: str = "RESTRICT"
    on_update: str = "RESTRICT"
    nullable: bool = True
    is_self_referencing: bool = False
    inversed_by: Optional[str] = None  # OneToMany property on the target, if any

    kind = "many_to_one"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind,
            "target_entity": self.target_entity,
            "target_table": self.target_table,
            "local_columns": list(self.local_columns),
            "foreign_columns": list(self.foreign_columns),
            "property_name": self.property_name,
            "on_delete": self.on_delete,
            "on_update": self.on_update,
            "nullable": self.nullable,
            "is_self_referencing": self.is_self_referencing,
            "inversed_by": self.inversed_by,
        }


@dataclass(frozen=True)
class OneToMany:
    """Collection of rows in another table whose foreign key points here."""

    target_entity: str
    target_table: str
    property_name: str
    mapped_by: str
    is_self_referencing: bool = False
    foreign_key_columns: Tuple[str, ...] = ()
    referenced_columns: Tuple[str, ...] = ()

    kind = "one_to_many"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind,
            "target_entity": self.target_entity,
            "target_table": self.target_table,
            "property_name": self.property_name,
            "mapped_by": self.mapped_by,
            "is_self_referencing": self.is_self_referencing,
            "foreign_key_columns": list(self.foreign_key_columns),
            "referenced_columns": list(self.referenced_columns),
        }


@dataclass(frozen=True)
class ManyToMany:
    """Pairwise relation synthesised from a junction table."""

    target_entity: str
    target_table: str
    property_name: str
    junction_table: str
    is_owning_side: bool
    mapped_by: Optional[str] = None
    inversed_by: Optional[str] = None
    join_columns: Tuple[str, ...] = ()
    inverse_join_columns: Tuple[str, ...] = ()
    is_self_referencing: bool = False

    kind = "many_to_many"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind,
            "target_entity": self.target_entity,
            "target_table": self.target_table,
            "property_name": self.property_name,
            "junction_table": self.junction_table,
            "is_owning_side": self.is_owning_side,
            "mapped_by": self.mapped_by,
            "inversed_by": self.inversed_by,
            "join_columns": list(self.join_columns),
            "inverse_join_columns": list(self.inverse_join_columns),
            "is_self_referencing": self.is_self_referencing,
        }


RelationMeta = Union[ManyToOne, OneToMany, ManyToMany]


@dataclass(frozen=True)
class IndexMeta:
    """Non-primary index."""

    name: str
    columns: Tuple[str, ...]
    unique: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "columns": list(self.columns), "unique": self.unique}


@dataclass(frozen=True)
class TableMetadata:
    """Complete, immutable description of one entity."""

    table_name: str
    entity_name: str
    repository_name: str
    columns: Tuple[ColumnMeta, ...]
    relations: Tuple[RelationMeta, ...] = ()
    indexes: Tuple[IndexMeta, ...] = ()
    primary_key: Tuple[str, ...] = ()
    foreign_key_columns: Tuple[ColumnMeta, ...] = ()
    has_lifecycle_callbacks: bool = False
    enum_types: Tuple[EnumTypeRef, ...] = ()
    imports: Tuple[str, ...] = field(default=())

    def relations_of(self, kind: str) -> Tuple[RelationMeta, ...]:
        return tuple(r for r in self.relations if r.kind == kind)

    @property
    def many_to_one(self) -> Tuple[ManyToOne, ...]:
        return self.relations_of(ManyToOne.kind)  # type: ignore[return-value]

    @property
    def one_to_many(self) -> Tuple[OneToMany, ...]:
        return self.relations_of(OneToMany.kind)  # type: ignore[return-value]

    @property
    def many_to_many(self) -> Tuple[ManyToMany, ...]:
        return self.relations_of(ManyToMany.kind)  # type: ignore[return-value]

    def relation(self, property_name: str) -> Optional[RelationMeta]:
        for relation in self.relations:
            if relation.property_name == property_name:
                return relation
        return None

    def column(self, name: str) -> Optional[ColumnMeta]:
        for column in self.columns + self.foreign_key_columns:
            if column.name == name:
                return column
        return None

    @property
    def property_names(self) -> Tuple[str, ...]:
        return tuple(c.property_name for c in self.columns) + tuple(
            r.property_name for r in self.relations
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table_name": self.table_name,
            "entity_name": self.entity_name,
            "repository_name": self.repository_name,
            "columns": [c.to_dict() for c in self.columns],
            "foreign_key_columns": [c.to_dict() for c in self.foreign_key_columns],
            "relations": [r.to_dict() for r in self.relations],
            "indexes": [i.to_dict() for i in self.indexes],
            "primary_key": list(self.primary_key),
            "has_lifecycle_callbacks": self.has_lifecycle_callbacks,
            "enum_types": [e.fully_qualified_reference for e in self.enum_types],
            "imports": list(self.imports),
        }

    def __repr__(self) -> str:
        return (
            f"TableMetadata({self.table_name} -> {self.entity_name}, "
            f"columns={len(self.columns)}, relations={len(self.relations)})"
        )
