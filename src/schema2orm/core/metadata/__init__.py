"""Assembled entity metadata."""

from schema2orm.core.metadata.types import (
    ColumnMeta,
    EnumTypeRef,
    IndexMeta,
    ManyToMany,
    ManyToOne,
    OneToMany,
    RelationMeta,
    ScalarType,
    StorageTag,
    TableMetadata,
    TypeRef,
)

__all__ = [
    "ColumnMeta",
    "EnumTypeRef",
    "IndexMeta",
    "ManyToMany",
    "ManyToOne",
    "OneToMany",
    "RelationMeta",
    "ScalarType",
    "StorageTag",
    "TableMetadata",
    "TypeRef",
]
