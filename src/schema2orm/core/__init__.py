"""Core modules for schema2orm."""

# Re-export all public APIs
from schema2orm.core.catalog import CatalogContext
from schema2orm.core.extractor import MetadataExtractor, collect_imports
from schema2orm.core.junction import JunctionInfo, JunctionTableClassifier
from schema2orm.core.metadata import (
    ColumnMeta,
    EnumTypeRef,
    IndexMeta,
    ManyToMany,
    ManyToOne,
    OneToMany,
    ScalarType,
    StorageTag,
    TableMetadata,
    TypeRef,
)
from schema2orm.core.relations import RelationshipResolver, ResolverSettings
from schema2orm.core.schema import ColumnFacts, ForeignKeyFacts, IndexFacts, TableDetails
from schema2orm.core.type_mapper import TypeMapper, TypeMappingConfig

__all__ = [
    # Catalog facts
    "ColumnFacts",
    "ForeignKeyFacts",
    "IndexFacts",
    "TableDetails",
    "CatalogContext",
    # Metadata
    "ColumnMeta",
    "EnumTypeRef",
    "IndexMeta",
    "ManyToMany",
    "ManyToOne",
    "OneToMany",
    "ScalarType",
    "StorageTag",
    "TableMetadata",
    "TypeRef",
    # Engine
    "JunctionInfo",
    "JunctionTableClassifier",
    "MetadataExtractor",
    "RelationshipResolver",
    "ResolverSettings",
    "TypeMapper",
    "TypeMappingConfig",
    "collect_imports",
]
