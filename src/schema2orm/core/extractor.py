"""Assembly of per-table entity metadata from catalog facts."""

from __future__ import annotations

import re
from collections import defaultdict
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from schema2orm.exceptions import (
    EntityNameCollisionError,
    MetadataExtractionError,
)
from schema2orm.utils.logging import get_logger
from schema2orm.core.catalog import CatalogContext
from schema2orm.core.junction import JunctionTableClassifier
from schema2orm.core.metadata.types import (
    ColumnMeta,
    EnumTypeRef,
    IndexMeta,
    ScalarType,
    TableMetadata,
)
from schema2orm.core.naming import column_to_property_name, repository_name, table_to_entity_name
from schema2orm.core.relations import RelationshipResolver
from schema2orm.core.schema.types import ColumnFacts, TableDetails
from schema2orm.core.type_mapper import TypeMapper, parse_type_parameters

if TYPE_CHECKING:
    from schema2orm.connectors.base import BaseConnector
    from schema2orm.generation.enum_generator import EnumClassGenerator

logger = get_logger(__name__)

MAPPING_IMPORT = "from sqlalchemy.orm import Mapped, mapped_column"
INSTANT_IMPORT = "from datetime import datetime"
LIFECYCLE_IMPORT = "from sqlalchemy import event"

_CURRENT_TIMESTAMP = re.compile(r"^current_timestamp(\(\d*\))?$", re.IGNORECASE)


def enrich_comment(comment: Optional[str], label: str, values: Sequence[str]) -> str:
    """Append the allowed values to a column comment."""
    documented = f"{label}: " + ", ".join(f"'{v}'" for v in values)
    if comment:
        return f"{comment} - {documented}"
    return documented


def is_current_timestamp(default: Optional[str]) -> bool:
    if default is None:
        return False
    return bool(_CURRENT_TIMESTAMP.match(default.strip()))


def collect_imports(
    columns: Iterable[ColumnMeta],
    has_lifecycle_callbacks: bool,
    enum_types: Iterable[EnumTypeRef] = (),
) -> Tuple[str, ...]:
    """Ordered, de-duplicated import lines an entity module needs.

    Args:
        columns: Every column of the entity, FK-owned ones included
        has_lifecycle_callbacks: Whether an init hook is emitted
        enum_types: Enum classes referenced by the entity

    Returns:
        Import lines
    """
    imports: List[str] = [MAPPING_IMPORT]
    if any(c.scalar_type.scalar is ScalarType.INSTANT for c in columns):
        imports.append(INSTANT_IMPORT)
    if has_lifecycle_callbacks:
        imports.append(LIFECYCLE_IMPORT)
    for ref in enum_types:
        imports.append(ref.import_line)
    return tuple(dict.fromkeys(imports))


def check_entity_names(metadata: Iterable[TableMetadata]) -> None:
    """Raise if two tables normalise to the same entity name.

    Raises:
        EntityNameCollisionError: On the first colliding entity name
    """
    by_entity: Dict[str, List[str]] = defaultdict(list)
    for table in metadata:
        by_entity[table.entity_name].append(table.table_name)
    for entity_name, tables in by_entity.items():
        if len(tables) > 1:
            raise EntityNameCollisionError(entity_name, sorted(tables))


class MetadataExtractor:
    """Turns catalog facts into immutable TableMetadata."""

    def __init__(
        self,
        connector: BaseConnector,
        type_mapper: Optional[TypeMapper] = None,
        resolver: Optional[RelationshipResolver] = None,
        classifier: Optional[JunctionTableClassifier] = None,
        enum_generator: Optional[EnumClassGenerator] = None,
    ):
        """Initialize the extractor.

        Args:
            connector: Catalog facts provider
            type_mapper: Type mapper; defaults to one without overrides
            resolver: Relationship resolver; defaults to built-in naming policy
            classifier: Junction classifier shared with the resolver
            enum_generator: When set, enumerated columns get an enum class
        """
        self.connector = connector
        self.type_mapper = type_mapper or TypeMapper()
        self.classifier = classifier or JunctionTableClassifier()
        self.resolver = resolver or RelationshipResolver(classifier=self.classifier)
        self.enum_generator = enum_generator

    def create_context(self, all_tables: Iterable[str]) -> CatalogContext:
        """New per-run catalog context."""
        return CatalogContext(self.connector, all_tables, self.classifier)

    def is_junction_table(
        self, table_name: str, all_tables: Optional[Iterable[str]] = None
    ) -> bool:
        context = self._context_for(table_name, all_tables, None)
        context.details(table_name)
        return context.junction(table_name) is not None

    def extract_table_metadata(
        self,
        table_name: str,
        all_tables: Optional[Iterable[str]] = None,
        context: Optional[CatalogContext] = None,
    ) -> Optional[TableMetadata]:
        """Extract the metadata of one table.

        Args:
            table_name: Table to extract
            all_tables: Tables taking part in the run; defaults to every
                table the connector lists
            context: Run context to share caches across tables

        Returns:
            TableMetadata, or None if the table is a pure junction

        Raises:
            MetadataExtractionError: Wrapping whatever prevented extraction
        """
        logger.debug(f"Extracting metadata for table {table_name}")
        try:
            context = self._context_for(table_name, all_tables, context)
            details = context.details(table_name)

            if context.junction(table_name) is not None:
                logger.info(f"Table {table_name} is a junction table, no entity generated")
                return None

            return self._assemble(details, context)
        except MetadataExtractionError:
            raise
        except Exception as e:
            logger.error(f"Metadata extraction failed for table {table_name}: {e}")
            raise MetadataExtractionError(
                f"Failed to extract metadata for table '{table_name}': {e}",
                table_name=table_name,
            ) from e

    def extract_all(self, tables: Sequence[str]) -> Dict[str, TableMetadata]:
        """Extract every table in one run context, junction tables skipped.

        Raises:
            MetadataExtractionError: If any table fails
            EntityNameCollisionError: If two tables map to one entity name
        """
        context = self.create_context(tables)
        results: Dict[str, TableMetadata] = {}
        for table_name in tables:
            metadata = self.extract_table_metadata(table_name, context=context)
            if metadata is not None:
                results[table_name] = metadata
        check_entity_names(results.values())
        logger.info(f"Extracted metadata for {len(results)} of {len(tables)} tables")
        return results

    def _context_for(
        self,
        table_name: str,
        all_tables: Optional[Iterable[str]],
        context: Optional[CatalogContext],
    ) -> CatalogContext:
        if context is not None:
            return context
        tables = list(all_tables) if all_tables is not None else self.connector.get_table_names()
        if table_name not in tables:
            tables.append(table_name)
        return self.create_context(tables)

    def _assemble(self, details: TableDetails, context: CatalogContext) -> TableMetadata:
        table_name = details.name
        fk_column_names: Set[str] = set(details.foreign_key_columns)
        primary_key = details.primary_key

        columns: List[ColumnMeta] = []
        fk_columns: List[ColumnMeta] = []
        enum_types: List[EnumTypeRef] = []

        for column in details.columns:
            meta = self._process_column(column, primary_key, fk_column_names)
            if meta.is_foreign_key:
                fk_columns.append(meta)
                continue
            columns.append(meta)
            if meta.enum_values and self.enum_generator is not None:
                enum_types.append(
                    self.enum_generator.request_enum_type(
                        table_name, column.name, meta.enum_values
                    )
                )

        relations = self.resolver.resolve(table_name, context)
        indexes = tuple(
            IndexMeta(name=i.name, columns=i.columns, unique=i.unique)
            for i in details.indexes
            if not i.primary
        )
        has_callbacks = any(c.needs_init_callback for c in columns + fk_columns)
        enum_refs = tuple(dict.fromkeys(enum_types))

        metadata = TableMetadata(
            table_name=table_name,
            entity_name=table_to_entity_name(table_name),
            repository_name=repository_name(table_name),
            columns=tuple(columns),
            relations=relations,
            indexes=indexes,
            primary_key=tuple(primary_key),
            foreign_key_columns=tuple(fk_columns),
            has_lifecycle_callbacks=has_callbacks,
            enum_types=enum_refs,
            imports=collect_imports(columns + fk_columns, has_callbacks, enum_refs),
        )
        logger.info(
            f"Extracted {table_name}: {len(columns)} columns, "
            f"{len(relations)} relations, {len(indexes)} indexes"
        )
        return metadata

    def _process_column(
        self,
        column: ColumnFacts,
        primary_key: Sequence[str],
        fk_column_names: Set[str],
    ) -> ColumnMeta:
        type_to_map = column.type_to_map
        scalar = self.type_mapper.map_scalar(type_to_map)
        storage_tag = self.type_mapper.map_storage_tag(type_to_map)
        is_primary = column.name in primary_key

        length, precision, scale = column.length, column.precision, column.scale
        if length is None and precision is None and scale is None:
            length, precision, scale = parse_type_parameters(column.raw_type)

        comment = column.comment
        if column.enum_values:
            comment = enrich_comment(comment, "Possible values", column.enum_values)
        if column.set_values:
            comment = enrich_comment(comment, "Possible SET values", column.set_values)

        return ColumnMeta(
            name=column.name,
            property_name=column_to_property_name(column.name),
            scalar_type=self.type_mapper.compose(
                scalar, storage_tag, column.nullable, is_primary
            ),
            storage_type_tag=storage_tag,
            nullable=column.nullable,
            raw_type=column.raw_type or column.type,
            length=length,
            precision=precision,
            scale=scale,
            default=column.default,
            auto_increment=column.auto_increment,
            comment=comment,
            is_primary=is_primary,
            is_foreign_key=column.name in fk_column_names,
            needs_init_callback=storage_tag.is_datetime_like
            and is_current_timestamp(column.default),
            enum_values=column.enum_values,
            set_values=column.set_values,
        )
