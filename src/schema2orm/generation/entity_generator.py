"""Rendering of SQLAlchemy declarative modules from table metadata.

EntityGenerator turns TableMetadata into template contexts. The layout of
every module lives in the Jinja2 templates under ``templates/``.
"""

from __future__ import annotations

import keyword
import re
from dataclasses import dataclass
from typing import Any, Collection, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from jinja2 import TemplateError

from schema2orm.core.metadata.types import (
    ColumnMeta,
    EnumTypeRef,
    ManyToMany,
    ManyToOne,
    OneToMany,
    RelationMeta,
    StorageTag,
    TableMetadata,
)
from schema2orm.core.naming import (
    column_to_property_name,
    singularize_word,
    table_to_entity_name,
    to_snake_case,
)
from schema2orm.core.schema.types import TableDetails
from schema2orm.core.type_mapper import TypeMapper
from schema2orm.exceptions import EntityGenerationError
from schema2orm.generation.templating import render_template
from schema2orm.utils.logging import get_logger

logger = get_logger(__name__)

# Attribute names DeclarativeBase reserves on mapped classes
RESERVED_ATTRIBUTES = frozenset({"metadata", "registry", "query"})

_NON_IDENTIFIER = re.compile(r"\W")

_SQL_EXPRESSION_DEFAULT = re.compile(
    r"^(-?\d+(\.\d+)?|current_(timestamp|date|time)(\(\d*\))?|now\(\)|null|true|false)$",
    re.IGNORECASE,
)

# storage tag -> SQLAlchemy type class
_STORAGE_TYPES: Dict[StorageTag, str] = {
    StorageTag.INTEGER: "Integer",
    StorageTag.SMALLINT: "SmallInteger",
    StorageTag.BIGINT: "BigInteger",
    StorageTag.FLOAT: "Float",
    StorageTag.DECIMAL: "Numeric",
    StorageTag.BOOLEAN: "Boolean",
    StorageTag.DATE: "Date",
    StorageTag.DATETIME: "DateTime",
    StorageTag.TIME: "Time",
    StorageTag.JSON: "JSON",
    StorageTag.STRING: "String",
    StorageTag.TEXT: "Text",
    StorageTag.BLOB: "LargeBinary",
    StorageTag.BINARY: "LargeBinary",
    StorageTag.UUID: "Uuid",
}


@dataclass(frozen=True)
class GeneratedFile:
    """One rendered module."""

    kind: str  # entity, repository, enum or support
    name: str  # class or module name
    filename: str
    content: str


def python_identifier(value: str) -> str:
    """Replace characters identifiers cannot hold with ``_``; prefix a leading digit."""
    name = _NON_IDENTIFIER.sub("_", value)
    if not name or name[0].isdigit():
        name = f"_{name}"
    return name


def attribute_name(property_name: str) -> str:
    """Python attribute for a property.

    Characters identifiers cannot hold become underscores. Python keywords
    and names the declarative base reserves get a trailing underscore.
    """
    name = python_identifier(property_name)
    if keyword.iskeyword(name) or name in RESERVED_ATTRIBUTES:
        return f"{name}_"
    return name


def module_name(entity_name: str) -> str:
    return to_snake_case(entity_name)


class EntityGenerator:
    """Prepares template contexts for entity, repository and support modules.

    Rendering is a pure function of the metadata it is given.
    """

    def __init__(
        self,
        entity_package: str = "app.entity",
        repository_package: str = "app.repository",
        generate_repository: bool = True,
        type_mapper: Optional[TypeMapper] = None,
    ):
        """Initialize generator.

        Args:
            entity_package: Dotted package the entity modules live in
            repository_package: Dotted package the repository modules live in
            generate_repository: Whether repository modules are rendered
            type_mapper: Mapper used for junction table columns
        """
        self.entity_package = entity_package
        self.repository_package = repository_package
        self.generate_repository_classes = generate_repository
        self.type_mapper = type_mapper or TypeMapper()

    # ------------------------------------------------------------------
    # Entity module
    # ------------------------------------------------------------------

    def generate_entity(
        self, metadata: TableMetadata, known_entities: Optional[Collection[str]] = None
    ) -> str:
        """Render the module of one entity.

        Args:
            metadata: Assembled table metadata
            known_entities: Entities generated alongside this one. Relations to
                any other entity are left out. ``None`` keeps every relation.

        Returns:
            Python source of the entity module

        Raises:
            EntityGenerationError: If the entity cannot be rendered
        """
        try:
            return self._render_entity(metadata, known_entities)
        except (KeyError, TypeError, ValueError, AttributeError, TemplateError) as e:
            logger.error(f"Entity generation failed for {metadata.table_name}: {e}")
            raise EntityGenerationError(
                f"Entity generation failed for table '{metadata.table_name}': {e}"
            ) from e

    def _render_entity(
        self, metadata: TableMetadata, known_entities: Optional[Collection[str]] = None
    ) -> str:
        return render_template(
            "entity.py.j2", **self.prepare_entity_data(metadata, known_entities)
        )

    def prepare_entity_data(
        self, metadata: TableMetadata, known_entities: Optional[Collection[str]] = None
    ) -> Dict[str, Any]:
        """Template context of an entity module."""
        entity = metadata.entity_name
        relations, skipped = self._split_relations(metadata, known_entities)
        enum_refs = self._enum_refs_by_column(metadata)
        sa_names: Set[str] = set()
        typing_names: Set[str] = set()

        foreign_keys = self._foreign_key_targets(relations)
        unmapped = self._foreign_key_targets(skipped)
        columns = [
            self._prepare_column(
                metadata.table_name,
                column,
                enum_refs.get(column.name),
                foreign_keys,
                unmapped,
                sa_names,
                typing_names,
            )
            for column in self._ordered_columns(metadata)
        ]
        indexes = self._prepare_indexes(metadata, sa_names)
        relation_data = self.prepare_relations(metadata, relations, typing_names)

        imports = list(metadata.imports)
        if typing_names:
            imports.append(f"from typing import {', '.join(sorted(typing_names))}")
        if sa_names:
            imports.append(f"from sqlalchemy import {', '.join(sorted(sa_names))}")
        if relation_data:
            imports.append("from sqlalchemy.orm import relationship")
        imports.append(f"from {self.entity_package}.base import Base")

        return {
            "entity": entity,
            "table_name": metadata.table_name,
            "module": module_name(entity),
            "imports": list(dict.fromkeys(imports)),
            "constants": self._value_constants(metadata, enum_refs),
            "indexes": indexes,
            "columns": columns,
            "relations": relation_data,
            "helpers": self._collection_helpers(relations),
            "repr_text": self._repr_text(metadata),
            "init_attributes": [
                attribute_name(c.property_name)
                for c in self._ordered_columns(metadata)
                if c.needs_init_callback
            ],
        }

    @staticmethod
    def _split_relations(
        metadata: TableMetadata, known_entities: Optional[Collection[str]]
    ) -> Tuple[List[RelationMeta], List[RelationMeta]]:
        """Relations to emit, and relations whose target is not generated."""
        if known_entities is None:
            return list(metadata.relations), []
        emitted: List[RelationMeta] = []
        skipped: List[RelationMeta] = []
        for relation in metadata.relations:
            if relation.target_entity in known_entities:
                emitted.append(relation)
                continue
            logger.warning(
                f"{metadata.entity_name}.{relation.property_name} left unmapped: "
                f"entity {relation.target_entity} ({relation.target_table}) is not generated"
            )
            skipped.append(relation)
        return emitted, skipped

    @staticmethod
    def _enum_refs_by_column(metadata: TableMetadata) -> Dict[str, EnumTypeRef]:
        return {
            ref.column_name: ref
            for ref in metadata.enum_types
            if ref.table_name == metadata.table_name
        }

    @staticmethod
    def _ordered_columns(metadata: TableMetadata) -> List[ColumnMeta]:
        # Scalar columns first so relationship(foreign_keys=[...]) can refer back
        return list(metadata.columns) + list(metadata.foreign_key_columns)

    @staticmethod
    def _value_constants(
        metadata: TableMetadata, enum_refs: Dict[str, EnumTypeRef]
    ) -> List[Dict[str, str]]:
        constants: List[Dict[str, str]] = []
        for column in metadata.columns:
            values = None
            if column.enum_values and column.name not in enum_refs:
                values = column.enum_values
            elif column.set_values:
                values = column.set_values
            if values:
                constants.append(
                    {
                        "name": f"{python_identifier(column.name).upper()}_VALUES",
                        "literals": ", ".join(repr(v) for v in values),
                    }
                )
        return constants

    @staticmethod
    def _prepare_indexes(metadata: TableMetadata, sa_names: Set[str]) -> List[Dict[str, Any]]:
        if metadata.indexes:
            sa_names.add("Index")
        return [
            {
                "name": index.name,
                "columns": ", ".join(f'"{c}"' for c in index.columns),
                "unique": index.unique,
            }
            for index in metadata.indexes
        ]

    @staticmethod
    def _foreign_key_targets(
        relations: Iterable[RelationMeta],
    ) -> Dict[str, Tuple[str, ManyToOne]]:
        """Local column -> ("table.column", relation) for single-column foreign keys."""
        targets: Dict[str, Tuple[str, ManyToOne]] = {}
        for relation in relations:
            if not isinstance(relation, ManyToOne):
                continue
            for local, foreign in zip(relation.local_columns, relation.foreign_columns):
                targets.setdefault(local, (f"{relation.target_table}.{foreign}", relation))
        return targets

    @staticmethod
    def _column_type(
        column: ColumnMeta,
        enum_ref: Optional[EnumTypeRef],
        table_name: str,
        sa_names: Set[str],
    ) -> str:
        if enum_ref is not None:
            sa_names.add("Enum")
            return (
                f'Enum({enum_ref.type_name}, name="{table_name}_{column.name}", '
                f"values_callable=lambda e: [m.value for m in e])"
            )
        if column.enum_values:
            sa_names.add("Enum")
            values = ", ".join(repr(v) for v in column.enum_values)
            return f'Enum({values}, name="{table_name}_{column.name}")'

        type_name = _STORAGE_TYPES.get(column.storage_type_tag, "String")
        sa_names.add(type_name)
        if column.storage_type_tag is StorageTag.DECIMAL and column.precision is not None:
            scale = column.scale if column.scale is not None else 0
            return f"{type_name}({column.precision}, {scale})"
        if column.storage_type_tag in (StorageTag.STRING, StorageTag.BINARY) and column.length:
            return f"{type_name}({column.length})"
        if column.storage_type_tag is StorageTag.DATETIME and "zone" in column.raw_type.lower():
            return f"{type_name}(timezone=True)"
        return type_name

    def _prepare_column(
        self,
        table_name: str,
        column: ColumnMeta,
        enum_ref: Optional[EnumTypeRef],
        foreign_keys: Dict[str, Tuple[str, ManyToOne]],
        unmapped: Dict[str, Tuple[str, ManyToOne]],
        sa_names: Set[str],
        typing_names: Set[str],
    ) -> Dict[str, Any]:
        annotation = enum_ref.type_name if enum_ref else column.scalar_type.scalar.value
        if column.scalar_type.nullable:
            annotation = f"Optional[{annotation}]"
            typing_names.add("Optional")

        args = [f'"{column.name}"', self._column_type(column, enum_ref, table_name, sa_names)]
        target = foreign_keys.get(column.name)
        if target is not None:
            sa_names.add("ForeignKey")
            reference, relation = target
            fk_options = ""
            if relation.on_delete and relation.on_delete != "RESTRICT":
                fk_options += f', ondelete="{relation.on_delete}"'
            if relation.on_update and relation.on_update != "RESTRICT":
                fk_options += f', onupdate="{relation.on_update}"'
            args.append(f'ForeignKey("{reference}"{fk_options})')

        if column.is_primary:
            args.append("primary_key=True")
        if column.auto_increment:
            args.append("autoincrement=True")
        if not column.is_primary and column.nullable != column.scalar_type.nullable:
            args.append(f"nullable={column.nullable}")
        if column.default is not None:
            args.append(self._server_default(column.default, sa_names))
        if column.comment:
            args.append(f"comment={column.comment!r}")

        note = None
        if target is None and column.name in unmapped:
            note = f"references {unmapped[column.name][0]}, which has no generated entity"

        return {
            "attribute": attribute_name(column.property_name),
            "annotation": annotation,
            "args": args,
            "note": note,
        }

    @staticmethod
    def _server_default(default: str, sa_names: Set[str]) -> str:
        if _SQL_EXPRESSION_DEFAULT.match(default.strip()):
            sa_names.add("text")
            return f'server_default=text("{default.strip()}")'
        return f"server_default={default!r}"

    def prepare_relations(
        self,
        metadata: TableMetadata,
        relations: Sequence[RelationMeta],
        typing_names: Set[str],
    ) -> List[Dict[str, Any]]:
        """Template context of each ``relationship()`` attribute."""
        prepared: List[Dict[str, Any]] = []
        entity = metadata.entity_name
        for relation in relations:
            if isinstance(relation, ManyToOne):
                annotation = f'"{relation.target_entity}"'
                if relation.nullable:
                    typing_names.add("Optional")
                    annotation = f'Optional["{relation.target_entity}"]'
                local = ", ".join(
                    attribute_name(column_to_property_name(c)) for c in relation.local_columns
                )
                args = [f"foreign_keys=[{local}]"]
                if relation.inversed_by:
                    args.insert(0, f'back_populates="{attribute_name(relation.inversed_by)}"')
                if relation.is_self_referencing:
                    remote = ", ".join(
                        f"{entity}.{attribute_name(column_to_property_name(c))}"
                        for c in relation.foreign_columns
                    )
                    args.append(f'remote_side="[{remote}]"')
            elif isinstance(relation, OneToMany):
                typing_names.add("List")
                annotation = f'List["{relation.target_entity}"]'
                fks = ", ".join(
                    f"{relation.target_entity}.{attribute_name(column_to_property_name(c))}"
                    for c in relation.foreign_key_columns
                )
                args = [
                    f'back_populates="{attribute_name(relation.mapped_by)}"',
                    f'foreign_keys="[{fks}]"',
                ]
            elif isinstance(relation, ManyToMany):
                typing_names.add("List")
                annotation = f'List["{relation.target_entity}"]'
                args = [f'secondary="{relation.junction_table}"']
                other = relation.inversed_by if relation.is_owning_side else relation.mapped_by
                if other:
                    args.append(f'back_populates="{attribute_name(other)}"')
                if relation.is_self_referencing:
                    args.extend(self._self_join_conditions(metadata, relation))
            else:
                raise TypeError(f"Unknown relation type: {type(relation).__name__}")

            prepared.append(
                {
                    "attribute": attribute_name(relation.property_name),
                    "annotation": annotation,
                    "args": args,
                }
            )
        return prepared

    @staticmethod
    def _self_join_conditions(metadata: TableMetadata, relation: ManyToMany) -> List[str]:
        entity = metadata.entity_name
        pk = [attribute_name(column_to_property_name(c)) for c in metadata.primary_key] or ["id"]
        junction = relation.junction_table

        def condition(columns: Sequence[str]) -> str:
            parts = [
                f"{entity}.{pk[min(i, len(pk) - 1)]} == {junction}.c.{col}"
                for i, col in enumerate(columns)
            ]
            return " & ".join(f"({p})" for p in parts) if len(parts) > 1 else parts[0]

        return [
            f'primaryjoin="{condition(relation.join_columns)}"',
            f'secondaryjoin="{condition(relation.inverse_join_columns)}"',
        ]

    @staticmethod
    def _collection_helpers(relations: Iterable[RelationMeta]) -> List[Dict[str, str]]:
        helpers: List[Dict[str, str]] = []
        for relation in relations:
            if isinstance(relation, ManyToOne):
                continue
            item = to_snake_case(singularize_word(relation.property_name))
            if item == to_snake_case(relation.property_name):
                item = f"{item}_item"
            helpers.append(
                {
                    "item": attribute_name(item),
                    "collection": attribute_name(relation.property_name),
                    "target": relation.target_entity,
                }
            )
        return helpers

    @staticmethod
    def _repr_text(metadata: TableMetadata) -> str:
        keys = [attribute_name(column_to_property_name(c)) for c in metadata.primary_key]
        fields = ", ".join(f"{k}={{self.{k}!r}}" for k in keys)
        return f"<{metadata.entity_name} {fields}>" if fields else f"<{metadata.entity_name}>"

    # ------------------------------------------------------------------
    # Repository, base and package modules
    # ------------------------------------------------------------------

    def generate_repository(self, metadata: TableMetadata) -> str:
        """Render the session-bound repository of an entity."""
        entity = metadata.entity_name
        composite = len(metadata.primary_key) > 1
        return render_template(
            "repository.py.j2",
            entity=entity,
            repository=metadata.repository_name,
            module=module_name(entity),
            entity_package=self.entity_package,
            identity="*ident: Any" if composite else "ident: Any",
        )

    @staticmethod
    def generate_base() -> str:
        return render_template("base.py.j2")

    def generate_associations(self, junctions: Iterable[TableDetails]) -> str:
        """Render ``Table`` objects for junction tables used as ``secondary``."""
        sa_names = {"Column", "ForeignKey", "Table"}
        tables: List[Dict[str, Any]] = []

        for details in junctions:
            references = {}
            for fk in details.foreign_keys:
                for local, foreign in zip(fk.local_columns, fk.foreign_columns):
                    references[local] = f"{fk.foreign_table}.{foreign}"

            columns: List[List[str]] = []
            for column in details.columns:
                tag = self.type_mapper.map_storage_tag(column.type_to_map)
                type_name = _STORAGE_TYPES.get(tag, "String")
                sa_names.add(type_name)
                args = [f'"{column.name}"', type_name]
                if column.name in references:
                    args.append(f'ForeignKey("{references[column.name]}")')
                if column.name in details.primary_key:
                    args.append("primary_key=True")
                elif not column.nullable:
                    args.append("nullable=False")
                columns.append(args)

            tables.append(
                {
                    "variable": python_identifier(
                        f"{to_snake_case(table_to_entity_name(details.name))}_table"
                    ),
                    "name": details.name,
                    "columns": columns,
                }
            )

        return render_template(
            "associations.py.j2",
            sa_names=sorted(sa_names),
            entity_package=self.entity_package,
            tables=tables,
        )

    def generate_package_init(
        self, metadata: Sequence[TableMetadata], has_associations: bool = False
    ) -> str:
        """Render the entity package ``__init__`` importing every entity."""
        entities = [
            {"name": table.entity_name, "module": module_name(table.entity_name)}
            for table in sorted(metadata, key=lambda m: m.entity_name)
        ]
        return render_template(
            "package_init.py.j2",
            entity_package=self.entity_package,
            has_associations=has_associations,
            entities=entities,
        )

    def generate_all(
        self,
        metadata: Sequence[TableMetadata],
        junctions: Sequence[TableDetails] = (),
    ) -> List[GeneratedFile]:
        """Render every entity plus support modules.

        Relations are only emitted between entities of ``metadata``.

        Args:
            metadata: Assembled metadata of the non-junction tables
            junctions: Catalog facts of the junction tables

        Returns:
            Generated files; entity and support files first, then repositories
        """
        known_entities = {table.entity_name for table in metadata}
        files: List[GeneratedFile] = [
            GeneratedFile("support", "base", "base.py", self.generate_base())
        ]
        if junctions:
            files.append(
                GeneratedFile(
                    "support", "associations", "associations.py",
                    self.generate_associations(junctions),
                )
            )

        for table in metadata:
            files.append(
                GeneratedFile(
                    "entity",
                    table.entity_name,
                    f"{module_name(table.entity_name)}.py",
                    self.generate_entity(table, known_entities),
                )
            )

        files.append(
            GeneratedFile(
                "support",
                "__init__",
                "__init__.py",
                self.generate_package_init(metadata, has_associations=bool(junctions)),
            )
        )

        if self.generate_repository_classes:
            for table in metadata:
                files.append(
                    GeneratedFile(
                        "repository",
                        table.repository_name,
                        f"{module_name(table.entity_name)}_repository.py",
                        self.generate_repository(table),
                    )
                )

        logger.info(f"Rendered {len(files)} files for {len(metadata)} entities")
        return files
