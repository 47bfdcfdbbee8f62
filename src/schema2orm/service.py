"""End-to-end orchestration: catalog -> metadata -> code -> files."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from schema2orm.connectors.base import BaseConnector
from schema2orm.connectors.registry import ConnectorFactory
from schema2orm.core.extractor import MetadataExtractor, check_entity_names
from schema2orm.core.junction import DEFAULT_MAX_METADATA_COLUMNS, JunctionTableClassifier
from schema2orm.core.metadata.types import TableMetadata
from schema2orm.core.naming import to_snake_case
from schema2orm.core.relations import RelationshipResolver, ResolverSettings
from schema2orm.core.schema.types import TableDetails
from schema2orm.core.type_mapper import TypeMapper, TypeMappingConfig
from schema2orm.exceptions import (
    MetadataExtractionError,
    ReverseEngineeringError,
)
from schema2orm.generation.entity_generator import EntityGenerator, GeneratedFile
from schema2orm.generation.enum_generator import EnumClassGenerator
from schema2orm.generation.file_writer import FileWriter
from schema2orm.utils.config import Config, get_config
from schema2orm.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class GenerationResult:
    """Outcome of one generation run."""

    entities: List[str] = field(default_factory=list)
    generated: List[GeneratedFile] = field(default_factory=list)
    files: List[Path] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)
    junction_tables: List[str] = field(default_factory=list)
    tables_processed: int = 0
    dry_run: bool = False
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entities": list(self.entities),
            "files": [str(p) for p in self.files],
            "failures": dict(self.failures),
            "junction_tables": list(self.junction_tables),
            "tables_processed": self.tables_processed,
            "dry_run": self.dry_run,
            "duration": round(self.duration, 3),
        }


class ReverseEngineeringService:
    """Runs the reverse-engineering pipeline against one catalog.

    Example:
        >>> connector = ConnectorFactory.create_connector("snapshot", path="catalog.yml")
        >>> service = ReverseEngineeringService(connector)
        >>> result = service.generate_entities(dry_run=True)
        >>> result.entities
        ['Category', 'Product']
    """

    def __init__(
        self,
        connector: BaseConnector,
        config: Optional[Config] = None,
        file_writer: Optional[FileWriter] = None,
    ):
        """Initialize service.

        Args:
            connector: Catalog facts provider
            config: Configuration; defaults to the global configuration
            file_writer: Writer for generated files; built from config if omitted
        """
        self.connector = connector
        self.config = config or get_config()

        self.type_mapper = TypeMapper(TypeMappingConfig.from_config(self.config))
        self.classifier = JunctionTableClassifier(
            max_metadata_columns=int(
                self.config.get(
                    "relations.junction_max_metadata_columns",
                    DEFAULT_MAX_METADATA_COLUMNS,
                )
            )
        )
        self.resolver = RelationshipResolver(
            settings=ResolverSettings.from_config(self.config),
            classifier=self.classifier,
        )
        self.enum_generator = EnumClassGenerator(
            enum_package=self.config.get("generation.enum_package", "app.enum")
        )
        self.entity_generator = EntityGenerator(
            entity_package=self.config.get("generation.entity_package", "app.entity"),
            repository_package=self.config.get(
                "generation.repository_package", "app.repository"
            ),
            generate_repository=bool(
                self.config.get("generation.generate_repository", True)
            ),
            type_mapper=self.type_mapper,
        )
        self.file_writer = file_writer or FileWriter(
            output_dirs={
                "entity": self.config.get("generation.output_dir", "generated/entity"),
                "repository": self.config.get(
                    "generation.repository_output_dir", "generated/repository"
                ),
                "enum": self.config.get("generation.enum_output_dir", "generated/enum"),
            }
        )

    @classmethod
    def from_config(
        cls,
        config: Optional[Config] = None,
        database_url: Optional[str] = None,
        snapshot: Optional[str] = None,
    ) -> ReverseEngineeringService:
        """Build a service whose connector comes from arguments or config.

        Explicit arguments win over config; within each, a snapshot takes
        precedence over a database URL.

        Raises:
            ReverseEngineeringError: If neither a snapshot nor a URL is known
        """
        config = config or get_config()
        if not snapshot and not database_url:
            snapshot = config.get("database.snapshot")
            database_url = config.get("database.url")

        if snapshot:
            connector = ConnectorFactory.create_connector("snapshot", path=snapshot)
        elif database_url:
            connector = ConnectorFactory.create_connector(
                "database",
                connection_string=database_url,
                schema=config.get("database.schema"),
            )
        else:
            raise ReverseEngineeringError(
                "No database configured. Pass --database-url or --snapshot, "
                "or set database.url in the config file."
            )
        return cls(connector, config=config)

    @property
    def generate_enums(self) -> bool:
        return bool(self.config.get("generation.generate_enums", True))

    def create_extractor(self) -> MetadataExtractor:
        return MetadataExtractor(
            self.connector,
            type_mapper=self.type_mapper,
            resolver=self.resolver,
            classifier=self.classifier,
            enum_generator=self.enum_generator if self.generate_enums else None,
        )

    def generate_entities(
        self,
        tables: Optional[Sequence[str]] = None,
        exclude: Optional[Sequence[str]] = None,
        output_dir: Optional[str | Path] = None,
        force: bool = False,
        dry_run: bool = False,
        fail_fast: bool = False,
    ) -> GenerationResult:
        """Generate entity, repository and enum modules.

        Args:
            tables: Only process these tables (config ``generation.tables`` if empty)
            exclude: Tables to skip, on top of ``generation.exclude_tables``
            output_dir: Override for the entity output directory
            force: Overwrite existing files
            dry_run: Render everything but write nothing
            fail_fast: Abort on the first table that cannot be extracted

        Returns:
            GenerationResult

        Raises:
            ReverseEngineeringError: If no table can be processed, on the first
                extraction failure with ``fail_fast``, or if generation/writing fails
        """
        start = time.perf_counter()
        include = list(tables or self.config.get("generation.tables", []) or [])
        excluded = list(exclude or []) + list(
            self.config.get("generation.exclude_tables", []) or []
        )

        selected = self.connector.analyze_tables(include, excluded)
        if not selected:
            raise ReverseEngineeringError("No tables found to process")

        logger.info(f"Generating entities for {len(selected)} tables")
        self.enum_generator.reset()
        extractor = self.create_extractor()
        context = extractor.create_context(selected)

        result = GenerationResult(tables_processed=len(selected), dry_run=dry_run)
        metadata: List[TableMetadata] = []
        junctions: List[TableDetails] = []

        for table_name in selected:
            try:
                table_metadata = extractor.extract_table_metadata(
                    table_name, context=context
                )
            except MetadataExtractionError as e:
                if fail_fast:
                    raise
                logger.warning(f"Skipping table {table_name}: {e}")
                result.failures[table_name] = str(e)
                continue

            if table_metadata is None:
                result.junction_tables.append(table_name)
                junctions.append(context.details(table_name))
            else:
                metadata.append(table_metadata)

        if not metadata:
            raise ReverseEngineeringError(
                "No entity could be generated "
                f"({len(result.failures)} failed, {len(junctions)} junction tables)"
            )

        check_entity_names(metadata)

        try:
            result.generated = self.entity_generator.generate_all(metadata, junctions)
            result.generated.extend(self._enum_files())
        except ReverseEngineeringError:
            raise
        except Exception as e:
            logger.error(f"Entity generation failed: {e}")
            raise ReverseEngineeringError(f"Entity generation failed: {e}") from e

        result.entities = [m.entity_name for m in metadata]

        if dry_run:
            logger.info(f"Dry run: {len(result.generated)} files rendered, none written")
        else:
            result.files = self.file_writer.write_files(
                result.generated, output_dir=output_dir, force=force
            )

        result.duration = time.perf_counter() - start
        logger.info(
            f"Generated {len(result.entities)} entities in {result.duration:.2f}s "
            f"({len(result.failures)} failures)"
        )
        return result

    def _enum_files(self) -> List[GeneratedFile]:
        enums = self.enum_generator.generated_enums()
        files = [
            GeneratedFile("enum", ref.type_name, f"{to_snake_case(ref.type_name)}.py", content)
            for ref, content in enums
        ]
        if files:
            files.append(
                GeneratedFile(
                    "enum", "__init__", "__init__.py", self.enum_generator.generate_package_init()
                )
            )
        return files

    def validate_database_connection(self) -> bool:
        """Check the catalog is reachable.

        Raises:
            CatalogAccessError: If it is not
        """
        return self.connector.test_connection()

    def get_available_tables(self) -> List[str]:
        return self.connector.get_table_names()

    def get_table_info(self, table_name: str) -> Optional[TableMetadata]:
        """Metadata of one table, resolved against every table of the catalog.

        Returns:
            TableMetadata, or None for a junction table
        """
        return self.create_extractor().extract_table_metadata(table_name)

    def get_table_details(self, table_name: str) -> TableDetails:
        return self.connector.get_table_details(table_name)
