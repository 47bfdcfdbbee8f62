"""schema2orm - Reverse-engineer database schemas into SQLAlchemy models."""

__version__ = "0.1.0"

# Connectors
from schema2orm.connectors import (
    BaseConnector,
    ConnectorFactory,
    DBConnector,
    SnapshotConnector,
)

# Core modules
from schema2orm.core import (
    MetadataExtractor,
    RelationshipResolver,
    TableDetails,
    TableMetadata,
    TypeMapper,
)
from schema2orm.exceptions import ReverseEngineeringError

# Generation
from schema2orm.generation import EntityGenerator, EnumClassGenerator, FileWriter
from schema2orm.service import GenerationResult, ReverseEngineeringService

# Utils
from schema2orm.utils.config import Config, get_config, load_config

__all__ = [
    # Version
    "__version__",
    # Core
    "MetadataExtractor",
    "RelationshipResolver",
    "TableDetails",
    "TableMetadata",
    "TypeMapper",
    # Generation
    "EntityGenerator",
    "EnumClassGenerator",
    "FileWriter",
    "GenerationResult",
    "ReverseEngineeringService",
    # Connectors
    "BaseConnector",
    "ConnectorFactory",
    "DBConnector",
    "SnapshotConnector",
    # Errors
    "ReverseEngineeringError",
    # Config
    "Config",
    "get_config",
    "load_config",
]
