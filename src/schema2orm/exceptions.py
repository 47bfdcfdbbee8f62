"""Exception hierarchy for schema2orm.

Every error raised by the package derives from ``ReverseEngineeringError`` so
callers (and the CLI) can catch the whole family at once. Lower-level causes
are always chained with ``raise ... from e``.

Two situations are not errors:

- an ambiguous junction-table classification resolves to "regular table";
- an unknown column type maps to the string fallback.
"""

from __future__ import annotations

from typing import Optional


class ReverseEngineeringError(Exception):
    """Base class for all schema2orm errors."""


class CatalogAccessError(ReverseEngineeringError):
    """The catalog could not answer for a table (connection, permission, missing table)."""

    def __init__(self, message: str, table_name: Optional[str] = None):
        super().__init__(message)
        self.table_name = table_name


class MetadataExtractionError(ReverseEngineeringError):
    """Metadata could not be assembled for a table."""

    def __init__(self, message: str, table_name: Optional[str] = None):
        super().__init__(message)
        self.table_name = table_name


class NamingCollisionError(ReverseEngineeringError):
    """No free property name was found within the attempt limit."""


class EntityNameCollisionError(ReverseEngineeringError):
    """Two or more tables normalise to the same entity name."""

    def __init__(self, entity_name: str, tables: list):
        super().__init__(
            f"Tables {', '.join(repr(t) for t in tables)} all map to entity "
            f"'{entity_name}'. Exclude one of them or rename the table."
        )
        self.entity_name = entity_name
        self.tables = list(tables)


class EntityGenerationError(ReverseEngineeringError):
    """Source code could not be rendered for an entity, repository or enum."""


class FileWriteError(ReverseEngineeringError):
    """A generated file could not be written."""
