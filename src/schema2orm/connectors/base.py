"""Base connector interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from schema2orm.core.schema.types import TableDetails
from schema2orm.utils.logging import get_logger

logger = get_logger(__name__)

# Tables whose names start with one of these belong to the database itself
SYSTEM_TABLE_PREFIXES = (
    # MySQL
    "information_schema",
    "performance_schema",
    "mysql",
    "sys",
    # PostgreSQL
    "pg_catalog",
    # SQLite reserves every sqlite_ name
    "sqlite",
)


class BaseConnector(ABC):
    """Abstract base class for catalog facts providers."""

    def __init__(self, **kwargs):
        """Initialize connector.

        Args:
            **kwargs: Connector-specific configuration
        """
        self.config = kwargs
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    def get_table_names(self) -> List[str]:
        """Get list of user table names.

        Returns:
            List of table names, system tables excluded

        Raises:
            CatalogAccessError: If the catalog cannot be listed
        """
        pass

    @abstractmethod
    def get_table_details(self, table_name: str) -> TableDetails:
        """Describe one table.

        Args:
            table_name: Table name

        Returns:
            TableDetails with columns, foreign keys, indexes and primary key

        Raises:
            CatalogAccessError: If the table cannot be described
        """
        pass

    def test_connection(self) -> bool:
        """Check that the catalog is reachable.

        Returns:
            True if reachable

        Raises:
            CatalogAccessError: If it is not
        """
        return True

    @staticmethod
    def is_user_table(table_name: str) -> bool:
        """False for catalog tables; a prefix only counts up to a word break."""
        for prefix in SYSTEM_TABLE_PREFIXES:
            if table_name == prefix or table_name.startswith((f"{prefix}_", f"{prefix}.")):
                return False
        return True

    def analyze_tables(
        self,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
    ) -> List[str]:
        """Tables to process after include/exclude filtering.

        Args:
            include: Only keep these tables (all tables if empty)
            exclude: Drop these tables

        Returns:
            Table names in catalog order
        """
        tables = self.get_table_names()
        include = list(include or [])
        exclude = set(exclude or [])

        if include:
            missing = [t for t in include if t not in tables]
            if missing:
                self.logger.warning(f"Requested tables not found: {', '.join(missing)}")
            tables = [t for t in tables if t in include]

        if exclude:
            before = len(tables)
            tables = [t for t in tables if t not in exclude]
            self.logger.debug(f"Excluded {before - len(tables)} tables")

        self.logger.info(f"{len(tables)} tables selected for processing")
        return tables

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.config})"
