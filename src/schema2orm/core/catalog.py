"""Per-run cache of catalog facts, junction classifications and relation plans."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional, Tuple

from schema2orm.exceptions import CatalogAccessError
from schema2orm.utils.logging import get_logger
from schema2orm.core.junction import JunctionInfo, JunctionTableClassifier
from schema2orm.core.schema.types import TableDetails

if TYPE_CHECKING:
    from schema2orm.connectors.base import BaseConnector

logger = get_logger(__name__)


class CatalogContext:
    """Read-only view of the catalog for one extraction run.

    Facts are fetched at most once per table. Failures are remembered, so a
    broken table is only reported once per run.
    """

    def __init__(
        self,
        connector: BaseConnector,
        all_tables: Iterable[str],
        classifier: Optional[JunctionTableClassifier] = None,
    ):
        self.connector = connector
        self.all_tables: Tuple[str, ...] = tuple(all_tables)
        self.classifier = classifier or JunctionTableClassifier()
        self._details: Dict[str, TableDetails] = {}
        self._failures: Dict[str, CatalogAccessError] = {}
        self._junctions: Dict[str, Optional[JunctionInfo]] = {}
        # Memoised relation plans, filled by RelationshipResolver
        self.plans: Dict[str, Any] = {}

    def details(self, table_name: str) -> TableDetails:
        """Facts for a table the caller asked for; failures propagate.

        Raises:
            CatalogAccessError: If the connector could not describe the table
        """
        if table_name in self._details:
            return self._details[table_name]
        if table_name in self._failures:
            raise self._failures[table_name]

        try:
            details = self.connector.get_table_details(table_name)
        except CatalogAccessError as e:
            self._failures[table_name] = e
            raise

        self._details[table_name] = details
        return details

    def try_details(self, table_name: str) -> Optional[TableDetails]:
        """Facts for a table scanned on behalf of another one.

        A failure is logged as a warning and the table contributes nothing.
        """
        if table_name in self._failures:
            return None
        try:
            return self.details(table_name)
        except CatalogAccessError as e:
            logger.warning(
                f"Skipping table '{table_name}' while scanning relations: {e}"
            )
            return None

    def junction(self, table_name: str) -> Optional[JunctionInfo]:
        """Cached junction classification; unreadable tables are not junctions."""
        if table_name not in self._junctions:
            details = self.try_details(table_name)
            self._junctions[table_name] = (
                self.classifier.classify(details, self.all_tables)
                if details is not None
                else None
            )
        return self._junctions[table_name]
