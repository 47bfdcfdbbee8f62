"""Structural detection of pure many-to-many join tables."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from schema2orm.utils.logging import get_logger
from schema2orm.core.schema.types import ForeignKeyFacts, TableDetails

logger = get_logger(__name__)

DEFAULT_MAX_METADATA_COLUMNS = 5


@dataclass(frozen=True)
class JunctionInfo:
    """A table recognised as a join artifact between one or two tables."""

    table_name: str
    first: ForeignKeyFacts
    second: ForeignKeyFacts
    metadata_columns: Tuple[str, ...] = ()

    @property
    def is_self_referencing(self) -> bool:
        return self.first.foreign_table == self.second.foreign_table

    @property
    def tables(self) -> Tuple[str, ...]:
        """Referenced tables, sorted by name; one entry when self-referencing."""
        return tuple(sorted({self.first.foreign_table, self.second.foreign_table}))

    @property
    def owning_table(self) -> str:
        """The alphabetically-first referenced table owns the join."""
        return self.tables[0]

    def foreign_key_to(self, table_name: str) -> ForeignKeyFacts:
        return self.first if self.first.foreign_table == table_name else self.second

    def other_side(self, table_name: str) -> ForeignKeyFacts:
        return self.second if self.first.foreign_table == table_name else self.first


class JunctionTableClassifier:
    """Decides whether a table only exists to join two others.

    Anything ambiguous is treated as a regular table: dropping a real entity
    is unrecoverable for the consumer, keeping a join table is not.
    """

    def __init__(self, max_metadata_columns: int = DEFAULT_MAX_METADATA_COLUMNS):
        self.max_metadata_columns = max_metadata_columns

    def classify(
        self, details: TableDetails, all_tables: Iterable[str]
    ) -> Optional[JunctionInfo]:
        """Classify one table.

        Args:
            details: Catalog facts of the candidate table
            all_tables: Names of every table taking part in the run

        Returns:
            JunctionInfo if the table is a pure junction, None otherwise
        """
        table = details.name
        foreign_keys = details.foreign_keys

        if len(foreign_keys) < 2:
            return None

        referenced = {fk.foreign_table for fk in foreign_keys}
        if not referenced:
            return None

        primary_key = set(details.primary_key)
        pk_foreign_keys = [
            fk for fk in foreign_keys if primary_key.intersection(fk.local_columns)
        ]
        if len(pk_foreign_keys) != 2:
            logger.debug(
                f"{table}: {len(pk_foreign_keys)} primary-key foreign keys, not a junction"
            )
            return None

        pk_referenced = {fk.foreign_table for fk in pk_foreign_keys}
        if len(pk_referenced) not in (1, 2):
            return None

        known_tables = set(all_tables)
        if not pk_referenced.issubset(known_tables):
            logger.debug(f"{table}: references tables outside this run, not a junction")
            return None

        fk_columns = {c for fk in pk_foreign_keys for c in fk.local_columns}
        if fk_columns - primary_key or primary_key - fk_columns:
            logger.debug(f"{table}: primary key is not exactly the foreign key columns")
            return None

        metadata_columns = tuple(c for c in details.column_names if c not in fk_columns)
        if len(metadata_columns) > self.max_metadata_columns:
            logger.debug(
                f"{table}: {len(metadata_columns)} extra columns exceed "
                f"{self.max_metadata_columns}, not a junction"
            )
            return None

        first, second = pk_foreign_keys
        return JunctionInfo(
            table_name=table,
            first=first,
            second=second,
            metadata_columns=metadata_columns,
        )

    def is_junction(self, details: TableDetails, all_tables: Iterable[str]) -> bool:
        return self.classify(details, all_tables) is not None
