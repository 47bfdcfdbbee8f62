"""Raw catalog facts as reported by a connector."""

from schema2orm.core.schema.types import (
    ColumnFacts,
    ForeignKeyFacts,
    IndexFacts,
    TableDetails,
)

__all__ = ["ColumnFacts", "ForeignKeyFacts", "IndexFacts", "TableDetails"]
