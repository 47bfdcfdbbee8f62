"""Connector reading catalog facts from a YAML or JSON snapshot."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from schema2orm.connectors.base import BaseConnector
from schema2orm.core.schema.types import TableDetails
from schema2orm.exceptions import CatalogAccessError
from schema2orm.utils.logging import get_logger

logger = get_logger(__name__)


class SnapshotConnector(BaseConnector):
    """Serve catalog facts from an exported snapshot.

    The snapshot has the shape::

        tables:
          users:
            columns:
              - {name: id, type: integer, raw_type: "int(11)", nullable: false}
            primary_key: [id]
            foreign_keys: []
            indexes: []
    """

    def __init__(
        self,
        path: Optional[str | Path] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        """Initialize snapshot connector.

        Args:
            path: YAML (.yml/.yaml) or JSON snapshot file
            data: Already-loaded snapshot, used instead of ``path``

        Example:
            >>> connector = SnapshotConnector("catalog.yml")
            >>> connector.get_table_names()
            ['users', 'roles', 'user_roles']
        """
        super().__init__(path=str(path) if path else None)

        if data is None:
            if path is None:
                raise ValueError("Either path or data is required")
            data = self._load(Path(path))

        tables = (data or {}).get("tables")
        if not isinstance(tables, dict):
            raise ValueError("Snapshot must contain a 'tables' mapping")

        self.path = Path(path) if path else None
        self._tables: Dict[str, Dict[str, Any]] = {
            name: spec or {} for name, spec in tables.items()
        }
        self._details: Dict[str, TableDetails] = {}

    @staticmethod
    def _load(path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise FileNotFoundError(f"Snapshot file not found: {path}")

        logger.info(f"Loading catalog snapshot from {path}")
        try:
            with open(path, "r") as f:
                if path.suffix.lower() == ".json":
                    return json.load(f)
                return yaml.safe_load(f) or {}
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise CatalogAccessError(f"Invalid snapshot file {path}: {e}") from e

    def get_table_names(self) -> List[str]:
        return [t for t in self._tables if self.is_user_table(t)]

    def get_table_details(self, table_name: str) -> TableDetails:
        if table_name in self._details:
            return self._details[table_name]
        if table_name not in self._tables:
            raise CatalogAccessError(
                f"Table '{table_name}' not found in snapshot", table_name
            )
        try:
            details = TableDetails.from_dict(table_name, self._tables[table_name])
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogAccessError(
                f"Malformed snapshot entry for table '{table_name}': {e}", table_name
            ) from e
        self._details[table_name] = details
        return details


def dump_snapshot(connector: BaseConnector, path: str | Path, tables: Optional[List[str]] = None) -> Path:
    """Export the catalog facts of a connector to a snapshot file.

    Args:
        connector: Any connector, usually a DBConnector
        path: Target file; ``.json`` writes JSON, anything else YAML
        tables: Tables to export (all if None)

    Returns:
        Path of the written snapshot
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    names = tables if tables is not None else connector.get_table_names()
    snapshot = {
        "tables": {
            name: connector.get_table_details(name).to_dict() for name in names
        }
    }

    with open(path, "w") as f:
        if path.suffix.lower() == ".json":
            json.dump(snapshot, f, indent=2)
        else:
            yaml.safe_dump(snapshot, f, default_flow_style=False, sort_keys=False)

    logger.info(f"Saved snapshot of {len(names)} tables to {path}")
    return path
