"""Catalog connectors for schema2orm."""

from schema2orm.connectors.base import BaseConnector
from schema2orm.connectors.db_connector import DBConnector
from schema2orm.connectors.registry import CONNECTOR_REGISTRY, ConnectorFactory
from schema2orm.connectors.snapshot_loader import SnapshotConnector, dump_snapshot

__all__ = [
    "BaseConnector",
    "DBConnector",
    "SnapshotConnector",
    "ConnectorFactory",
    "CONNECTOR_REGISTRY",
    "dump_snapshot",
]
