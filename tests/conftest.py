"""Shared fixtures for the schema2orm test suite."""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional, Sequence

import pytest
from sqlalchemy import create_engine, text

from schema2orm.connectors.snapshot_loader import SnapshotConnector
from schema2orm.exceptions import CatalogAccessError
from schema2orm.utils.config import Config, set_config


class CatalogBuilder:
    """Builds snapshot-shaped catalogs table by table."""

    def __init__(self):
        self.tables: Dict[str, Dict[str, Any]] = {}

    @staticmethod
    def col(
        name: str,
        raw_type: str = "int(11)",
        nullable: bool = True,
        **extra: Any,
    ) -> Dict[str, Any]:
        column = {"name": name, "raw_type": raw_type, "nullable": nullable}
        column.update(extra)
        return column

    @staticmethod
    def fk(
        local_columns: str | Sequence[str],
        foreign_table: str,
        foreign_columns: str | Sequence[str] = "id",
        **extra: Any,
    ) -> Dict[str, Any]:
        if isinstance(local_columns, str):
            local_columns = [local_columns]
        if isinstance(foreign_columns, str):
            foreign_columns = [foreign_columns]
        fk = {
            "local_columns": list(local_columns),
            "foreign_table": foreign_table,
            "foreign_columns": list(foreign_columns),
        }
        fk.update(extra)
        return fk

    def table(
        self,
        name: str,
        columns: List[Dict[str, Any]],
        primary_key: Sequence[str] = ("id",),
        foreign_keys: Optional[List[Dict[str, Any]]] = None,
        indexes: Optional[List[Dict[str, Any]]] = None,
    ) -> CatalogBuilder:
        self.tables[name] = {
            "columns": columns,
            "primary_key": list(primary_key),
            "foreign_keys": foreign_keys or [],
            "indexes": indexes or [],
        }
        return self

    def entity(self, name: str, *columns: Dict[str, Any], **kwargs: Any) -> CatalogBuilder:
        """Table with an ``id`` primary key followed by ``columns``."""
        id_column = self.col("id", "int(11)", nullable=False, auto_increment=True)
        return self.table(name, [id_column, *columns], **kwargs)

    def snapshot(self) -> Dict[str, Any]:
        return {"tables": copy.deepcopy(self.tables)}

    def connector(self) -> SnapshotConnector:
        return SnapshotConnector(data=self.snapshot())


class FlakyConnector(SnapshotConnector):
    """Snapshot connector that cannot describe some tables."""

    def __init__(self, data: Dict[str, Any], broken: Sequence[str]):
        super().__init__(data=data)
        self.broken = set(broken)
        self.calls: List[str] = []

    def get_table_details(self, table_name):
        self.calls.append(table_name)
        if table_name in self.broken:
            raise CatalogAccessError(f"permission denied for {table_name}", table_name)
        return super().get_table_details(table_name)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Every test starts from the default configuration."""
    monkeypatch.delenv("SCHEMA2ORM_CONFIG", raising=False)
    monkeypatch.delenv("SCHEMA2ORM_DATABASE_URL", raising=False)
    config = Config()
    set_config(config)
    yield config
    set_config(None)


@pytest.fixture
def catalog() -> CatalogBuilder:
    return CatalogBuilder()


@pytest.fixture
def shop_catalog(catalog) -> CatalogBuilder:
    """A small shop: users/roles joined by user_roles, self-referencing
    categories, products, customers and orders."""
    c = catalog
    c.entity(
        "users",
        c.col("email", "varchar(180)", nullable=False),
        c.col("status", "enum('active','inactive','pending')", nullable=True,
              enum_values=["active", "inactive", "pending"]),
        c.col("is_admin", "tinyint(1)", nullable=True),
        c.col("created_at", "datetime", nullable=True, default="CURRENT_TIMESTAMP"),
        indexes=[{"name": "uniq_users_email", "columns": ["email"], "unique": True}],
    )
    c.entity("roles", c.col("name", "varchar(50)", nullable=False))
    c.table(
        "user_roles",
        [c.col("user_id", nullable=False), c.col("role_id", nullable=False)],
        primary_key=["user_id", "role_id"],
        foreign_keys=[
            c.fk("user_id", "users", on_delete="CASCADE"),
            c.fk("role_id", "roles", on_delete="CASCADE"),
        ],
    )
    c.entity(
        "categories",
        c.col("name", "varchar(100)", nullable=False),
        c.col("parent_id", nullable=True),
        foreign_keys=[c.fk("parent_id", "categories")],
    )
    c.entity(
        "products",
        c.col("name", "varchar(255)", nullable=False),
        c.col("price", "decimal(10,2) unsigned", nullable=False),
        c.col("category_id", nullable=True),
        foreign_keys=[c.fk("category_id", "categories", on_delete="SET NULL")],
    )
    c.entity("customers", c.col("name", "varchar(255)", nullable=False))
    c.entity(
        "orders",
        c.col("customer_id", nullable=False),
        c.col("total", "decimal(12,2)", nullable=False),
        foreign_keys=[c.fk("customer_id", "customers")],
    )
    return c


@pytest.fixture
def shop_connector(shop_catalog) -> SnapshotConnector:
    return shop_catalog.connector()


@pytest.fixture
def flaky_shop(shop_catalog):
    """Factory for shop connectors failing on the given tables."""

    def make(*broken: str) -> FlakyConnector:
        return FlakyConnector(shop_catalog.snapshot(), broken)

    return make


SQLITE_SCHEMA = [
    """
    CREATE TABLE customers (
        id INTEGER PRIMARY KEY,
        name VARCHAR(255) NOT NULL,
        email VARCHAR(180)
    )
    """,
    "CREATE UNIQUE INDEX uniq_customers_email ON customers (email)",
    """
    CREATE TABLE orders (
        id INTEGER PRIMARY KEY,
        customer_id INTEGER NOT NULL,
        total NUMERIC(12, 2) NOT NULL,
        paid BOOLEAN,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (customer_id) REFERENCES customers (id) ON DELETE CASCADE
    )
    """,
    "CREATE INDEX idx_orders_customer ON orders (customer_id)",
    """
    CREATE TABLE tags (
        id INTEGER PRIMARY KEY,
        label VARCHAR(50) NOT NULL
    )
    """,
    """
    CREATE TABLE order_tags (
        order_id INTEGER NOT NULL,
        tag_id INTEGER NOT NULL,
        PRIMARY KEY (order_id, tag_id),
        FOREIGN KEY (order_id) REFERENCES orders (id),
        FOREIGN KEY (tag_id) REFERENCES tags (id)
    )
    """,
]


@pytest.fixture
def sqlite_url(tmp_path) -> str:
    """URL of a SQLite database holding customers, orders and tags."""
    url = f"sqlite:///{tmp_path / 'shop.db'}"
    engine = create_engine(url)
    with engine.begin() as conn:
        for statement in SQLITE_SCHEMA:
            conn.execute(text(statement))
    engine.dispose()
    return url
