"""Tests for entity, repository and support module rendering."""

import logging

import pytest

from schema2orm.core.extractor import MetadataExtractor
from schema2orm.core.schema.types import TableDetails
from schema2orm.exceptions import EntityGenerationError
from schema2orm.generation.entity_generator import (
    EntityGenerator,
    attribute_name,
    module_name,
)
from schema2orm.generation.enum_generator import EnumClassGenerator


@pytest.fixture
def shop_metadata(shop_connector):
    extractor = MetadataExtractor(
        shop_connector, enum_generator=EnumClassGenerator(enum_package="shop.enum")
    )
    return extractor.extract_all(shop_connector.get_table_names())


@pytest.fixture
def generator():
    return EntityGenerator(entity_package="shop.entity", repository_package="shop.repository")


def _compiles(source, filename="generated.py"):
    compile(source, filename, "exec")
    return True


def test_entity_module_layout(generator, shop_metadata):
    source = generator.generate_entity(shop_metadata["orders"])

    assert source.startswith('"""Order entity mapped to table orders."""')
    assert "from __future__ import annotations" in source
    assert "from shop.entity.base import Base" in source
    assert "class Order(Base):" in source
    assert '    __tablename__ = "orders"' in source
    assert '    id: Mapped[int] = mapped_column("id", Integer, primary_key=True, autoincrement=True)' in source
    assert '    total: Mapped[str] = mapped_column("total", Numeric(12, 2))' in source
    assert (
        '    customerId: Mapped[int] = mapped_column("customer_id", Integer, '
        'ForeignKey("customers.id"))' in source
    )
    assert (
        '    customer: Mapped["Customer"] = relationship('
        'back_populates="orders", foreign_keys=[customerId])' in source
    )
    assert '        return f"<Order id={self.id!r}>"' in source
    assert _compiles(source)


def test_columns_precede_relations(generator, shop_metadata):
    source = generator.generate_entity(shop_metadata["products"])

    assert source.index("categoryId: Mapped") < source.index("category: Mapped")
    assert 'ForeignKey("categories.id", ondelete="SET NULL")' in source
    assert 'category: Mapped[Optional["Category"]]' in source


def test_one_to_many_collection(generator, shop_metadata):
    source = generator.generate_entity(shop_metadata["customers"])

    assert (
        '    orders: Mapped[List["Order"]] = relationship('
        'back_populates="customer", foreign_keys="[Order.customerId]")' in source
    )
    assert '    def add_order(self, order: "Order") -> None:' in source
    assert '    def remove_order(self, order: "Order") -> None:' in source
    assert "from typing import List" in source
    assert _compiles(source)


def test_self_referencing_relations(generator, shop_metadata):
    source = generator.generate_entity(shop_metadata["categories"])

    assert 'remote_side="[Category.id]"' in source
    assert 'back_populates="children", foreign_keys=[parentId]' in source
    assert '    children: Mapped[List["Category"]]' in source
    assert "    def add_child(self, child: " in source
    assert _compiles(source)


def test_many_to_many_relation(generator, shop_metadata):
    user_source = generator.generate_entity(shop_metadata["users"])
    role_source = generator.generate_entity(shop_metadata["roles"])

    assert (
        '    roles: Mapped[List["Role"]] = relationship('
        'secondary="user_roles", back_populates="users")' in user_source
    )
    assert (
        '    users: Mapped[List["User"]] = relationship('
        'secondary="user_roles", back_populates="roles")' in role_source
    )


def test_enum_and_lifecycle(generator, shop_metadata):
    source = generator.generate_entity(shop_metadata["users"])

    assert "from shop.enum.user_status_enum import UserStatusEnum" in source
    assert "status: Mapped[Optional[UserStatusEnum]]" in source
    assert 'Enum(UserStatusEnum, name="users_status"' in source
    assert 'server_default=text("CURRENT_TIMESTAMP")' in source
    assert '@event.listens_for(User, "init")' in source
    assert '    kwargs.setdefault("createdAt", now)' in source
    assert "from datetime import datetime" in source
    assert "from sqlalchemy import event" in source
    assert '        Index("uniq_users_email", "email", unique=True),' in source
    assert _compiles(source)


def test_value_constants_without_enum_classes(catalog):
    c = catalog
    c.entity(
        "files",
        c.col("kind", "enum('a','b')", enum_values=["a", "b"]),
        c.col("perms", "set('read','write')", set_values=["read", "write"]),
    )
    metadata = MetadataExtractor(c.connector()).extract_table_metadata("files")

    source = EntityGenerator().generate_entity(metadata)

    assert "    KIND_VALUES = ('a', 'b',)" in source
    assert "    PERMS_VALUES = ('read', 'write',)" in source
    assert "Enum('a', 'b', name=\"files_kind\")" in source
    assert _compiles(source)


def test_self_many_to_many_join_conditions(catalog):
    c = catalog
    c.entity("users", c.col("name", "varchar(50)"))
    c.table(
        "friendships",
        [c.col("user_id", nullable=False), c.col("friend_id", nullable=False)],
        primary_key=["user_id", "friend_id"],
        foreign_keys=[c.fk("user_id", "users"), c.fk("friend_id", "users")],
    )
    metadata = MetadataExtractor(c.connector()).extract_table_metadata("users")

    source = EntityGenerator().generate_entity(metadata)

    assert 'secondary="friendships"' in source
    assert 'primaryjoin="User.id == friendships.c.user_id"' in source
    assert 'secondaryjoin="User.id == friendships.c.friend_id"' in source
    assert "back_populates" not in source
    assert _compiles(source)


def test_reserved_attribute_names():
    assert attribute_name("metadata") == "metadata_"
    assert attribute_name("registry") == "registry_"
    assert attribute_name("name") == "name"
    assert attribute_name("from") == "from_"
    assert attribute_name("class") == "class_"
    assert attribute_name("check-in date") == "check_in_date"
    assert attribute_name("2fa") == "_2fa"
    assert module_name("OrderItem") == "order_item"


def test_repository_module(generator, shop_metadata):
    source = generator.generate_repository(shop_metadata["orders"])

    assert "from shop.entity.order import Order" in source
    assert "class OrderRepository:" in source
    assert "    def find(self, ident: Any) -> Optional[Order]:" in source
    assert "    def find_by(self, **criteria: Any) -> List[Order]:" in source
    assert _compiles(source)


def test_associations_module(generator, shop_connector):
    junction = shop_connector.get_table_details("user_roles")

    source = generator.generate_associations([junction])

    assert "user_role_table = Table(" in source
    assert '    Column("user_id", Integer, ForeignKey("users.id"), primary_key=True),' in source
    assert "from shop.entity.base import Base" in source
    assert _compiles(source)


def test_generate_all(generator, shop_metadata, shop_connector):
    junction = shop_connector.get_table_details("user_roles")

    files = generator.generate_all(list(shop_metadata.values()), [junction])

    names = [(f.kind, f.filename) for f in files]
    assert names[0] == ("support", "base.py")
    assert ("support", "associations.py") in names
    assert ("support", "__init__.py") in names
    assert ("entity", "category.py") in names
    assert ("repository", "order_repository.py") in names
    assert len([f for f in files if f.kind == "entity"]) == 6
    assert len([f for f in files if f.kind == "repository"]) == 6
    for generated in files:
        assert _compiles(generated.content, generated.filename)

    init = next(f for f in files if f.filename == "__init__.py").content
    assert "from shop.entity import associations" in init
    assert "from shop.entity.user import User" in init


def test_generate_all_without_repositories(shop_metadata):
    generator = EntityGenerator(generate_repository=False)

    files = generator.generate_all(list(shop_metadata.values()))

    assert not [f for f in files if f.kind == "repository"]
    assert "associations.py" not in [f.filename for f in files]


def test_rendering_is_deterministic(generator, shop_metadata):
    first = generator.generate_entity(shop_metadata["users"])
    second = generator.generate_entity(shop_metadata["users"])
    assert first == second


def test_generation_error_is_wrapped(generator, shop_metadata, monkeypatch):
    def broken(metadata, known_entities=None):
        raise KeyError("boom")

    monkeypatch.setattr(generator, "_render_entity", broken)

    with pytest.raises(EntityGenerationError, match="orders"):
        generator.generate_entity(shop_metadata["orders"])


def test_junction_details_round_trip(shop_catalog):
    details = TableDetails.from_dict("user_roles", shop_catalog.tables["user_roles"])
    assert TableDetails.from_dict("user_roles", details.to_dict()) == details


def test_keyword_and_invalid_column_names(catalog):
    c = catalog
    c.entity(
        "bookings",
        c.col("from", "date", nullable=False),
        c.col("to", "date", nullable=True),
        c.col("class", "varchar(20)", nullable=True),
        c.col("check-in", "datetime", nullable=True, default="CURRENT_TIMESTAMP"),
        c.col("global", "enum('a','b')", enum_values=["a", "b"]),
    )
    metadata = MetadataExtractor(c.connector()).extract_table_metadata("bookings")

    source = EntityGenerator().generate_entity(metadata)

    assert '    from_: Mapped[datetime] = mapped_column("from", Date)' in source
    assert '    class_: Mapped[Optional[str]] = mapped_column("class", String(20))' in source
    assert '    check_in: Mapped[Optional[datetime]] = mapped_column("check-in", DateTime' in source
    assert '    kwargs.setdefault("check_in", now)' in source
    assert "    GLOBAL_VALUES = ('a', 'b',)" in source
    assert _compiles(source)


def test_relations_to_entities_outside_the_run(generator, shop_metadata, caplog):
    with caplog.at_level(logging.WARNING, logger="schema2orm"):
        source = generator.generate_entity(shop_metadata["orders"], known_entities={"Order"})

    assert "relationship" not in source
    assert "    # references customers.id, which has no generated entity" in source
    assert '    customerId: Mapped[int] = mapped_column("customer_id", Integer)' in source
    assert "ForeignKey" not in source
    assert "Order.customer left unmapped" in caplog.text
    assert _compiles(source)


def test_generate_all_only_links_generated_entities(generator, shop_metadata):
    files = generator.generate_all([shop_metadata["customers"]])

    customer = next(f for f in files if f.filename == "customer.py").content
    assert "orders" not in customer
    assert "def add_order" not in customer
    assert _compiles(customer)
