"""Tests for relationship inference."""

import logging

import pytest

from schema2orm.core.catalog import CatalogContext
from schema2orm.core.extractor import MetadataExtractor
from schema2orm.core.metadata.types import ManyToMany, ManyToOne, OneToMany
from schema2orm.core.relations import RelationshipResolver, ResolverSettings
from schema2orm.exceptions import CatalogAccessError, MetadataExtractionError


def extract(connector, table, **kwargs):
    return MetadataExtractor(connector, **kwargs).extract_table_metadata(table)


def extract_everything(connector):
    return MetadataExtractor(connector).extract_all(connector.get_table_names())


def test_self_referencing_parent(shop_connector):
    """parent_id gives a nullable ManyToOne 'parent' and OneToMany 'children'."""
    category = extract(shop_connector, "categories")

    parent = category.relation("parent")
    assert isinstance(parent, ManyToOne)
    assert parent.nullable
    assert parent.is_self_referencing
    assert parent.target_entity == "Category"
    assert parent.inversed_by == "children"

    children = category.relation("children")
    assert isinstance(children, OneToMany)
    assert children.mapped_by == "parent"
    assert children.is_self_referencing
    assert children.target_entity == "Category"


def test_many_to_many_from_junction(shop_connector):
    """user_roles disappears and both sides get one ManyToMany."""
    metadata = extract_everything(shop_connector)

    assert "user_roles" not in metadata
    assert "UserRole" not in {m.entity_name for m in metadata.values()}

    user, role = metadata["users"], metadata["roles"]
    assert len(user.many_to_many) == 1
    assert len(role.many_to_many) == 1

    roles = user.relation("roles")
    assert isinstance(roles, ManyToMany)
    assert not roles.is_owning_side
    assert roles.mapped_by == "users"
    assert roles.junction_table == "user_roles"
    assert roles.join_columns == ("user_id",)
    assert roles.inverse_join_columns == ("role_id",)

    users = role.relation("users")
    assert users.is_owning_side
    assert users.inversed_by == "roles"
    assert users.junction_table == "user_roles"
    # Junction tables contribute no OneToMany
    assert user.one_to_many == ()


def test_required_many_to_one(shop_connector):
    order = extract(shop_connector, "orders")

    assert "customer_id" not in [c.name for c in order.columns]
    assert [c.name for c in order.foreign_key_columns] == ["customer_id"]
    assert len(order.many_to_one) == 1

    customer = order.many_to_one[0]
    assert customer.property_name == "customer"
    assert not customer.nullable
    assert customer.inversed_by == "orders"
    assert customer.on_delete == "RESTRICT"


def test_foreign_key_options_carried(shop_connector):
    product = extract(shop_connector, "products")
    category = product.relation("category")

    assert category.on_delete == "SET NULL"
    assert category.on_update == "RESTRICT"
    assert category.inversed_by == "products"


def test_incoming_one_to_many(shop_connector):
    customer = extract(shop_connector, "customers")

    orders = customer.relation("orders")
    assert isinstance(orders, OneToMany)
    assert orders.mapped_by == "customer"
    assert orders.target_entity == "Order"
    assert orders.foreign_key_columns == ("customer_id",)


def test_naming_collisions(catalog):
    """Four foreign keys to one table never share a property name."""
    c = catalog
    c.entity("categories", c.col("name", "varchar(50)"))
    c.entity(
        "products",
        c.col("category_id"),
        c.col("primary_id"),
        c.col("primary"),
        c.col("primary_category_id"),
        foreign_keys=[
            c.fk("category_id", "categories"),
            c.fk("primary_id", "categories"),
            c.fk("primary", "categories"),
            c.fk("primary_category_id", "categories"),
        ],
    )
    connector = c.connector()

    product = extract(connector, "products")
    names = [r.property_name for r in product.many_to_one]
    assert names == ["category", "primaryCategory", "category2", "category3"]
    assert len(set(product.property_names)) == len(product.property_names)

    category = extract(connector, "categories")
    collections = {r.property_name: r.mapped_by for r in category.one_to_many}
    assert collections == {
        "products": "category",
        "primaryProducts": "primaryCategory",
        "products2": "category2",
        "primaryCategoryProducts": "category3",
    }


def test_relation_names_avoid_column_properties(catalog):
    """A column already called 'customer' pushes the relation aside."""
    c = catalog
    c.entity("customers")
    c.entity(
        "orders",
        c.col("customer", "varchar(100)"),
        c.col("customer_id"),
        foreign_keys=[c.fk("customer_id", "customers")],
    )

    order = extract(c.connector(), "orders")

    assert order.many_to_one[0].property_name == "customer2"
    customer = extract(c.connector(), "customers")
    assert customer.relation("orders").mapped_by == "customer2"


def test_self_referencing_many_to_many(catalog):
    c = catalog
    c.entity("users", c.col("name", "varchar(50)"))
    c.table(
        "friendships",
        [c.col("user_id", nullable=False), c.col("friend_id", nullable=False)],
        primary_key=["user_id", "friend_id"],
        foreign_keys=[c.fk("user_id", "users"), c.fk("friend_id", "users")],
    )

    metadata = extract_everything(c.connector())

    assert list(metadata) == ["users"]
    user = metadata["users"]
    assert len(user.many_to_many) == 1
    friends = user.many_to_many[0]
    assert friends.property_name == "friends"
    assert friends.is_self_referencing
    assert friends.is_owning_side
    assert friends.target_entity == "User"
    assert friends.join_columns == ("user_id",)
    assert friends.inverse_join_columns == ("friend_id",)
    assert friends.mapped_by is None
    assert friends.inversed_by is None


def test_junction_with_too_many_columns_is_an_entity(catalog):
    c = catalog
    c.entity("students")
    c.entity("courses")
    c.table(
        "enrollments",
        [c.col("student_id", nullable=False), c.col("course_id", nullable=False)]
        + [c.col(f"note_{i}", "varchar(20)") for i in range(6)],
        primary_key=["student_id", "course_id"],
        foreign_keys=[c.fk("student_id", "students"), c.fk("course_id", "courses")],
    )

    metadata = extract_everything(c.connector())

    enrollment = metadata["enrollments"]
    assert [r.property_name for r in enrollment.many_to_one] == ["student", "course"]
    assert metadata["students"].relation("enrollments").mapped_by == "student"
    assert metadata["students"].many_to_many == ()


def test_configurable_self_reference_names(catalog):
    c = catalog
    c.entity(
        "employees",
        c.col("boss_id"),
        c.col("mentor_id"),
        foreign_keys=[c.fk("boss_id", "employees"), c.fk("mentor_id", "employees")],
    )
    settings = ResolverSettings(
        self_reference_names={"boss_id": "boss"},
        self_reference_collections={"boss_id": "reports"},
    )

    employee = extract(c.connector(), "employees", resolver=RelationshipResolver(settings))

    assert [r.property_name for r in employee.many_to_one] == ["boss", "mentor"]
    assert {r.property_name: r.mapped_by for r in employee.one_to_many} == {
        "reports": "boss",
        "employees": "mentor",
    }


def test_one_to_many_many_to_one_symmetry(shop_connector):
    metadata = extract_everything(shop_connector)
    by_table = {m.table_name: m for m in metadata.values()}

    for table in metadata.values():
        for relation in table.one_to_many:
            target = by_table[relation.target_table]
            owner = target.relation(relation.mapped_by)
            assert isinstance(owner, ManyToOne)
            assert owner.target_table == table.table_name
            assert owner.inversed_by == relation.property_name


def test_foreign_key_columns_are_exclusive(shop_connector):
    for table in extract_everything(shop_connector).values():
        column_names = {c.name for c in table.columns}
        for relation in table.many_to_one:
            assert column_names.isdisjoint(relation.local_columns)


def test_extraction_is_idempotent(shop_connector):
    first = extract_everything(shop_connector)
    second = extract_everything(shop_connector)

    assert first == second
    assert [m.to_dict() for m in first.values()] == [m.to_dict() for m in second.values()]


def test_plan_does_not_depend_on_order(shop_catalog):
    """Extracting customers before or after orders gives the same names."""
    connector = shop_catalog.connector()
    tables = connector.get_table_names()
    resolver = RelationshipResolver()

    forward = CatalogContext(connector, tables)
    order_first = resolver.resolve("orders", forward)
    resolver.resolve("customers", forward)

    backward = CatalogContext(connector, tables)
    resolver.resolve("customers", backward)
    order_last = resolver.resolve("orders", backward)

    assert order_first == order_last


def test_target_outside_run_has_no_inverse(shop_connector):
    order = MetadataExtractor(shop_connector).extract_table_metadata(
        "orders", all_tables=["orders"]
    )

    assert order.many_to_one[0].inversed_by is None


def test_unreadable_sibling_is_skipped_with_warning(flaky_shop, caplog):
    connector = flaky_shop("orders")

    with caplog.at_level(logging.WARNING, logger="schema2orm"):
        customer = extract(connector, "customers")

    assert customer.one_to_many == ()
    assert any(
        "orders" in record.getMessage() and record.levelno == logging.WARNING
        for record in caplog.records
    )


def test_unreadable_requested_table_raises(flaky_shop):
    connector = flaky_shop("orders")

    with pytest.raises(MetadataExtractionError) as excinfo:
        extract(connector, "orders")

    assert excinfo.value.table_name == "orders"
    assert isinstance(excinfo.value.__cause__, CatalogAccessError)


def test_catalog_facts_fetched_once(flaky_shop):
    connector = flaky_shop()

    extract_everything(connector)

    assert sorted(set(connector.calls)) == sorted(connector.calls)
