"""Tests for the generation pipeline."""

import importlib
import sys
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, configure_mappers

from schema2orm.connectors import DBConnector, SnapshotConnector, dump_snapshot
from schema2orm.exceptions import (
    EntityNameCollisionError,
    MetadataExtractionError,
    ReverseEngineeringError,
)
from schema2orm.generation.file_writer import FileWriter
from schema2orm.service import ReverseEngineeringService
from schema2orm.utils.config import Config


def _writer(root, package="generated"):
    return FileWriter(
        project_dir=root,
        output_dirs={
            "entity": f"{package}/entity",
            "repository": f"{package}/repository",
            "enum": f"{package}/enum",
        },
    )


def test_dry_run_writes_nothing(shop_connector, tmp_path):
    service = ReverseEngineeringService(shop_connector, file_writer=_writer(tmp_path))

    result = service.generate_entities(dry_run=True)

    assert result.dry_run
    assert result.files == []
    assert not (tmp_path / "generated").exists()
    assert sorted(result.entities) == [
        "Category", "Customer", "Order", "Product", "Role", "User"
    ]
    assert result.junction_tables == ["user_roles"]
    assert result.tables_processed == 7
    assert result.ok

    kinds = {g.kind for g in result.generated}
    assert kinds == {"support", "entity", "repository", "enum"}
    enum_files = [g.filename for g in result.generated if g.kind == "enum"]
    assert enum_files == ["user_status_enum.py", "__init__.py"]


def test_files_are_written(shop_connector, tmp_path):
    service = ReverseEngineeringService(shop_connector, file_writer=_writer(tmp_path))

    result = service.generate_entities()

    assert (tmp_path / "generated/entity/base.py").exists()
    assert (tmp_path / "generated/entity/associations.py").exists()
    assert (tmp_path / "generated/repository/order_repository.py").exists()
    assert (tmp_path / "generated/enum/user_status_enum.py").exists()
    assert len(result.files) == len(result.generated)
    assert result.to_dict()["entities"] == result.entities


def test_second_run_needs_force(shop_connector, tmp_path):
    service = ReverseEngineeringService(shop_connector, file_writer=_writer(tmp_path))
    service.generate_entities()

    with pytest.raises(ReverseEngineeringError, match="already exists"):
        service.generate_entities()

    assert service.generate_entities(force=True).files


def test_table_filters(shop_connector):
    config = Config()
    config.set("generation.exclude_tables", ["roles"])
    service = ReverseEngineeringService(shop_connector, config=config)

    result = service.generate_entities(tables=["users", "roles", "user_roles"], dry_run=True)

    # Without roles in the run, user_roles is an ordinary entity
    assert sorted(result.entities) == ["User", "UserRole"]
    assert result.junction_tables == []


def test_no_tables_raises(shop_connector):
    service = ReverseEngineeringService(shop_connector)

    with pytest.raises(ReverseEngineeringError, match="No tables found"):
        service.generate_entities(tables=["ghosts"], dry_run=True)


def test_failures_are_collected(flaky_shop):
    service = ReverseEngineeringService(flaky_shop("orders"))

    result = service.generate_entities(dry_run=True)

    assert not result.ok
    assert list(result.failures) == ["orders"]
    assert "Order" not in result.entities
    assert "Customer" in result.entities


def test_fail_fast(flaky_shop):
    service = ReverseEngineeringService(flaky_shop("orders"))

    with pytest.raises(MetadataExtractionError):
        service.generate_entities(dry_run=True, fail_fast=True)


def test_nothing_generated_raises(flaky_shop):
    service = ReverseEngineeringService(flaky_shop("orders"))

    with pytest.raises(ReverseEngineeringError, match="No entity could be generated"):
        service.generate_entities(tables=["orders"], dry_run=True)


def test_entity_name_collision(catalog):
    catalog.entity("user")
    catalog.entity("users")
    service = ReverseEngineeringService(catalog.connector())

    with pytest.raises(EntityNameCollisionError):
        service.generate_entities(dry_run=True)

    assert service.generate_entities(exclude=["user"], dry_run=True).entities == ["User"]


def test_enums_can_be_disabled(shop_connector):
    config = Config()
    config.set("generation.generate_enums", False)
    service = ReverseEngineeringService(shop_connector, config=config)

    result = service.generate_entities(dry_run=True)

    assert not [g for g in result.generated if g.kind == "enum"]
    user = next(g for g in result.generated if g.filename == "user.py")
    assert "STATUS_VALUES" in user.content


def test_table_info(shop_connector):
    service = ReverseEngineeringService(shop_connector)

    assert service.get_table_info("orders").entity_name == "Order"
    assert service.get_table_info("user_roles") is None
    assert service.get_table_details("user_roles").primary_key == ("user_id", "role_id")
    assert "orders" in service.get_available_tables()


def test_from_config_requires_a_database():
    with pytest.raises(ReverseEngineeringError, match="No database configured"):
        ReverseEngineeringService.from_config(Config())


def test_from_config_sources(sqlite_url, shop_connector, tmp_path):
    snapshot = dump_snapshot(shop_connector, tmp_path / "catalog.yml")
    config = Config()
    config.set("database.snapshot", str(snapshot))

    assert isinstance(ReverseEngineeringService.from_config(config).connector, SnapshotConnector)
    explicit = ReverseEngineeringService.from_config(config, database_url=sqlite_url)
    assert isinstance(explicit.connector, DBConnector)


def test_sqlite_database(sqlite_url):
    service = ReverseEngineeringService.from_config(Config(), database_url=sqlite_url)

    result = service.generate_entities(dry_run=True)

    assert sorted(result.entities) == ["Customer", "Order", "Tag"]
    assert result.junction_tables == ["order_tags"]
    order = next(g for g in result.generated if g.filename == "order.py").content
    assert 'tags: Mapped[List["Tag"]] = relationship(secondary="order_tags"' in order
    assert 'ForeignKey("customers.id", ondelete="CASCADE")' in order
    assert '@event.listens_for(Order, "init")' in order


@pytest.fixture
def shopgen(tmp_path, monkeypatch):
    """Directory on sys.path for a generated ``shopgen`` package."""
    monkeypatch.syspath_prepend(str(tmp_path))
    yield tmp_path
    for name in list(sys.modules):
        if name == "shopgen" or name.startswith("shopgen."):
            del sys.modules[name]


def test_generated_package_maps_and_persists(shop_connector, shopgen):
    config = Config()
    config.set("generation.entity_package", "shopgen.entity")
    config.set("generation.repository_package", "shopgen.repository")
    config.set("generation.enum_package", "shopgen.enum")
    service = ReverseEngineeringService(
        shop_connector, config=config, file_writer=_writer(shopgen, "shopgen")
    )
    service.generate_entities()
    importlib.invalidate_caches()

    entity = importlib.import_module("shopgen.entity")
    enums = importlib.import_module("shopgen.enum")
    repositories = importlib.import_module("shopgen.repository.user_repository")
    configure_mappers()

    engine = create_engine("sqlite://")
    entity.Base.metadata.create_all(engine)

    with Session(engine) as session:
        admin = entity.Role(name="admin")
        user = entity.User(email="ann@example.com", status=enums.UserStatusEnum.ACTIVE)
        user.add_role(admin)
        root = entity.Category(name="root")
        child = entity.Category(name="pens", parent=root)
        product = entity.Product(name="pen", price=Decimal("1.50"), category=child)
        customer = entity.Customer(name="Ann")
        order = entity.Order(total=Decimal("3.00"), customer=customer)
        session.add_all([user, root, product, order])
        session.commit()

        found = repositories.UserRepository(session).find_one_by(email="ann@example.com")
        assert found is user
        assert found.createdAt is not None
        assert found.roles == [admin]
        assert admin.users == [user]
        assert root.children == [child]
        assert child.products == [product]
        assert customer.orders == [order]
        assert repr(order) == f"<Order id={order.id!r}>"

    engine.dispose()


def _generate_package(connector, root, tables=None):
    config = Config()
    config.set("generation.entity_package", "shopgen.entity")
    config.set("generation.repository_package", "shopgen.repository")
    config.set("generation.enum_package", "shopgen.enum")
    service = ReverseEngineeringService(
        connector, config=config, file_writer=_writer(root, "shopgen")
    )
    result = service.generate_entities(tables=tables)
    importlib.invalidate_caches()
    return result


def test_filtered_run_maps_without_missing_targets(shop_connector, shopgen):
    result = _generate_package(shop_connector, shopgen, tables=["orders"])

    assert result.entities == ["Order"]
    entity = importlib.import_module("shopgen.entity")
    configure_mappers()

    engine = create_engine("sqlite://")
    entity.Base.metadata.create_all(engine)
    with Session(engine) as session:
        session.add(entity.Order(customerId=7, total=Decimal("2.00")))
        session.commit()
        assert session.get(entity.Order, 1).customerId == 7
    engine.dispose()


def test_keyword_columns_import(catalog, shopgen):
    c = catalog
    c.entity(
        "bookings",
        c.col("from", "date", nullable=False),
        c.col("to", "date", nullable=True),
        c.col("class", "varchar(20)", nullable=True),
        c.col("import", "int(11)", nullable=True),
    )
    _generate_package(c.connector(), shopgen)

    entity = importlib.import_module("shopgen.entity")
    repositories = importlib.import_module("shopgen.repository.booking_repository")
    configure_mappers()

    engine = create_engine("sqlite://")
    entity.Base.metadata.create_all(engine)
    with Session(engine) as session:
        booking = entity.Booking(from_=date(2024, 5, 1), class_="first", import_=3)
        repositories.BookingRepository(session).add(booking, flush=True)
        assert repositories.BookingRepository(session).find_one_by(class_="first") is booking
        assert booking.from_ == date(2024, 5, 1)
    engine.dispose()
