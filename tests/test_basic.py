"""Basic tests for schema2orm."""

import schema2orm
from schema2orm import MetadataExtractor, ReverseEngineeringService


def test_shop_schema(shop_connector):
    """Metadata for the whole shop catalog."""
    extractor = MetadataExtractor(shop_connector)
    metadata = extractor.extract_all(shop_connector.get_table_names())

    # Assertions
    assert len(metadata) == 6
    assert "user_roles" not in metadata

    order = metadata["orders"]
    assert order.entity_name == "Order"
    assert order.many_to_one[0].target_entity == "Customer"
    assert metadata["customers"].one_to_many[0].target_entity == "Order"


def test_dry_run(shop_connector):
    result = ReverseEngineeringService(shop_connector).generate_entities(dry_run=True)

    assert len(result.entities) == 6
    assert result.files == []


def test_version():
    """Test version is set."""
    assert schema2orm.__version__ == "0.1.0"
    assert "ReverseEngineeringService" in schema2orm.__all__
