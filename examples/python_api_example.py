"""Python API usage examples for schema2orm."""

from schema2orm import (
    Config,
    ConnectorFactory,
    EntityGenerator,
    MetadataExtractor,
    ReverseEngineeringService,
)
from schema2orm.connectors import dump_snapshot

DATABASE_URL = "sqlite:///data/shop.db"


# Example 1: List tables and spot junction tables
def example_list_tables():
    """Table listing example."""
    print("Example 1: List Tables")
    print("=" * 60)

    connector = ConnectorFactory.create_connector("database", connection_string=DATABASE_URL)
    extractor = MetadataExtractor(connector)

    for table in connector.get_table_names():
        marker = " (junction)" if extractor.is_junction_table(table) else ""
        print(f"  {table}{marker}")


# Example 2: Inspect the metadata of one table
def example_inspect_table():
    """Table metadata example."""
    print("\n\nExample 2: Inspect Table Metadata")
    print("=" * 60)

    connector = ConnectorFactory.create_connector("database", connection_string=DATABASE_URL)
    metadata = MetadataExtractor(connector).extract_table_metadata("orders")
    if metadata is None:
        print("orders is a junction table")
        return

    print(f"Entity: {metadata.entity_name} ({metadata.repository_name})")
    for column in metadata.columns:
        print(f"  {column.property_name}: {column.scalar_type.render()}")
    for relation in metadata.relations:
        print(f"  {relation.property_name} -> {relation.target_entity} [{relation.kind}]")


# Example 3: Preview generated code without writing it
def example_dry_run():
    """Dry run example."""
    print("\n\nExample 3: Dry Run")
    print("=" * 60)

    config = Config()
    config.set("database.url", DATABASE_URL)
    config.set("generation.entity_package", "shop.entity")

    service = ReverseEngineeringService.from_config(config)
    result = service.generate_entities(dry_run=True)

    print(f"Entities: {', '.join(result.entities)}")
    print(f"Junction tables: {', '.join(result.junction_tables) or '-'}")
    for generated in result.generated:
        print(f"  {generated.kind}: {generated.filename}")


# Example 4: Render a single entity module
def example_render_entity():
    """Single entity rendering example."""
    print("\n\nExample 4: Render One Entity")
    print("=" * 60)

    connector = ConnectorFactory.create_connector("database", connection_string=DATABASE_URL)
    metadata = MetadataExtractor(connector).extract_table_metadata("customers")
    generator = EntityGenerator(entity_package="shop.entity", repository_package="shop.repository")

    print(generator.generate_entity(metadata))


# Example 5: Export a snapshot and generate from it offline
def example_snapshot():
    """Snapshot round trip example."""
    print("\n\nExample 5: Generate From a Snapshot")
    print("=" * 60)

    connector = ConnectorFactory.create_connector("database", connection_string=DATABASE_URL)
    path = dump_snapshot(connector, "data/catalog.yml")
    print(f"Snapshot saved to {path}")

    config = Config()
    config.set("database.snapshot", str(path))
    config.set("generation.output_dir", "build/shop/entity")
    config.set("generation.repository_output_dir", "build/shop/repository")
    config.set("generation.enum_output_dir", "build/shop/enum")

    result = ReverseEngineeringService.from_config(config).generate_entities(force=True)
    print(f"Wrote {len(result.files)} files")
    for table, message in result.failures.items():
        print(f"  skipped {table}: {message}")


def main():
    """Run all examples."""
    try:
        example_list_tables()
        example_inspect_table()
        example_dry_run()
        example_render_entity()
        example_snapshot()

    except Exception as e:
        print(f"\nError: {e}")
        print("\nPlease ensure data/shop.db exists, or point DATABASE_URL at your database.")


if __name__ == "__main__":
    main()
