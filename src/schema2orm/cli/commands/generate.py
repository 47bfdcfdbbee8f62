"""Entity generation command."""

from __future__ import annotations

import click

from schema2orm.cli.decorators import handle_errors, with_connection_options, with_table_filters
from schema2orm.cli.handlers import GenerationHandler
from schema2orm.cli.output import OutputFormatter
from schema2orm.utils.config import get_config
from schema2orm.utils.logging import get_logger

logger = get_logger(__name__)
out = OutputFormatter()


@click.command(name="generate")
@with_connection_options
@with_table_filters
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False),
    help="Entity output directory (default: generation.output_dir from config)",
)
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Overwrite existing files",
)
@click.option(
    "--dry-run",
    "-d",
    is_flag=True,
    help="Render everything without writing files",
)
@click.option(
    "--fail-fast",
    is_flag=True,
    help="Stop at the first table whose metadata cannot be extracted",
)
@handle_errors
def generate_cmd(database_url, snapshot, tables, exclude, output_dir, force, dry_run, fail_fast):
    """Generate SQLAlchemy entities from a database schema.

    \b
    Examples:
        # Generate from a live database
        schema2orm generate --database-url mysql+pymysql://root@localhost/shop

        # Only some tables, preview without writing
        schema2orm generate -t users -t orders --dry-run

        # Generate from an exported catalog snapshot
        schema2orm generate --snapshot catalog.yml -o src/app/entity --force
    """
    config = get_config()
    logger.debug(
        f"generate: tables={list(tables)} exclude={list(exclude)} "
        f"output_dir={output_dir} force={force} dry_run={dry_run}"
    )
    handler = GenerationHandler(config)
    service = handler.service(database_url=database_url, snapshot=snapshot)

    out.section("🔍 Validating database connection...")
    service.validate_database_connection()
    out.success("Connection established")

    out.section("🏗️  Generating entities...")
    if output_dir:
        service.file_writer.validate_output_directory(output_dir)

    result = service.generate_entities(
        tables=list(tables),
        exclude=list(exclude),
        output_dir=output_dir,
        force=force,
        dry_run=dry_run,
        fail_fast=fail_fast,
    )

    out.section("📊 Summary:")
    out.stats(handler.summary(result))

    if result.junction_tables:
        out.section("   Junction tables (mapped as many-to-many):")
        out.list_items(result.junction_tables, indent="     ")

    if dry_run:
        out.section("   Files that would be generated:")
        out.list_items(
            [f"{g.kind}: {g.filename}" for g in result.generated], indent="     "
        )
    else:
        out.section("   Files written:")
        out.list_items([str(p) for p in result.files], indent="     ")

    if result.failures:
        out.section("⚠️  Tables skipped:")
        out.list_items([f"{t}: {msg}" for t, msg in result.failures.items()])
        out.warning(f"{len(result.failures)} tables could not be processed")
    else:
        out.success(f"Generated {len(result.entities)} entities")

    if dry_run:
        out.info("Dry run: no files were written")
    else:
        out.next_steps(
            "💡 Next steps:",
            [
                "Import the entity package once so every mapper is registered",
                "Run Base.metadata.create_all(engine) against a scratch database to check the mapping",
                "Review relationship names before committing the generated code",
            ],
        )
