"""Catalog snapshot export command."""

from __future__ import annotations

import click

from schema2orm.cli.decorators import handle_errors, with_table_filters
from schema2orm.cli.handlers import GenerationHandler
from schema2orm.cli.output import OutputFormatter
from schema2orm.utils.config import get_config

out = OutputFormatter()


@click.command(name="snapshot")
@click.option(
    "--database-url",
    envvar="SCHEMA2ORM_DATABASE_URL",
    type=str,
    help="SQLAlchemy database URL (default: database.url from config)",
)
@with_table_filters
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    default="catalog.yml",
    show_default=True,
    help="Snapshot file (.json for JSON, YAML otherwise)",
)
@handle_errors
def snapshot_cmd(database_url, tables, exclude, output):
    """Export the database catalog to a snapshot file.

    The snapshot can later be fed to `generate --snapshot` without a
    database connection.

    \b
    Examples:
        schema2orm snapshot --database-url sqlite:///shop.db -o catalog.yml
    """
    handler = GenerationHandler(get_config())
    service = handler.service(database_url=database_url)
    service.validate_database_connection()

    path = handler.export_snapshot(service, output, tables=tables, exclude=exclude)
    out.success(f"Snapshot saved to {path}")
