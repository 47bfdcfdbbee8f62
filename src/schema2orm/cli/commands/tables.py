"""Table listing command."""

from __future__ import annotations

import click

from schema2orm.cli.decorators import handle_errors, with_connection_options
from schema2orm.cli.handlers import GenerationHandler
from schema2orm.cli.output import OutputFormatter
from schema2orm.utils.config import get_config

out = OutputFormatter()


@click.command(name="tables")
@with_connection_options
@handle_errors
def tables_cmd(database_url, snapshot):
    """List the tables available for generation.

    \b
    Examples:
        schema2orm tables --database-url sqlite:///shop.db
        schema2orm tables --snapshot catalog.yml
    """
    service = GenerationHandler(get_config()).service(
        database_url=database_url, snapshot=snapshot
    )
    service.validate_database_connection()

    table_names = service.get_available_tables()
    if not table_names:
        out.warning("No tables found")
        return

    out.section(f"📋 {len(table_names)} tables:")
    out.list_items(table_names)
