"""Single-table metadata inspection command."""

from __future__ import annotations

import click

from schema2orm.cli.decorators import handle_errors, with_connection_options, with_format
from schema2orm.cli.handlers import GenerationHandler
from schema2orm.cli.output import OutputFormatter
from schema2orm.utils.config import get_config

out = OutputFormatter()


@click.command(name="inspect")
@click.argument("table")
@with_connection_options
@with_format
@handle_errors
def inspect_cmd(table, database_url, snapshot, fmt):
    """Show the metadata extracted for TABLE.

    \b
    Examples:
        schema2orm inspect products --snapshot catalog.yml
        schema2orm inspect users --format yaml
    """
    handler = GenerationHandler(get_config())
    service = handler.service(database_url=database_url, snapshot=snapshot)
    out.structured(handler.describe_table(service, table), fmt=fmt.lower())
