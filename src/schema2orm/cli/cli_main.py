"""CLI entry point for schema2orm."""

from __future__ import annotations

import click

from schema2orm import __version__
from schema2orm.cli.commands import generate, inspect_table, snapshot, tables
from schema2orm.utils.config import load_config
from schema2orm.utils.logging import setup_logging


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    type=click.Path(exists=True),
    help="Path to schema2orm.yml file",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Logging level",
)
@click.pass_context
def cli(ctx, config, log_level):
    """schema2orm - Reverse-engineer a database schema into SQLAlchemy models.

    \b
    Examples:
        # List the tables of a database
        schema2orm tables --database-url sqlite:///shop.db

        # Generate entities, repositories and enums
        schema2orm generate --database-url sqlite:///shop.db -o app/entity

        # Inspect what would be generated for one table
        schema2orm inspect products --format yaml

        # Export the catalog for offline generation
        schema2orm snapshot -o catalog.yml
    """
    ctx.ensure_object(dict)

    # Setup logging
    setup_logging(level=log_level)

    # Load config if provided
    if config:
        ctx.obj["config"] = load_config(config)


cli.add_command(generate.generate_cmd)
cli.add_command(tables.tables_cmd)
cli.add_command(inspect_table.inspect_cmd)
cli.add_command(snapshot.snapshot_cmd)


def main():
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
