"""Common CLI option decorators."""

from __future__ import annotations

import click


def with_connection_options(f):
    """Add --database-url and --snapshot options to command.

    Example:
        @click.command()
        @with_connection_options
        def my_command(database_url, snapshot):
            pass
    """
    f = click.option(
        "--snapshot",
        type=click.Path(exists=True, dir_okay=False),
        help="Catalog snapshot (YAML/JSON) to read instead of a live database",
    )(f)
    f = click.option(
        "--database-url",
        envvar="SCHEMA2ORM_DATABASE_URL",
        type=str,
        help="SQLAlchemy database URL (default: database.url from config)",
    )(f)
    return f


def with_table_filters(f):
    """Add --tables/-t and --exclude/-x options to command.

    Example:
        @click.command()
        @with_table_filters
        def my_command(tables, exclude):
            pass
    """
    f = click.option(
        "--exclude",
        "-x",
        multiple=True,
        help="Table to exclude (repeatable)",
    )(f)
    f = click.option(
        "--tables",
        "-t",
        multiple=True,
        help="Table to process (repeatable, default: all tables)",
    )(f)
    return f


def with_format(f):
    """Add --format option (json or yaml) to command."""
    return click.option(
        "--format",
        "fmt",
        type=click.Choice(["json", "yaml"], case_sensitive=False),
        default="json",
        show_default=True,
        help="Output format",
    )(f)
