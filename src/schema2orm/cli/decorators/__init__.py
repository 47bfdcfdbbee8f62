"""CLI decorators for common options and error handling."""

from schema2orm.cli.decorators.error_handling import handle_errors
from schema2orm.cli.decorators.options import (
    with_connection_options,
    with_format,
    with_table_filters,
)

__all__ = [
    "handle_errors",
    "with_connection_options",
    "with_format",
    "with_table_filters",
]
