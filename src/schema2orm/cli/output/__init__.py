"""CLI output helpers."""

from schema2orm.cli.output.formatters import OutputFormatter

__all__ = ["OutputFormatter"]
