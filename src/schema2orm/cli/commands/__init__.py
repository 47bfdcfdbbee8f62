"""CLI command modules."""

from . import generate, inspect_table, snapshot, tables

__all__ = ["generate", "inspect_table", "snapshot", "tables"]
