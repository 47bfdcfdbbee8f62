"""Command-line interface for schema2orm."""
