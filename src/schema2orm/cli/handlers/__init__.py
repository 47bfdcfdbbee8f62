"""CLI command handlers containing business logic."""

from schema2orm.cli.handlers.generation_handler import GenerationHandler

__all__ = ["GenerationHandler"]
