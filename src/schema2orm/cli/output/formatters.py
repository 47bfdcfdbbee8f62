"""Output formatting utilities for CLI."""

from __future__ import annotations

import json
from typing import Any, Dict, List

import click
import yaml


class OutputFormatter:
    """Format output for CLI display.

    Provides consistent formatting for status messages and structured data.

    Example:
        >>> out = OutputFormatter()
        >>> out.success("Generated 12 entities")
        >>> out.stats({"tables": 14, "junction tables": 2})
    """

    @staticmethod
    def success(message: str) -> None:
        """Display success message with checkmark.

        Args:
            message: Success message to display
        """
        click.echo(f"✓ {message}")

    @staticmethod
    def warning(message: str) -> None:
        click.echo(f"⚠️  {message}")

    @staticmethod
    def info(message: str) -> None:
        click.echo(f"ℹ️  {message}")

    @staticmethod
    def section(title: str) -> None:
        click.echo(f"\n{title}")

    @staticmethod
    def stats(stats_dict: Dict[str, Any], indent: str = "   ") -> None:
        """Display statistics dictionary in key: value format.

        Args:
            stats_dict: Dictionary of statistics to display
            indent: Indentation string for each line
        """
        for key, value in stats_dict.items():
            click.echo(f"{indent}{key}: {value}")

    @staticmethod
    def list_items(items: List[str], indent: str = "   ", bullet: str = "-") -> None:
        """Display list of items with bullets.

        Args:
            items: List of strings to display
            indent: Indentation string for each line
            bullet: Bullet character to use
        """
        for item in items:
            click.echo(f"{indent}{bullet} {item}")

    @staticmethod
    def structured(data: Dict[str, Any], fmt: str = "json") -> None:
        """Print a dictionary as JSON or YAML.

        Args:
            data: Data to print
            fmt: ``json`` or ``yaml``
        """
        if fmt == "yaml":
            click.echo(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), nl=False)
        else:
            click.echo(json.dumps(data, indent=2, ensure_ascii=False))

    @staticmethod
    def next_steps(title: str, steps: List[str]) -> None:
        """Display next steps section.

        Args:
            title: Section title
            steps: List of next step descriptions
        """
        click.echo(f"\n{title}")
        for step in steps:
            click.echo(f"   - {step}")
