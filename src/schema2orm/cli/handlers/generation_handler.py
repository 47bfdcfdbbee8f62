"""Business logic for the generation commands."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from schema2orm.connectors.snapshot_loader import dump_snapshot
from schema2orm.service import GenerationResult, ReverseEngineeringService
from schema2orm.utils.config import Config


class GenerationHandler:
    """Handler for catalog and generation operations.

    Keeps CLI commands thin and focused on user interaction.

    Example:
        >>> handler = GenerationHandler(config)
        >>> service = handler.service(snapshot="catalog.yml")
        >>> handler.summary(service.generate_entities(dry_run=True))
    """

    def __init__(self, config: Config):
        """Initialize handler.

        Args:
            config: Configuration instance
        """
        self.config = config

    def service(
        self, database_url: Optional[str] = None, snapshot: Optional[str] = None
    ) -> ReverseEngineeringService:
        return ReverseEngineeringService.from_config(
            self.config, database_url=database_url, snapshot=snapshot
        )

    @staticmethod
    def summary(result: GenerationResult) -> Dict[str, Any]:
        """Headline numbers of a generation run."""
        counts: Dict[str, int] = {}
        for generated in result.generated:
            counts[generated.kind] = counts.get(generated.kind, 0) + 1
        return {
            "Tables processed": result.tables_processed,
            "Entities": len(result.entities),
            "Junction tables": len(result.junction_tables),
            "Repositories": counts.get("repository", 0),
            "Enums": counts.get("enum", 0),
            "Files written": len(result.files),
            "Failures": len(result.failures),
            "Duration": f"{result.duration:.2f}s",
        }

    def describe_table(
        self, service: ReverseEngineeringService, table_name: str
    ) -> Dict[str, Any]:
        """Metadata of one table as plain data; junction tables show their facts."""
        metadata = service.get_table_info(table_name)
        if metadata is None:
            return {
                "table_name": table_name,
                "junction_table": True,
                "details": service.get_table_details(table_name).to_dict(),
            }
        return metadata.to_dict()

    def export_snapshot(
        self,
        service: ReverseEngineeringService,
        output: str | Path,
        tables: Sequence[str] = (),
        exclude: Sequence[str] = (),
    ) -> Path:
        selected: List[str] = service.connector.analyze_tables(tables, exclude)
        return dump_snapshot(service.connector, output, tables=selected)
