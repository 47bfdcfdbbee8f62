"""Persistence of generated modules."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Optional

from schema2orm.exceptions import FileWriteError
from schema2orm.generation.entity_generator import GeneratedFile
from schema2orm.utils.logging import get_logger

logger = get_logger(__name__)


class FileWriter:
    """Writes generated files below a project directory.

    Relative output directories are resolved against ``project_dir``.
    Existing files are never overwritten unless ``force`` is set.
    """

    def __init__(
        self,
        project_dir: str | Path = ".",
        output_dirs: Optional[Dict[str, str | Path]] = None,
    ):
        """Initialize writer.

        Args:
            project_dir: Base directory for relative output paths
            output_dirs: Directory per file kind (entity, repository, enum);
                support files go with the entities
        """
        self.project_dir = Path(project_dir)
        self.output_dirs: Dict[str, Path] = {
            "entity": Path("generated/entity"),
            "repository": Path("generated/repository"),
            "enum": Path("generated/enum"),
        }
        for kind, directory in (output_dirs or {}).items():
            self.output_dirs[kind] = Path(directory)

    def resolve(self, directory: str | Path) -> Path:
        directory = Path(directory)
        return directory if directory.is_absolute() else self.project_dir / directory

    def directory_for(self, kind: str, output_dir: Optional[str | Path] = None) -> Path:
        """Target directory of a file kind; ``output_dir`` overrides entities."""
        if kind in ("entity", "support") and output_dir is not None:
            return self.resolve(output_dir)
        return self.resolve(self.output_dirs.get(kind, self.output_dirs["entity"]))

    def write_file(
        self,
        generated: GeneratedFile,
        output_dir: Optional[str | Path] = None,
        force: bool = False,
    ) -> Path:
        """Write one generated file.

        Args:
            generated: Rendered module
            output_dir: Override for the entity directory
            force: Overwrite an existing file

        Returns:
            Path of the written file

        Raises:
            FileWriteError: If the file exists (without force) or cannot be written
        """
        directory = self.directory_for(generated.kind, output_dir)
        file_path = directory / generated.filename

        if file_path.exists() and not force:
            raise FileWriteError(
                f"File '{file_path}' already exists. Use --force option to overwrite."
            )

        try:
            directory.mkdir(parents=True, exist_ok=True)
            file_path.write_text(generated.content, encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to write {file_path}: {e}")
            raise FileWriteError(f"Failed to write file '{file_path}': {e}") from e

        logger.debug(f"Wrote {file_path} ({len(generated.content)} bytes)")
        return file_path

    def write_files(
        self,
        files: List[GeneratedFile],
        output_dir: Optional[str | Path] = None,
        force: bool = False,
    ) -> List[Path]:
        """Write several files, checking for conflicts before writing any.

        Raises:
            FileWriteError: On the first existing file (without force) or write failure
        """
        if not force:
            for generated in files:
                path = self.directory_for(generated.kind, output_dir) / generated.filename
                if path.exists():
                    raise FileWriteError(
                        f"File '{path}' already exists. Use --force option to overwrite."
                    )

        written = [self.write_file(f, output_dir=output_dir, force=True) for f in files]
        logger.info(f"Wrote {len(written)} files")
        return written

    def validate_output_directory(self, directory: str | Path) -> bool:
        """Check that a directory is usable for output.

        Raises:
            FileWriteError: If the path is not a directory or not writable
        """
        path = self.resolve(directory)
        if path.exists() and not path.is_dir():
            raise FileWriteError(f"Path '{directory}' exists but is not a directory")
        if path.exists() and not os.access(path, os.W_OK):
            raise FileWriteError(f"Directory '{directory}' is not writable")
        return True
