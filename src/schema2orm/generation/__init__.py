"""Code generation for schema2orm."""

from schema2orm.generation.entity_generator import EntityGenerator, GeneratedFile
from schema2orm.generation.enum_generator import EnumClassGenerator
from schema2orm.generation.file_writer import FileWriter

__all__ = ["EntityGenerator", "EnumClassGenerator", "FileWriter", "GeneratedFile"]
