"""Mapping of vendor column types onto portable scalar types and storage tags.

Both mappings are total: anything unrecognised (including an empty type)
falls back to ``ScalarType.STRING`` / ``StorageTag.STRING``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from schema2orm.utils.logging import get_logger
from schema2orm.core.metadata.types import ScalarType, StorageTag, TypeRef

logger = get_logger(__name__)

_MODIFIER_PATTERN = re.compile(r"\s+(unsigned|signed|zerofill)\b", re.IGNORECASE)
_WHITESPACE_PATTERN = re.compile(r"\s+")
_PARAMETERS_PATTERN = re.compile(r"\(\s*([^)]*?)\s*\)")
_ENUM_PATTERN = re.compile(r"^\s*enum\s*\((.+)\)\s*$", re.IGNORECASE | re.DOTALL)
_SET_PATTERN = re.compile(r"^\s*set\s*\((.+)\)\s*$", re.IGNORECASE | re.DOTALL)

SPATIAL_KEYWORDS = (
    "geometry",
    "point",
    "linestring",
    "polygon",
    "multipoint",
    "multilinestring",
    "multipolygon",
    "geometrycollection",
)

# base keyword -> (scalar type, storage tag)
_KEYWORD_TABLE: Dict[str, Tuple[ScalarType, StorageTag]] = {
    # Integer family
    "tinyint": (ScalarType.INTEGER, StorageTag.SMALLINT),
    "smallint": (ScalarType.INTEGER, StorageTag.SMALLINT),
    "mediumint": (ScalarType.INTEGER, StorageTag.INTEGER),
    "int": (ScalarType.INTEGER, StorageTag.INTEGER),
    "integer": (ScalarType.INTEGER, StorageTag.INTEGER),
    "bigint": (ScalarType.INTEGER, StorageTag.BIGINT),
    "year": (ScalarType.INTEGER, StorageTag.INTEGER),
    # Approximate numeric
    "float": (ScalarType.FLOAT, StorageTag.FLOAT),
    "double": (ScalarType.FLOAT, StorageTag.FLOAT),
    "real": (ScalarType.FLOAT, StorageTag.FLOAT),
    # Exact numeric stays a string to keep arbitrary precision
    "decimal": (ScalarType.STRING, StorageTag.DECIMAL),
    "numeric": (ScalarType.STRING, StorageTag.DECIMAL),
    # Boolean
    "bool": (ScalarType.BOOLEAN, StorageTag.BOOLEAN),
    "boolean": (ScalarType.BOOLEAN, StorageTag.BOOLEAN),
    "bit": (ScalarType.BOOLEAN, StorageTag.BOOLEAN),
    # Date and time
    "date": (ScalarType.INSTANT, StorageTag.DATE),
    "datetime": (ScalarType.INSTANT, StorageTag.DATETIME),
    "timestamp": (ScalarType.INSTANT, StorageTag.DATETIME),
    "time": (ScalarType.INSTANT, StorageTag.TIME),
    # Structured
    "json": (ScalarType.MAPPING, StorageTag.JSON),
    # Character data
    "char": (ScalarType.STRING, StorageTag.STRING),
    "varchar": (ScalarType.STRING, StorageTag.STRING),
    "tinytext": (ScalarType.STRING, StorageTag.TEXT),
    "text": (ScalarType.STRING, StorageTag.TEXT),
    "mediumtext": (ScalarType.STRING, StorageTag.TEXT),
    "longtext": (ScalarType.STRING, StorageTag.TEXT),
    # Binary data
    "tinyblob": (ScalarType.STRING, StorageTag.BLOB),
    "blob": (ScalarType.STRING, StorageTag.BLOB),
    "mediumblob": (ScalarType.STRING, StorageTag.BLOB),
    "longblob": (ScalarType.STRING, StorageTag.BLOB),
    "binary": (ScalarType.STRING, StorageTag.BINARY),
    "varbinary": (ScalarType.STRING, StorageTag.BINARY),
    "uuid": (ScalarType.STRING, StorageTag.UUID),
    # Value sets are carried through enum_values / set_values
    "enum": (ScalarType.STRING, StorageTag.STRING),
    "set": (ScalarType.STRING, StorageTag.STRING),
}
_KEYWORD_TABLE.update(
    {keyword: (ScalarType.STRING, StorageTag.STRING) for keyword in SPATIAL_KEYWORDS}
)

# Spellings used by other dialects and by SQLAlchemy's compiled types
_ALIASES: Dict[str, str] = {
    "double precision": "double",
    "float4": "real",
    "float8": "double",
    "int2": "smallint",
    "int4": "int",
    "int8": "bigint",
    "serial": "int",
    "smallserial": "smallint",
    "bigserial": "bigint",
    "character": "char",
    "character varying": "varchar",
    "nvarchar": "varchar",
    "nchar": "char",
    "string": "varchar",
    "clob": "text",
    "timestamp without time zone": "timestamp",
    "timestamp with time zone": "timestamp",
    "timestamptz": "timestamp",
    "time without time zone": "time",
    "time with time zone": "time",
    "timetz": "time",
    "jsonb": "json",
    "bytea": "blob",
    "uniqueidentifier": "uuid",
}


@dataclass(frozen=True)
class TypeMappingConfig:
    """Immutable custom keyword overrides, built once per run."""

    custom: Mapping[str, Tuple[ScalarType, StorageTag]] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: Any) -> TypeMappingConfig:
        """Build overrides from the ``type_mapping.custom`` config section.

        Each entry maps a base keyword to ``{"scalar": "int", "storage": "integer"}``.
        Unknown scalar or storage names are skipped with a warning.
        """
        raw: Dict[str, Any] = config.get("type_mapping.custom", {}) or {}
        custom: Dict[str, Tuple[ScalarType, StorageTag]] = {}
        for keyword, spec in raw.items():
            spec = spec or {}
            try:
                scalar = ScalarType(spec.get("scalar", ScalarType.STRING.value))
                storage = StorageTag(spec.get("storage", StorageTag.STRING.value))
            except ValueError as e:
                logger.warning(f"Ignoring custom type mapping for '{keyword}': {e}")
                continue
            custom[normalize_keyword(str(keyword))] = (scalar, storage)
        return cls(custom=custom)


def strip_modifiers(raw_type: str) -> str:
    """Remove unsigned/signed/zerofill tokens."""
    return _MODIFIER_PATTERN.sub("", raw_type)


def normalize_keyword(raw_type: str) -> str:
    """Lower-cased, whitespace-normalized text before the first parenthesis."""
    keyword = strip_modifiers(raw_type).split("(", 1)[0]
    return _WHITESPACE_PATTERN.sub(" ", keyword).strip().lower()


def base_keyword(raw_type: Optional[str]) -> str:
    """Resolve a raw type to the keyword used for dispatch."""
    if not raw_type:
        return ""
    keyword = normalize_keyword(raw_type)
    return _ALIASES.get(keyword, keyword)


class TypeMapper:
    """Maps raw/vendor type strings to portable types."""

    def __init__(self, config: Optional[TypeMappingConfig] = None):
        self.config = config or TypeMappingConfig()

    def _lookup(self, raw_type: Optional[str]) -> Tuple[ScalarType, StorageTag]:
        keyword = base_keyword(raw_type)
        if keyword in self.config.custom:
            return self.config.custom[keyword]
        mapped = _KEYWORD_TABLE.get(keyword)
        if mapped is None:
            logger.debug(f"Unknown type '{raw_type}', falling back to string")
            return ScalarType.STRING, StorageTag.STRING
        return mapped

    def map_scalar(self, raw_type: Optional[str]) -> ScalarType:
        """Map a raw type to its portable scalar type.

        Args:
            raw_type: Vendor type string, e.g. ``"int(11) unsigned"``

        Returns:
            The scalar type; ``ScalarType.STRING`` when unknown
        """
        return self._lookup(raw_type)[0]

    def map_storage_tag(self, raw_type: Optional[str]) -> StorageTag:
        """Map a raw type to its storage tag; ``StorageTag.STRING`` when unknown."""
        return self._lookup(raw_type)[1]

    @staticmethod
    def compose(
        scalar: ScalarType, storage_tag: StorageTag, nullable: bool, is_primary: bool
    ) -> TypeRef:
        """Qualify a scalar type with nullability.

        Primary keys and booleans are never nullable.
        """
        return TypeRef(
            scalar=scalar,
            nullable=bool(nullable)
            and not is_primary
            and storage_tag is not StorageTag.BOOLEAN,
        )


def parse_type_parameters(
    raw_type: Optional[str],
) -> Tuple[Optional[int], Optional[int], Optional[int]]:
    """Extract (length, precision, scale) from a parameterised type.

    ``varchar(255)`` gives ``(255, None, None)``; ``decimal(10,2) unsigned``
    gives ``(None, 10, 2)``. Enum and set definitions yield nothing.

    Args:
        raw_type: Vendor type string

    Returns:
        Tuple of length, precision and scale
    """
    if not raw_type or is_enum_or_set_type(raw_type):
        return None, None, None

    match = _PARAMETERS_PATTERN.search(raw_type)
    if not match:
        return None, None, None

    parts = [p.strip() for p in match.group(1).split(",")]
    if not all(p.isdigit() for p in parts):
        return None, None, None

    keyword = base_keyword(raw_type)
    scalar, storage = _KEYWORD_TABLE.get(keyword, (ScalarType.STRING, StorageTag.STRING))
    if storage is StorageTag.DECIMAL or scalar is ScalarType.FLOAT:
        precision = int(parts[0])
        scale = int(parts[1]) if len(parts) > 1 else None
        return None, precision, scale
    if len(parts) == 1:
        return int(parts[0]), None, None
    return None, None, None


def _split_quoted_values(body: str) -> List[str]:
    """Split ``'a','b,c','it''s'`` into its literal values."""
    values: List[str] = []
    current: List[str] = []
    quote: Optional[str] = None
    i = 0
    while i < len(body):
        char = body[i]
        if quote is None:
            if char in ("'", '"'):
                quote = char
                current = []
            elif char == ",":
                pass
            i += 1
            continue
        if char == "\\" and i + 1 < len(body):
            current.append(body[i + 1])
            i += 2
            continue
        if char == quote:
            # Doubled quote is an escaped quote
            if i + 1 < len(body) and body[i + 1] == quote:
                current.append(quote)
                i += 2
                continue
            values.append("".join(current))
            quote = None
            i += 1
            continue
        current.append(char)
        i += 1
    return values


def extract_enum_values(definition: Optional[str]) -> List[str]:
    """Values of an ``enum('a','b')`` definition, empty if not an enum."""
    if not definition:
        return []
    match = _ENUM_PATTERN.match(definition)
    return _split_quoted_values(match.group(1)) if match else []


def extract_set_values(definition: Optional[str]) -> List[str]:
    """Values of a ``set('a','b')`` definition, empty if not a set."""
    if not definition:
        return []
    match = _SET_PATTERN.match(definition)
    return _split_quoted_values(match.group(1)) if match else []


def is_enum_or_set_type(raw_type: Optional[str]) -> bool:
    if not raw_type:
        return False
    return base_keyword(raw_type) in ("enum", "set")


def is_spatial_type(raw_type: Optional[str]) -> bool:
    return base_keyword(raw_type) in SPATIAL_KEYWORDS


_default_mapper = TypeMapper()


def map_scalar(raw_type: Optional[str]) -> ScalarType:
    """Map with the default (override-free) mapper."""
    return _default_mapper.map_scalar(raw_type)


def map_storage_tag(raw_type: Optional[str]) -> StorageTag:
    """Map with the default (override-free) mapper."""
    return _default_mapper.map_storage_tag(raw_type)
