"""Raw catalog facts as supplied by a connector."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class ColumnFacts:
    """One column as reported by the catalog."""

    name: str
    type: str  # Generic type name (e.g. "integer", "string")
    raw_type: Optional[str] = None  # Vendor type string (e.g. "int(11) unsigned")
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    nullable: bool = True
    default: Optional[str] = None
    auto_increment: bool = False
    comment: Optional[str] = None
    enum_values: Optional[Tuple[str, ...]] = None
    set_values: Optional[Tuple[str, ...]] = None

    @property
    def type_to_map(self) -> str:
        """Vendor type when known, generic type otherwise."""
        return self.raw_type or self.type

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ColumnFacts:
        enum_values = data.get("enum_values")
        set_values = data.get("set_values")
        default = data.get("default")
        return cls(
            name=data["name"],
            type=data.get("type") or data.get("raw_type") or "string",
            raw_type=data.get("raw_type"),
            length=data.get("length"),
            precision=data.get("precision"),
            scale=data.get("scale"),
            nullable=bool(data.get("nullable", True)),
            default=None if default is None else str(default),
            auto_increment=bool(data.get("auto_increment", False)),
            comment=data.get("comment") or None,
            enum_values=tuple(enum_values) if enum_values else None,
            set_values=tuple(set_values) if set_values else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "raw_type": self.raw_type,
            "length": self.length,
            "precision": self.precision,
            "scale": self.scale,
            "nullable": self.nullable,
            "default": self.default,
            "auto_increment": self.auto_increment,
            "comment": self.comment,
            "enum_values": list(self.enum_values) if self.enum_values else None,
            "set_values": list(self.set_values) if self.set_values else None,
        }


@dataclass(frozen=True)
class ForeignKeyFacts:
    """Foreign key constraint declared on a table."""

    local_columns: Tuple[str, ...]
    foreign_table: str
    foreign_columns: Tuple[str, ...]
    on_update: str = "RESTRICT"
    on_delete: str = "RESTRICT"
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ForeignKeyFacts:
        return cls(
            local_columns=tuple(data["local_columns"]),
            foreign_table=data["foreign_table"],
            foreign_columns=tuple(data.get("foreign_columns") or ("id",)),
            on_update=data.get("on_update") or "RESTRICT",
            on_delete=data.get("on_delete") or "RESTRICT",
            name=data.get("name"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "local_columns": list(self.local_columns),
            "foreign_table": self.foreign_table,
            "foreign_columns": list(self.foreign_columns),
            "on_update": self.on_update,
            "on_delete": self.on_delete,
        }

    def __repr__(self) -> str:
        return (
            f"FK({', '.join(self.local_columns)} -> "
            f"{self.foreign_table}.{', '.join(self.foreign_columns)})"
        )


@dataclass(frozen=True)
class IndexFacts:
    """Index declared on a table."""

    name: str
    columns: Tuple[str, ...]
    unique: bool = False
    primary: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> IndexFacts:
        return cls(
            name=data["name"],
            columns=tuple(data.get("columns") or ()),
            unique=bool(data.get("unique", False)),
            primary=bool(data.get("primary", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "columns": list(self.columns),
            "unique": self.unique,
            "primary": self.primary,
        }


@dataclass(frozen=True)
class TableDetails:
    """Everything the catalog knows about one table."""

    name: str
    columns: Tuple[ColumnFacts, ...] = ()
    foreign_keys: Tuple[ForeignKeyFacts, ...] = ()
    indexes: Tuple[IndexFacts, ...] = ()
    primary_key: Tuple[str, ...] = ()
    comment: Optional[str] = None

    def column(self, name: str) -> Optional[ColumnFacts]:
        """Look up a column by name."""
        for column in self.columns:
            if column.name == name:
                return column
        return None

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    @property
    def foreign_key_columns(self) -> List[str]:
        """Local columns of every foreign key, in declaration order."""
        seen: List[str] = []
        for fk in self.foreign_keys:
            for column in fk.local_columns:
                if column not in seen:
                    seen.append(column)
        return seen

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> TableDetails:
        return cls(
            name=data.get("name", name),
            columns=tuple(ColumnFacts.from_dict(c) for c in data.get("columns", [])),
            foreign_keys=tuple(
                ForeignKeyFacts.from_dict(fk) for fk in data.get("foreign_keys", [])
            ),
            indexes=tuple(IndexFacts.from_dict(i) for i in data.get("indexes", [])),
            primary_key=tuple(data.get("primary_key") or ()),
            comment=data.get("comment"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "columns": [c.to_dict() for c in self.columns],
            "foreign_keys": [fk.to_dict() for fk in self.foreign_keys],
            "indexes": [i.to_dict() for i in self.indexes],
            "primary_key": list(self.primary_key),
            "comment": self.comment,
        }

    def __repr__(self) -> str:
        return (
            f"TableDetails({self.name}, columns={len(self.columns)}, "
            f"fks={len(self.foreign_keys)}, pk={list(self.primary_key)})"
        )
