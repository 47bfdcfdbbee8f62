"""Generation of Python enum classes for enumerated columns."""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence, Tuple

from jinja2 import TemplateError

from schema2orm.core.metadata.types import EnumTypeRef
from schema2orm.core.naming import to_pascal_case, to_snake_case, unique_name
from schema2orm.exceptions import EntityGenerationError
from schema2orm.generation.templating import render_template
from schema2orm.utils.logging import get_logger

logger = get_logger(__name__)

ENUM_SUFFIX = "Enum"


class EnumClassGenerator:
    """Issues stable enum type names and renders their modules.

    Requests are cached per ``table.column`` for the lifetime of the
    generator, so one run never generates the same enum twice. Type names
    are unique within a run: a column whose name is already taken by
    another column gets a numbered one.
    """

    def __init__(self, enum_package: str = "app.enum"):
        """Initialize the generator.

        Args:
            enum_package: Dotted package the enum modules are imported from
        """
        self.enum_package = enum_package
        self._cache: Dict[str, EnumTypeRef] = {}
        self._contents: Dict[str, str] = {}
        self._owners: Dict[str, str] = {}  # type name -> cache key

    @staticmethod
    def cache_key(table_name: str, column_name: str) -> str:
        return f"{table_name}.{column_name}"

    def request_enum_type(
        self, table_name: str, column_name: str, values: Sequence[str]
    ) -> EnumTypeRef:
        """Return the enum type for a column, generating it on first request.

        Args:
            table_name: Table owning the column
            column_name: Enumerated column
            values: Allowed literal values, in declaration order

        Returns:
            Reference to the generated enum class
        """
        key = self.cache_key(table_name, column_name)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"Enum for {key} already generated: {cached.type_name}")
            return cached

        type_name = self._claim_type_name(key, table_name, column_name)
        module = f"{self.enum_package}.{to_snake_case(type_name)}"
        ref = EnumTypeRef(
            type_name=type_name,
            module=module,
            fully_qualified_reference=f"{module}.{type_name}",
            values=tuple(values),
            table_name=table_name,
            column_name=column_name,
        )
        self._contents[key] = self.generate_enum_content(
            type_name, ref.values, table_name, column_name
        )
        self._cache[key] = ref
        logger.info(f"Generated enum {type_name} for {key} ({len(ref.values)} values)")
        return ref

    def _claim_type_name(self, key: str, table_name: str, column_name: str) -> str:
        type_name = self.generate_enum_class_name(table_name, column_name)
        if type_name in self._owners:
            stem = type_name[: -len(ENUM_SUFFIX)]
            taken = {name[: -len(ENUM_SUFFIX)] for name in self._owners}
            renamed = unique_name([stem], taken) + ENUM_SUFFIX
            logger.warning(
                f"Enum name {type_name} is already used by {self._owners[type_name]}; "
                f"{key} gets {renamed}"
            )
            type_name = renamed
        self._owners[type_name] = key
        return type_name

    @staticmethod
    def generate_enum_class_name(table_name: str, column_name: str) -> str:
        """``user_profiles`` + ``status_type`` -> ``UserProfileStatusTypeEnum``."""
        table_part = re.sub(r"s$", "", to_pascal_case(table_name))
        return f"{table_part}{to_pascal_case(column_name)}{ENUM_SUFFIX}"

    @staticmethod
    def generate_enum_case_name(value: str) -> str:
        """Upper-case identifier for an enum value.

        Non-alphanumeric characters become underscores (collapsed and trimmed),
        a leading digit gets an underscore prefix, and an empty result becomes
        ``EMPTY_VALUE``.
        """
        case_name = re.sub(r"[^A-Za-z0-9]", "_", value).upper()
        case_name = re.sub(r"_+", "_", case_name).strip("_")
        if re.match(r"^[0-9]", case_name):
            case_name = f"_{case_name}"
        return case_name or "EMPTY_VALUE"

    def generate_enum_content(
        self,
        class_name: str,
        values: Sequence[str],
        table_name: str,
        column_name: str,
    ) -> str:
        """Render the module source of an enum class.

        Raises:
            EntityGenerationError: If the values cannot be rendered
        """
        try:
            cases = []
            used: Dict[str, int] = {}
            for value in values:
                case_name = self.generate_enum_case_name(value)
                if case_name in used:
                    used[case_name] += 1
                    case_name = f"{case_name}_{used[case_name]}"
                else:
                    used[case_name] = 1
                cases.append({"name": case_name, "value": repr(value)})
            return render_template(
                "enum.py.j2",
                class_name=class_name,
                cases=cases,
                table_name=table_name,
                column_name=column_name,
            )
        except (TypeError, AttributeError, TemplateError) as e:
            logger.error(f"Enum generation failed for {table_name}.{column_name}: {e}")
            raise EntityGenerationError(
                f"Enum class generation failed for {table_name}.{column_name}: {e}"
            ) from e

    def generate_package_init(self) -> str:
        """Render the enum package ``__init__`` importing every issued enum."""
        return render_template("enum_init.py.j2", enums=list(self._cache.values()))

    def generated_enums(self) -> List[Tuple[EnumTypeRef, str]]:
        """Every enum issued so far with its module source, in request order."""
        return [(ref, self._contents[key]) for key, ref in self._cache.items()]

    def get(self, table_name: str, column_name: str) -> Optional[EnumTypeRef]:
        return self._cache.get(self.cache_key(table_name, column_name))

    def reset(self) -> None:
        self._cache.clear()
        self._contents.clear()
        self._owners.clear()
