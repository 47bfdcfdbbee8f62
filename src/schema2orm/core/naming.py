"""Deterministic naming rules for entities, properties and relations."""

from __future__ import annotations

import re
from typing import Iterable, Optional, Set

from schema2orm.exceptions import NamingCollisionError

MAX_NAME_ATTEMPTS = 10_000

# Words that are already plural (or have no plural) in schemas we meet
UNCOUNTABLE_WORDS = frozenset(
    {
        "data",
        "metadata",
        "media",
        "news",
        "series",
        "species",
        "equipment",
        "information",
        "settings",
        "children",
        "people",
        "staff",
        "feedback",
        "sheep",
        "fish",
    }
)

IRREGULAR_SINGULARS = {
    "children": "child",
    "people": "person",
    "men": "man",
    "women": "woman",
}

_ID_SUFFIX = re.compile(r"_id$")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_VOWELS = "aeiou"


def ucfirst(value: str) -> str:
    return value[:1].upper() + value[1:]


def lcfirst(value: str) -> str:
    return value[:1].lower() + value[1:]


def to_pascal_case(value: str) -> str:
    """``user_profile`` -> ``UserProfile``; other characters are word breaks too."""
    parts = re.split(r"[^0-9A-Za-z]+", value)
    return "".join(ucfirst(p.lower()) if p.isupper() else ucfirst(p) for p in parts if p)


def to_snake_case(value: str) -> str:
    """``UserProfile`` -> ``user_profile``."""
    return _CAMEL_BOUNDARY.sub("_", value).replace("-", "_").lower()


def table_to_entity_name(table_name: str) -> str:
    """Derive the entity class name from a table name.

    Underscore-separated words are capitalised and joined, then the result is
    singularised: ``ies`` becomes ``y``, and a trailing ``s`` is dropped unless
    the name ends in ``ss``.

    Args:
        table_name: Source table name, e.g. ``user_roles``

    Returns:
        Entity name, e.g. ``UserRole``
    """
    entity = "".join(ucfirst(part) for part in table_name.split("_"))
    if entity.endswith("ies"):
        return entity[:-3] + "y"
    if entity.endswith("s") and not entity.endswith("ss"):
        return entity[:-1]
    return entity


def column_to_property_name(column_name: str) -> str:
    """``created_at`` -> ``createdAt``; ``User_ID`` -> ``userID``.

    The first segment is lower-cased when it is all capitals, otherwise only
    its first letter is, so camelCase column names pass through unchanged.
    """
    first, *rest = column_name.split("_")
    first = first.lower() if first.isupper() else lcfirst(first)
    return first + "".join(ucfirst(part) for part in rest)


def repository_name(table_name: str) -> str:
    return table_to_entity_name(table_name) + "Repository"


def relation_property_name(table_name: str) -> str:
    """Default property name for a relation pointing at ``table_name``."""
    return lcfirst(table_to_entity_name(table_name))


def strip_id_suffix(column_name: str) -> str:
    return _ID_SUFFIX.sub("", column_name)


def pluralize(word: str) -> str:
    """Pluralise an English word with simple suffix rules.

    Args:
        word: Singular word, usually a camelCase property name

    Returns:
        Plural form; allow-listed words are returned unchanged
    """
    if not word:
        return word
    # Only the last camelCase segment decides the plural
    head, tail = _split_last_word(word)
    if tail.lower() in UNCOUNTABLE_WORDS:
        return word

    lower = tail.lower()
    if len(lower) > 1 and lower.endswith("y") and lower[-2] not in _VOWELS:
        return head + tail[:-1] + "ies"
    if lower.endswith(("s", "x", "z", "ch", "sh")):
        return head + tail + "es"
    if lower.endswith("fe"):
        return head + tail[:-2] + "ves"
    if lower.endswith("f"):
        return head + tail[:-1] + "ves"
    return head + tail + "s"


def singularize_word(word: str) -> str:
    """Best-effort inverse of :func:`pluralize` for method names."""
    head, tail = _split_last_word(word)
    lower = tail.lower()
    if lower in IRREGULAR_SINGULARS:
        singular = IRREGULAR_SINGULARS[lower]
        return head + (ucfirst(singular) if tail[:1].isupper() else singular)
    if lower in UNCOUNTABLE_WORDS:
        return word
    if lower.endswith("ies") and len(lower) > 3:
        return head + tail[:-3] + "y"
    if lower.endswith("ves"):
        return head + tail[:-3] + "f"
    if lower.endswith(("ses", "xes", "zes", "ches", "shes")):
        return head + tail[:-2]
    if lower.endswith("s") and not lower.endswith("ss"):
        return head + tail[:-1]
    return word


def _split_last_word(word: str):
    parts = _CAMEL_BOUNDARY.split(word)
    if len(parts) == 1:
        return "", word
    return "".join(parts[:-1]), parts[-1]


def column_based_property_name(column_name: str, target_table: str) -> str:
    """Relation name derived from the local FK column.

    ``author_id`` pointing at ``users`` gives ``authorUser``; a column that
    already contains the target entity name is used as is
    (``primary_category_id`` -> ``primaryCategory``).
    """
    stripped = strip_id_suffix(column_name)
    target_entity = table_to_entity_name(target_table)
    property_name = column_to_property_name(stripped)
    if target_entity.lower() in stripped.lower():
        return property_name
    if target_entity.lower() not in property_name.lower():
        property_name += target_entity
    return property_name


def unique_name(candidates: Iterable[str], used: Set[str], base: Optional[str] = None) -> str:
    """First unused candidate, else ``base`` + numeric suffix from 2.

    Args:
        candidates: Names to try in order
        used: Names already taken in the owning table
        base: Stem for the numeric fallback; defaults to the first candidate

    Returns:
        A name not in ``used``

    Raises:
        NamingCollisionError: If no free suffix was found within MAX_NAME_ATTEMPTS
    """
    candidates = [c for c in candidates if c]
    for candidate in candidates:
        if candidate not in used:
            return candidate

    stem = base or (candidates[0] if candidates else "relation")
    for counter in range(2, MAX_NAME_ATTEMPTS + 2):
        name = f"{stem}{counter}"
        if name not in used:
            return name

    raise NamingCollisionError(
        f"Could not find a free name for '{stem}' after {MAX_NAME_ATTEMPTS} attempts"
    )


def unique_relation_property_name(
    base: str, local_column: str, target_table: str, used: Set[str]
) -> str:
    """Collision-safe relation name: base, then column-derived, then base+N."""
    return unique_name(
        [base, column_based_property_name(local_column, target_table)], used, base=base
    )
