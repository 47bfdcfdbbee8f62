"""Relationship inference between tables.

Resolution happens in two steps. A *plan* assigns every relation of one table
its property name; it only depends on catalog facts, so the name a table
gives its many-to-one side can be recomputed from anywhere without running
that table's extraction. *Linking* then fills the cross-side references
(``mapped_by`` / ``inversed_by``) by reading the other table's plan.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from schema2orm.utils.logging import get_logger
from schema2orm.core.catalog import CatalogContext
from schema2orm.core.junction import JunctionInfo, JunctionTableClassifier
from schema2orm.core.metadata.types import ManyToMany, ManyToOne, OneToMany, RelationMeta
from schema2orm.core.naming import (
    column_to_property_name,
    pluralize,
    relation_property_name,
    strip_id_suffix,
    table_to_entity_name,
    unique_name,
    unique_relation_property_name,
)
from schema2orm.core.schema.types import ForeignKeyFacts, TableDetails

logger = get_logger(__name__)

DEFAULT_SELF_REFERENCE_NAMES = {
    "parent_id": "parent",
    "manager_id": "manager",
    "leader_id": "leader",
    "supervisor_id": "supervisor",
}

DEFAULT_SELF_REFERENCE_COLLECTIONS = {
    "parent_id": "children",
    "manager_id": "subordinates",
    "leader_id": "members",
    "supervisor_id": "supervisees",
}

ForeignKeyKey = Tuple[str, Tuple[str, ...]]


@dataclass(frozen=True)
class ResolverSettings:
    """Naming policy for self-referencing relations."""

    self_reference_names: Mapping[str, str] = field(
        default_factory=lambda: dict(DEFAULT_SELF_REFERENCE_NAMES)
    )
    self_reference_collections: Mapping[str, str] = field(
        default_factory=lambda: dict(DEFAULT_SELF_REFERENCE_COLLECTIONS)
    )

    @classmethod
    def from_config(cls, config: Any) -> ResolverSettings:
        return cls(
            self_reference_names=dict(
                config.get("relations.self_reference_names")
                or DEFAULT_SELF_REFERENCE_NAMES
            ),
            self_reference_collections=dict(
                config.get("relations.self_reference_collections")
                or DEFAULT_SELF_REFERENCE_COLLECTIONS
            ),
        )


@dataclass(frozen=True)
class RelationPlan:
    """Named, not yet linked, relations of one table."""

    table_name: str
    relations: Tuple[RelationMeta, ...]
    # (target table, local columns) -> ManyToOne property
    many_to_one_names: Mapping[ForeignKeyKey, str]
    # (source table, local columns) -> OneToMany property
    one_to_many_names: Mapping[ForeignKeyKey, str]
    # junction table -> ManyToMany property
    many_to_many_names: Mapping[str, str]


def scalar_property_names(details: TableDetails) -> Set[str]:
    """Property names already taken by the table's own columns."""
    return {column_to_property_name(c.name) for c in details.columns}


def is_relation_nullable(fk: ForeignKeyFacts, details: TableDetails) -> bool:
    """A relation is optional when any of its local columns is nullable."""
    columns = [details.column(name) for name in fk.local_columns]
    return any(c.nullable for c in columns if c is not None)


class RelationshipResolver:
    """Derives ManyToOne, OneToMany and ManyToMany relations for a table."""

    def __init__(
        self,
        settings: Optional[ResolverSettings] = None,
        classifier: Optional[JunctionTableClassifier] = None,
    ):
        self.settings = settings or ResolverSettings()
        self.classifier = classifier or JunctionTableClassifier()

    # ------------------------------------------------------------------
    # Naming plan
    # ------------------------------------------------------------------

    def plan_many_to_one(
        self, details: TableDetails, used: Optional[Set[str]] = None
    ) -> List[ManyToOne]:
        """ManyToOne relations of a table, in foreign key order.

        Depends only on the table's own facts, which is what lets the other
        side of a OneToMany recompute ``mapped_by`` independently.

        Args:
            details: Catalog facts of the owning table
            used: Names taken so far; updated in place

        Returns:
            Unlinked ManyToOne relations
        """
        current_table = details.name
        if used is None:
            used = scalar_property_names(details)

        relations: List[ManyToOne] = []
        for fk in details.foreign_keys:
            if not fk.local_columns:
                continue
            local_column = fk.local_columns[0]
            is_self = fk.foreign_table == current_table

            if is_self:
                property_name = self._self_reference_name(local_column, current_table, used)
            else:
                property_name = unique_relation_property_name(
                    relation_property_name(fk.foreign_table),
                    local_column,
                    fk.foreign_table,
                    used,
                )
            used.add(property_name)

            relations.append(
                ManyToOne(
                    target_entity=table_to_entity_name(fk.foreign_table),
                    target_table=fk.foreign_table,
                    local_columns=fk.local_columns,
                    foreign_columns=fk.foreign_columns,
                    property_name=property_name,
                    on_delete=fk.on_delete or "RESTRICT",
                    on_update=fk.on_update or "RESTRICT",
                    nullable=is_relation_nullable(fk, details),
                    is_self_referencing=is_self,
                )
            )
        return relations

    def _self_reference_name(
        self, local_column: str, current_table: str, used: Set[str]
    ) -> str:
        semantic = self.settings.self_reference_names.get(local_column)
        column_based = column_to_property_name(strip_id_suffix(local_column))
        for candidate in (semantic, column_based):
            if candidate and candidate not in used:
                return candidate
        return unique_relation_property_name(
            relation_property_name(current_table), local_column, current_table, used
        )

    def plan(self, current_table: str, context: CatalogContext) -> RelationPlan:
        """Full naming plan of a table, memoised in the run context.

        Slots are filled in a fixed order: ManyToOne, self-referencing
        OneToMany, incoming OneToMany, ManyToMany.
        """
        cached = context.plans.get(current_table)
        if cached is not None:
            return cached

        details = context.details(current_table)
        used = scalar_property_names(details)

        many_to_one = self.plan_many_to_one(details, used)
        many_to_one_names = {
            (r.target_table, r.local_columns): r.property_name for r in many_to_one
        }

        relations: List[RelationMeta] = list(many_to_one)
        one_to_many_names: Dict[ForeignKeyKey, str] = {}

        for relation in self._plan_self_one_to_many(current_table, many_to_one, used):
            relations.append(relation)
            one_to_many_names[(current_table, relation.foreign_key_columns)] = (
                relation.property_name
            )

        for relation in self._plan_incoming_one_to_many(current_table, context, used):
            relations.append(relation)
            one_to_many_names[(relation.target_table, relation.foreign_key_columns)] = (
                relation.property_name
            )

        many_to_many_names: Dict[str, str] = {}
        for relation in self._plan_many_to_many(current_table, context, used):
            relations.append(relation)
            many_to_many_names[relation.junction_table] = relation.property_name

        plan = RelationPlan(
            table_name=current_table,
            relations=tuple(relations),
            many_to_one_names=many_to_one_names,
            one_to_many_names=one_to_many_names,
            many_to_many_names=many_to_many_names,
        )
        context.plans[current_table] = plan
        return plan

    def _plan_self_one_to_many(
        self, current_table: str, many_to_one: List[ManyToOne], used: Set[str]
    ) -> List[OneToMany]:
        entity = table_to_entity_name(current_table)
        generic = pluralize(relation_property_name(current_table))
        relations: List[OneToMany] = []

        for m2o in many_to_one:
            if not m2o.is_self_referencing:
                continue
            local_column = m2o.local_columns[0]
            collection = self.settings.self_reference_collections.get(local_column)
            column_based = column_to_property_name(strip_id_suffix(local_column)) + pluralize(entity)
            property_name = unique_name([collection, generic, column_based], used, base=generic)
            used.add(property_name)

            relations.append(
                OneToMany(
                    target_entity=entity,
                    target_table=current_table,
                    property_name=property_name,
                    mapped_by=m2o.property_name,
                    is_self_referencing=True,
                    foreign_key_columns=m2o.local_columns,
                    referenced_columns=m2o.foreign_columns,
                )
            )
        return relations

    def _plan_incoming_one_to_many(
        self, current_table: str, context: CatalogContext, used: Set[str]
    ) -> List[OneToMany]:
        relations: List[OneToMany] = []

        for other_table in sorted(context.all_tables):
            if other_table == current_table:
                continue
            other = context.try_details(other_table)
            if other is None:
                continue
            if not any(fk.foreign_table == current_table for fk in other.foreign_keys):
                continue
            if context.junction(other_table) is not None:
                continue

            other_entity = table_to_entity_name(other_table)
            # Same pure function the other table uses for its own ManyToOne side
            other_names = {
                (r.target_table, r.local_columns): r.property_name
                for r in self.plan_many_to_one(other)
            }

            for fk in other.foreign_keys:
                if fk.foreign_table != current_table or not fk.local_columns:
                    continue
                base = pluralize(relation_property_name(other_table))
                column_based = column_to_property_name(
                    strip_id_suffix(fk.local_columns[0])
                ) + pluralize(other_entity)
                property_name = unique_name([base, column_based], used, base=base)
                used.add(property_name)

                relations.append(
                    OneToMany(
                        target_entity=other_entity,
                        target_table=other_table,
                        property_name=property_name,
                        mapped_by=other_names[(current_table, fk.local_columns)],
                        is_self_referencing=False,
                        foreign_key_columns=fk.local_columns,
                        referenced_columns=fk.foreign_columns,
                    )
                )
        return relations

    def _plan_many_to_many(
        self, current_table: str, context: CatalogContext, used: Set[str]
    ) -> List[ManyToMany]:
        entity = table_to_entity_name(current_table)
        relations: List[ManyToMany] = []

        for junction_table in sorted(context.all_tables):
            if junction_table == current_table:
                continue
            info = context.junction(junction_table)
            if info is None or current_table not in info.tables:
                continue

            if info.is_self_referencing:
                relations.append(self._self_many_to_many(info, entity, used))
                continue

            own_fk = info.foreign_key_to(current_table)
            other_fk = info.other_side(current_table)
            other_table = other_fk.foreign_table
            base = pluralize(relation_property_name(other_table))
            junction_based = pluralize(relation_property_name(junction_table))
            property_name = unique_name([base, junction_based], used, base=base)
            used.add(property_name)

            relations.append(
                ManyToMany(
                    target_entity=table_to_entity_name(other_table),
                    target_table=other_table,
                    property_name=property_name,
                    junction_table=junction_table,
                    is_owning_side=current_table == info.owning_table,
                    join_columns=own_fk.local_columns,
                    inverse_join_columns=other_fk.local_columns,
                    is_self_referencing=False,
                )
            )
        return relations

    @staticmethod
    def _self_many_to_many(info: JunctionInfo, entity: str, used: Set[str]) -> ManyToMany:
        # Single owning, unidirectional side named after the second column
        base = pluralize(column_to_property_name(strip_id_suffix(info.second.local_columns[0])))
        property_name = unique_name(
            [base, pluralize(relation_property_name(info.table_name))], used, base=base
        )
        used.add(property_name)
        return ManyToMany(
            target_entity=entity,
            target_table=info.first.foreign_table,
            property_name=property_name,
            junction_table=info.table_name,
            is_owning_side=True,
            join_columns=info.first.local_columns,
            inverse_join_columns=info.second.local_columns,
            is_self_referencing=True,
        )

    # ------------------------------------------------------------------
    # Linking
    # ------------------------------------------------------------------

    def resolve(self, current_table: str, context: CatalogContext) -> Tuple[RelationMeta, ...]:
        """Linked relations of a table.

        Args:
            current_table: Table being extracted
            context: Run context shared by every table of the run

        Returns:
            Relations in plan order with cross-side references filled in
        """
        plan = self.plan(current_table, context)
        linked: List[RelationMeta] = []

        for relation in plan.relations:
            if isinstance(relation, ManyToOne):
                linked.append(
                    replace(relation, inversed_by=self._inverse_of(current_table, relation, context))
                )
            elif isinstance(relation, ManyToMany) and not relation.is_self_referencing:
                other_name = self._other_plan_name(relation.target_table, relation.junction_table, context)
                if relation.is_owning_side:
                    linked.append(replace(relation, inversed_by=other_name))
                else:
                    linked.append(replace(relation, mapped_by=other_name))
            else:
                linked.append(relation)

        logger.debug(
            f"{current_table}: resolved {len(linked)} relations "
            f"({', '.join(r.property_name for r in linked) or 'none'})"
        )
        return tuple(linked)

    def _inverse_of(
        self, current_table: str, relation: ManyToOne, context: CatalogContext
    ) -> Optional[str]:
        target = relation.target_table
        if target not in context.all_tables:
            return None
        if target != current_table and context.try_details(target) is None:
            return None
        target_plan = self.plan(target, context)
        return target_plan.one_to_many_names.get((current_table, relation.local_columns))

    def _other_plan_name(
        self, other_table: str, junction_table: str, context: CatalogContext
    ) -> Optional[str]:
        if context.try_details(other_table) is None:
            return None
        return self.plan(other_table, context).many_to_many_names.get(junction_table)
