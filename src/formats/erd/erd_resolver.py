"""
Relationship Resolver.

Classifies relationship tokens into cardinalities and provides the
relationship analyses used by the validation rules: self-references,
duplicates, references to missing entities, foreign-key placement and
dependency cycles.

Cardinality markers (Mermaid crow's foot):

    left   right   meaning
    |o     o|      zero or one
    ||     ||      exactly one
    }o     o{      zero or more
    }|     |{      one or more

A ``{``/``}`` on a side makes that side "many".

Usage:
    from formats.erd.erd_resolver import RelationshipResolver

    model = RelationshipResolver().resolve(model, parse_result.relationships)
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from constants import NamingLimits

from .erd_models import Cardinality, Relationship, SchemaModel
from .erd_naming import truncate_name
from .erd_parser import RelationshipToken

logger = logging.getLogger(__name__)


def is_many(marker: str) -> bool:
    return "{" in marker or "}" in marker


def classify_cardinality(left_marker: str, right_marker: str) -> Cardinality:
    """
    Classify a marker pair.

    ``||--||`` (one-to-one) is carried as one-to-many from left to right.
    """
    left_many = is_many(left_marker)
    right_many = is_many(right_marker)
    if left_many and right_many:
        return Cardinality.MANY_TO_MANY
    if left_many:
        return Cardinality.MANY_TO_ONE
    return Cardinality.ONE_TO_MANY


def relationship_id(index: int) -> str:
    return f"rel_{index}"


@dataclass(frozen=True)
class ForeignKeySide:
    """Where a relationship's foreign key lives."""
    child: str
    parent: str
    fk_name: str


def expected_foreign_key_name(parent: str) -> str:
    """``CUSTOMER`` -> ``customer_id``; the parent part is truncated so the suffix always fits."""
    suffix = NamingLimits.FOREIGN_KEY_SUFFIX
    stem = truncate_name(parent.lower(), NamingLimits.MAX_ATTRIBUTE_NAME_LENGTH - len(suffix))
    return f"{stem}{suffix}"


def foreign_key_side(relationship: Relationship) -> Optional[ForeignKeySide]:
    """
    Return the child (FK holder) and parent of a relationship.

    The "many" side holds the key. Many-to-many relationships have no
    single FK side and return None.
    """
    if relationship.cardinality == Cardinality.MANY_TO_MANY:
        return None
    if relationship.cardinality == Cardinality.MANY_TO_ONE:
        child, parent = relationship.source, relationship.target
    else:
        child, parent = relationship.target, relationship.source
    return ForeignKeySide(child=child, parent=parent, fk_name=expected_foreign_key_name(parent))


class RelationshipResolver:
    """
    Turn relationship tokens into classified Relationship values.

    Ids are assigned in declaration order (``rel_1``, ``rel_2``, ...), so
    identical input always yields identical ids.
    """

    def resolve(self, model: SchemaModel, tokens: Sequence[RelationshipToken]) -> SchemaModel:
        """
        Attach classified relationships to the model.

        Endpoints that match a declared entity case-insensitively take the
        declared spelling.
        """
        declared = {}
        for entity in model.entities:
            declared.setdefault(entity.name.lower(), entity.name)
        relationships = [
            self.resolve_token(index, token, declared)
            for index, token in enumerate(tokens, start=1)
        ]
        for relationship in relationships:
            logger.debug(
                f"{relationship.id}: {relationship.source} -> {relationship.target} "
                f"({relationship.cardinality.value})"
            )
        return model.with_relationships(relationships)

    def resolve_token(
        self,
        index: int,
        token: RelationshipToken,
        declared: Optional[Dict[str, str]] = None,
    ) -> Relationship:
        declared = declared or {}
        return Relationship(
            id=relationship_id(index),
            source=declared.get(token.left.lower(), token.left),
            target=declared.get(token.right.lower(), token.right),
            cardinality=classify_cardinality(token.left_marker, token.right_marker),
            label=token.label,
            left_marker=token.left_marker,
            right_marker=token.right_marker,
            identifying=token.separator == "--",
            line=token.line,
        )


# =============================================================================
# Analyses
# =============================================================================

def find_self_references(model: SchemaModel) -> List[Relationship]:
    return [r for r in model.relationships if r.is_self_referencing]


def find_duplicate_relationships(model: SchemaModel) -> List[Tuple[Relationship, Relationship]]:
    """
    Find relationships repeating an earlier (source, target, label) triple.

    Returns:
        List of (duplicate, first occurrence) pairs, in declaration order.
    """
    first_seen: Dict[Tuple[str, str, str], Relationship] = {}
    duplicates = []
    for relationship in model.relationships:
        original = first_seen.get(relationship.key)
        if original is None:
            first_seen[relationship.key] = relationship
        else:
            duplicates.append((relationship, original))
    return duplicates


def find_missing_entities(model: SchemaModel) -> List[Tuple[str, Relationship]]:
    """
    Find entity names referenced by relationships but absent from the model.

    Returns:
        (missing name, first referencing relationship) pairs, one per name.
    """
    present = set(model.entity_names)
    missing: Dict[str, Relationship] = {}
    for relationship in model.relationships:
        for name in (relationship.source, relationship.target):
            if name not in present and name not in missing:
                missing[name] = relationship
    return list(missing.items())


def find_cycles(model: SchemaModel) -> List[List[str]]:
    """
    Find cycles in the child -> parent dependency graph.

    Self-references are ignored. Each cycle is reported once, rotated to
    start at its earliest-declared entity and closed with its first node.
    """
    order = {name: index for index, name in enumerate(model.entity_names)}
    graph: Dict[str, List[str]] = {}
    for relationship in model.relationships:
        side = foreign_key_side(relationship)
        if side is None or relationship.is_self_referencing:
            continue
        neighbours = graph.setdefault(side.child, [])
        if side.parent not in neighbours:
            neighbours.append(side.parent)

    cycles: List[List[str]] = []
    seen_keys = set()
    visited = set()

    def rank(name: str) -> Tuple[int, str]:
        return (order.get(name, len(order)), name)

    def record(cycle: List[str]) -> None:
        start = cycle.index(min(cycle, key=rank))
        rotated = cycle[start:] + cycle[:start]
        key = tuple(rotated)
        if key not in seen_keys:
            seen_keys.add(key)
            cycles.append(rotated + [rotated[0]])

    # Iterative DFS; FK chains may be longer than the recursion limit.
    for root in sorted(graph, key=rank):
        if root in visited:
            continue
        visited.add(root)
        path = [root]
        on_path = {root}
        stack = [iter(graph.get(root, []))]
        while stack:
            neighbour = next(stack[-1], None)
            if neighbour is None:
                stack.pop()
                on_path.discard(path.pop())
            elif neighbour in on_path:
                record(path[path.index(neighbour):])
            elif neighbour not in visited:
                visited.add(neighbour)
                on_path.add(neighbour)
                path.append(neighbour)
                stack.append(iter(graph.get(neighbour, [])))
    return cycles

