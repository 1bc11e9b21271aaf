"""
ERD Data Models.

This module defines the immutable value types for a parsed and built
entity-relationship diagram. Every type is a frozen dataclass holding tuples;
updates produce new values through ``dataclasses.replace`` so that the
auto-fix engine can hand out whole-model replacements without partial
mutation.

Models:
- SemanticType: semantic attribute types
- Cardinality: relationship cardinality
- Attribute: typed entity attribute with key flags
- Entity: named entity with ordered attributes
- Relationship: classified relationship between two entities
- OptionSet: global choice definition derived from choice attributes
- SchemaModel: aggregate root
"""

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple


class SemanticType(str, Enum):
    """
    Semantic attribute types.

    Attributes whose keyword is not one of these keep the lower-cased raw
    keyword as their data type.
    """
    STRING = "string"
    INTEGER = "integer"
    DECIMAL = "decimal"
    FLOAT = "float"
    MONEY = "money"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    DATE = "date"
    MEMO = "memo"
    GUID = "guid"
    EMAIL = "email"
    PHONE = "phone"
    URL = "url"
    TICKER = "ticker"
    TIMEZONE = "timezone"
    LANGUAGE = "language"
    DURATION = "duration"
    FILE = "file"
    IMAGE = "image"
    CHOICE = "choice"
    LOOKUP = "lookup"


class Cardinality(str, Enum):
    """Relationship cardinality, read left (source) to right (target)."""
    ONE_TO_MANY = "one-to-many"
    MANY_TO_ONE = "many-to-one"
    MANY_TO_MANY = "many-to-many"


def format_display_name(name: str) -> str:
    """
    Turn an identifier into a display name.

    ``order_line`` and ``ORDER-LINE`` both become ``Order Line``.
    """
    words = re.split(r"[_\-\s]+", name.lower())
    return " ".join(word[:1].upper() + word[1:] for word in words if word)


@dataclass(frozen=True)
class Attribute:
    """
    Entity attribute.

    Attributes:
        name: Attribute name as written.
        data_type: SemanticType value, or the raw keyword when unknown.
        is_primary_key: Marked PK.
        is_foreign_key: Marked FK.
        is_unique: Marked UK.
        is_required: Marked NOT NULL / REQUIRED.
        description: Quoted description from the source line.
        options: Choice options (choice attributes only).
        option_set: Global choice name (choice attributes only).
        lookup_target: Target entity of a ``lookup(X)`` attribute.
        raw_type: Type keyword exactly as written.
        line: 1-based source line.
    """
    name: str
    data_type: str = SemanticType.STRING.value
    is_primary_key: bool = False
    is_foreign_key: bool = False
    is_unique: bool = False
    is_required: bool = False
    description: Optional[str] = None
    options: Tuple[str, ...] = ()
    option_set: Optional[str] = None
    lookup_target: Optional[str] = None
    raw_type: Optional[str] = None
    line: Optional[int] = None

    @property
    def display_name(self) -> str:
        return format_display_name(self.name)

    @property
    def key(self) -> str:
        """Case-insensitive identity within an entity."""
        return self.name.lower()

    @property
    def has_constraint(self) -> bool:
        return self.is_primary_key or self.is_foreign_key or self.is_unique or self.is_required

    @property
    def constraints(self) -> Tuple[str, ...]:
        markers = []
        if self.is_primary_key:
            markers.append("PK")
        if self.is_foreign_key:
            markers.append("FK")
        if self.is_unique:
            markers.append("UK")
        return tuple(markers)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        result: Dict[str, Any] = {
            "name": self.name,
            "displayName": self.display_name,
            "type": self.data_type,
            "isPrimaryKey": self.is_primary_key,
            "isForeignKey": self.is_foreign_key,
        }
        if self.is_unique:
            result["isUnique"] = True
        if self.is_required:
            result["isRequired"] = True
        if self.description:
            result["description"] = self.description
        if self.options:
            result["options"] = list(self.options)
        if self.option_set:
            result["optionSet"] = self.option_set
        if self.lookup_target:
            result["lookupTarget"] = self.lookup_target
        if self.line is not None:
            result["line"] = self.line
        return result


@dataclass(frozen=True)
class Entity:
    """
    Entity with an ordered list of attributes.

    Attributes:
        name: Entity name as written.
        attributes: Ordered attributes.
        display_name: Optional explicit display name.
        line: 1-based line of the block start.
        is_stub: Synthesized for a relationship to an undeclared entity.
        is_junction: Synthesized to resolve a many-to-many relationship.
    """
    name: str
    attributes: Tuple[Attribute, ...] = ()
    display_name: Optional[str] = None
    line: Optional[int] = None
    is_stub: bool = False
    is_junction: bool = False

    @property
    def label(self) -> str:
        return self.display_name or format_display_name(self.name)

    @property
    def primary_keys(self) -> List[Attribute]:
        return [a for a in self.attributes if a.is_primary_key]

    @property
    def primary_key(self) -> Optional[Attribute]:
        """The effective primary key: the first attribute marked PK."""
        keys = self.primary_keys
        return keys[0] if keys else None

    @property
    def has_primary_key(self) -> bool:
        return any(a.is_primary_key for a in self.attributes)

    @property
    def foreign_keys(self) -> List[Attribute]:
        return [a for a in self.attributes if a.is_foreign_key]

    def get_attribute(self, name: str) -> Optional[Attribute]:
        """Case-insensitive attribute lookup (first match)."""
        wanted = name.lower()
        for attribute in self.attributes:
            if attribute.key == wanted:
                return attribute
        return None

    def attribute_names(self) -> List[str]:
        return [a.name for a in self.attributes]

    def with_attributes(self, attributes: Iterable[Attribute]) -> "Entity":
        return replace(self, attributes=tuple(attributes))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        primary_key = self.primary_key
        result: Dict[str, Any] = {
            "name": self.name,
            "displayName": self.label,
            "hasPrimaryKey": self.has_primary_key,
            "attributes": [a.to_dict() for a in self.attributes],
        }
        if primary_key is not None:
            result["primaryKey"] = primary_key.name
        if self.is_stub:
            result["isStub"] = True
        if self.is_junction:
            result["isJunction"] = True
        if self.line is not None:
            result["line"] = self.line
        return result


@dataclass(frozen=True)
class Relationship:
    """
    Relationship between two entities.

    Attributes:
        id: Stable identifier (``rel_<n>`` in declaration order).
        source: Left-hand entity name.
        target: Right-hand entity name.
        cardinality: Classified cardinality.
        label: Relationship label (quotes stripped).
        left_marker: Left cardinality marker as written (e.g. ``||``).
        right_marker: Right cardinality marker as written (e.g. ``o{``).
        identifying: ``--`` (True) or ``..`` (False).
        line: 1-based source line.
    """
    id: str
    source: str
    target: str
    cardinality: Cardinality
    label: str = ""
    left_marker: str = "||"
    right_marker: str = "o{"
    identifying: bool = True
    line: Optional[int] = None

    @property
    def is_self_referencing(self) -> bool:
        return self.source.lower() == self.target.lower()

    @property
    def is_many_to_many(self) -> bool:
        return self.cardinality == Cardinality.MANY_TO_MANY

    @property
    def is_one_to_one(self) -> bool:
        return "{" not in self.right_marker and "}" not in self.left_marker

    @property
    def key(self) -> Tuple[str, str, str]:
        """Identity used for duplicate detection."""
        return (self.source, self.target, self.label)

    @property
    def notation(self) -> str:
        separator = "--" if self.identifying else ".."
        text = f"{self.source} {self.left_marker}{separator}{self.right_marker} {self.target}"
        if self.label:
            text += f' : "{self.label}"'
        return text

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        result: Dict[str, Any] = {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "cardinality": self.cardinality.value,
            "isSelfReferencing": self.is_self_referencing,
        }
        if self.label:
            result["label"] = self.label
        if not self.identifying:
            result["identifying"] = False
        if self.line is not None:
            result["line"] = self.line
        return result


@dataclass(frozen=True)
class OptionSet:
    """Global choice definition."""
    name: str
    options: Tuple[str, ...]
    entity: Optional[str] = None
    attribute: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        result: Dict[str, Any] = {
            "name": self.name,
            "displayName": format_display_name(self.name),
            "options": [
                {"value": index + 1, "label": option}
                for index, option in enumerate(self.options)
            ],
        }
        if self.entity:
            result["entity"] = self.entity
        if self.attribute:
            result["attribute"] = self.attribute
        return result


@dataclass(frozen=True)
class SchemaModel:
    """
    Aggregate root: entities, relationships and derived option sets.

    Instances are never modified in place. Helper methods return new models.
    """
    entities: Tuple[Entity, ...] = ()
    relationships: Tuple[Relationship, ...] = ()
    source_name: Optional[str] = field(default=None, compare=False)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def entity_names(self) -> List[str]:
        return [e.name for e in self.entities]

    @property
    def option_sets(self) -> List[OptionSet]:
        """Option sets of choice attributes, in declaration order."""
        seen = set()
        result = []
        for entity in self.entities:
            for attribute in entity.attributes:
                if attribute.option_set and attribute.options and attribute.option_set not in seen:
                    seen.add(attribute.option_set)
                    result.append(OptionSet(
                        name=attribute.option_set,
                        options=attribute.options,
                        entity=entity.name,
                        attribute=attribute.name,
                    ))
        return result

    def get_entity(self, name: str) -> Optional[Entity]:
        """Exact-name lookup (first match)."""
        for entity in self.entities:
            if entity.name == name:
                return entity
        return None

    def find_entity(self, name: str) -> Optional[Entity]:
        """Case-insensitive lookup (first match)."""
        wanted = name.lower()
        for entity in self.entities:
            if entity.name.lower() == wanted:
                return entity
        return None

    def has_entity(self, name: str) -> bool:
        return self.get_entity(name) is not None

    def get_relationship(self, relationship_id: str) -> Optional[Relationship]:
        for relationship in self.relationships:
            if relationship.id == relationship_id:
                return relationship
        return None

    def relationships_of(self, entity_name: str) -> List[Relationship]:
        return [
            r for r in self.relationships
            if r.source == entity_name or r.target == entity_name
        ]

    # ------------------------------------------------------------------
    # Whole-model updates
    # ------------------------------------------------------------------

    def with_entities(self, entities: Iterable[Entity]) -> "SchemaModel":
        return replace(self, entities=tuple(entities))

    def with_relationships(self, relationships: Iterable[Relationship]) -> "SchemaModel":
        return replace(self, relationships=tuple(relationships))

    def replace_entity(self, index: int, entity: Entity) -> "SchemaModel":
        entities = list(self.entities)
        entities[index] = entity
        return self.with_entities(entities)

    def add_entity(self, entity: Entity) -> "SchemaModel":
        return self.with_entities(self.entities + (entity,))

    def add_relationships(self, relationships: Iterable[Relationship]) -> "SchemaModel":
        return self.with_relationships(self.relationships + tuple(relationships))

    def index_of(self, entity_name: str) -> int:
        """Index of the first entity with this exact name, or -1."""
        for index, entity in enumerate(self.entities):
            if entity.name == entity_name:
                return index
        return -1

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        result: Dict[str, Any] = {
            "entities": [e.to_dict() for e in self.entities],
            "relationships": [r.to_dict() for r in self.relationships],
        }
        option_sets = self.option_sets
        if option_sets:
            result["optionSets"] = [o.to_dict() for o in option_sets]
        return result
