"""
Schema Exporter.

This module turns a finalized SchemaModel into a target-neutral export
document and renders a model back to ERD text.

Export process:
1. Map each attribute's semantic type through TARGET_TYPE_MAPPINGS
2. Pick each entity's primary key and primary name column
3. Convert one-to-many relationships into referenced/referencing pairs
4. Collect option sets, reusing known names when the options are identical

Many-to-many relationships are never exported; the auto-fix engine replaces
them with junction entities first. Names are exported as-is: the caller is
responsible for any publisher prefix.

Usage:
    from formats.erd.erd_exporter import SchemaExporter, render_erd

    exporter = SchemaExporter()
    export = exporter.export(model)
    print(export.to_dict())

    print(render_erd(model))
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from shared.models.validation import IssueKind, ValidationResult

from .erd_models import Attribute, Entity, Relationship, SchemaModel, SemanticType
from .erd_resolver import foreign_key_side
from .erd_type_mapper import ErdTypeMapper, TargetType
from .erd_validator import RULE_CATALOG_VERSION, make_issue

logger = logging.getLogger(__name__)


# =============================================================================
# Export Document
# =============================================================================

@dataclass(frozen=True)
class ExportedAttribute:
    name: str
    display_name: str
    target_type: TargetType
    semantic_type: str
    is_primary_key: bool = False
    is_required: bool = False
    is_unique: bool = False
    description: Optional[str] = None
    option_set: Optional[str] = None
    lookup_target: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "name": self.name,
            "displayName": self.display_name,
            "type": self.target_type.value,
            "semanticType": self.semantic_type,
        }
        if self.is_primary_key:
            result["isPrimaryKey"] = True
        if self.is_required:
            result["isRequired"] = True
        if self.is_unique:
            result["isUnique"] = True
        if self.description:
            result["description"] = self.description
        if self.option_set:
            result["optionSet"] = self.option_set
        if self.lookup_target:
            result["lookupTarget"] = self.lookup_target
        return result


@dataclass(frozen=True)
class ExportedEntity:
    name: str
    display_name: str
    primary_key: Optional[str]
    attributes: Tuple[ExportedAttribute, ...] = ()
    primary_name_attribute: Optional[str] = None
    is_stub: bool = False
    is_junction: bool = False

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "name": self.name,
            "displayName": self.display_name,
            "primaryKey": self.primary_key,
            "attributes": [a.to_dict() for a in self.attributes],
        }
        if self.primary_name_attribute:
            result["primaryNameAttribute"] = self.primary_name_attribute
        if self.is_stub:
            result["isStub"] = True
        if self.is_junction:
            result["isJunction"] = True
        return result


@dataclass(frozen=True)
class ExportedRelationship:
    """One-to-many relationship; the referencing (child) entity holds the key."""
    id: str
    referenced_entity: str
    referencing_entity: str
    referencing_attribute: Optional[str] = None
    label: str = ""

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "type": "one-to-many",
            "referencedEntity": self.referenced_entity,
            "referencingEntity": self.referencing_entity,
        }
        if self.referencing_attribute:
            result["referencingAttribute"] = self.referencing_attribute
        if self.label:
            result["label"] = self.label
        return result


@dataclass(frozen=True)
class ExportedOptionSet:
    name: str
    options: Tuple[str, ...]
    is_existing: bool = False

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "name": self.name,
            "options": [
                {"value": index + 1, "label": option}
                for index, option in enumerate(self.options)
            ],
        }
        if self.is_existing:
            result["isExisting"] = True
        return result


@dataclass
class SchemaExport:
    """
    Target-neutral export of a SchemaModel.

    Attributes:
        entities: Exported entities in declaration order.
        relationships: One-to-many relationships in declaration order.
        option_sets: Option sets to create or reuse.
        warnings: unmapped_type / many_to_many_detected findings.
    """
    entities: List[ExportedEntity] = field(default_factory=list)
    relationships: List[ExportedRelationship] = field(default_factory=list)
    option_sets: List[ExportedOptionSet] = field(default_factory=list)
    warnings: ValidationResult = field(
        default_factory=lambda: ValidationResult(rule_catalog_version=RULE_CATALOG_VERSION)
    )

    def get_entity(self, name: str) -> Optional[ExportedEntity]:
        for entity in self.entities:
            if entity.name == name:
                return entity
        return None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "entities": [e.to_dict() for e in self.entities],
            "relationships": [r.to_dict() for r in self.relationships],
            "optionSets": [o.to_dict() for o in self.option_sets],
        }
        if self.warnings.issues:
            result["warnings"] = [issue.to_dict() for issue in self.warnings.issues]
        return result


# =============================================================================
# Exporter
# =============================================================================

class SchemaExporter:
    """
    Export a SchemaModel for creation on the target platform.

    Example:
        >>> exporter = SchemaExporter()
        >>> export = exporter.export(model)
        >>> export.entities[0].attributes[0].target_type
        <TargetType.UNIQUE_IDENTIFIER: 'unique identifier'>
    """

    def __init__(self, known_option_sets: Optional[Mapping[str, Sequence[str]]] = None):
        """
        Initialize the exporter.

        Args:
            known_option_sets: Option sets that already exist on the target
                (name -> option labels). Never modified.
        """
        self.known_option_sets = known_option_sets or {}
        self._type_mapper = ErdTypeMapper()

    def export(self, model: SchemaModel) -> SchemaExport:
        """
        Export a model.

        Args:
            model: Finalized (normally auto-fixed) model.

        Returns:
            SchemaExport with any export warnings attached.
        """
        export = SchemaExport()
        option_set_names = self._resolve_option_sets(model, export)

        for entity in model.entities:
            export.entities.append(self._export_entity(entity, option_set_names, export))

        for relationship in model.relationships:
            exported = self._export_relationship(model, relationship, export)
            if exported is not None:
                export.relationships.append(exported)

        logger.info(
            f"Exported {len(export.entities)} entities, {len(export.relationships)} relationships, "
            f"{len(export.option_sets)} option sets"
        )
        return export

    def render_corrected_erd(self, model: SchemaModel) -> str:
        return render_erd(model)

    def _resolve_option_sets(self, model: SchemaModel, export: SchemaExport) -> Dict[str, str]:
        """Collect option sets; returns model option set name -> exported name."""
        known = {
            name: tuple(option.lower() for option in options)
            for name, options in self.known_option_sets.items()
        }
        names: Dict[str, str] = {}
        for option_set in model.option_sets:
            wanted = tuple(option.lower() for option in option_set.options)
            reused = next((name for name, options in known.items() if options == wanted), None)
            if reused is not None:
                logger.debug(f"Option set '{option_set.name}' reuses existing '{reused}'")
                names[option_set.name] = reused
                if all(o.name != reused for o in export.option_sets):
                    export.option_sets.append(ExportedOptionSet(
                        name=reused, options=tuple(self.known_option_sets[reused]), is_existing=True
                    ))
            else:
                names[option_set.name] = option_set.name
                export.option_sets.append(ExportedOptionSet(
                    name=option_set.name, options=option_set.options
                ))
        return names

    def _export_entity(
        self,
        entity: Entity,
        option_set_names: Dict[str, str],
        export: SchemaExport,
    ) -> ExportedEntity:
        attributes = tuple(
            self._export_attribute(entity, attribute, option_set_names, export)
            for attribute in entity.attributes
        )
        primary_key = entity.primary_key
        return ExportedEntity(
            name=entity.name,
            display_name=entity.label,
            primary_key=primary_key.name if primary_key else None,
            attributes=attributes,
            primary_name_attribute=primary_name_attribute(entity),
            is_stub=entity.is_stub,
            is_junction=entity.is_junction,
        )

    def _export_attribute(
        self,
        entity: Entity,
        attribute: Attribute,
        option_set_names: Dict[str, str],
        export: SchemaExport,
    ) -> ExportedAttribute:
        mapping = self._type_mapper.map_type(attribute.data_type)
        if mapping.warning:
            export.warnings.add(make_issue(
                IssueKind.UNMAPPED_TYPE,
                subject=f"{entity.name}.{attribute.name}",
                message=f"{mapping.warning} ({entity.name}.{attribute.name}).",
                entity=entity.name,
                attribute=attribute.name,
                line=attribute.line,
            ))
        option_set = None
        if attribute.option_set:
            option_set = option_set_names.get(attribute.option_set, attribute.option_set)
        return ExportedAttribute(
            name=attribute.name,
            display_name=attribute.display_name,
            target_type=mapping.target_type,
            semantic_type=attribute.data_type,
            is_primary_key=attribute.is_primary_key,
            is_required=attribute.is_required or attribute.is_primary_key,
            is_unique=attribute.is_unique,
            description=attribute.description,
            option_set=option_set,
            lookup_target=attribute.lookup_target,
        )

    def _export_relationship(
        self,
        model: SchemaModel,
        relationship: Relationship,
        export: SchemaExport,
    ) -> Optional[ExportedRelationship]:
        side = foreign_key_side(relationship)
        if side is None:
            export.warnings.add(make_issue(
                IssueKind.MANY_TO_MANY_DETECTED,
                subject=relationship.id,
                message=(
                    f"Many-to-many relationship '{relationship.notation}' was not exported; "
                    "resolve it with a junction entity."
                ),
                entity=relationship.source,
                relationship_id=relationship.id,
                line=relationship.line,
            ))
            return None

        child = model.get_entity(side.child)
        referencing_attribute = None
        if child is not None:
            attribute = child.get_attribute(side.fk_name)
            if attribute is None:
                attribute = next(
                    (a for a in child.attributes if a.lookup_target == side.parent), None
                )
            if attribute is not None:
                referencing_attribute = attribute.name
        return ExportedRelationship(
            id=relationship.id,
            referenced_entity=side.parent,
            referencing_entity=side.child,
            referencing_attribute=referencing_attribute,
            label=relationship.label,
        )


def primary_name_attribute(entity: Entity) -> Optional[str]:
    """First plain text column that is not a key; the platform's primary name."""
    for attribute in entity.attributes:
        if (
            attribute.data_type == SemanticType.STRING.value
            and not attribute.is_primary_key
            and not attribute.is_foreign_key
        ):
            return attribute.name
    return None


# =============================================================================
# ERD Rendering
# =============================================================================

def render_attribute(attribute: Attribute) -> str:
    """Render one attribute line in the grammar ErdParser reads."""
    if attribute.data_type == SemanticType.CHOICE.value:
        options = (f'"{o}"' if " " in o else o for o in attribute.options)
        type_text = f"choice({','.join(options)})"
    elif attribute.data_type == SemanticType.LOOKUP.value:
        type_text = f"lookup({attribute.lookup_target or ''})"
    else:
        type_text = attribute.data_type
    parts = [type_text, attribute.name]
    parts.extend(attribute.constraints)
    if attribute.is_required:
        parts.append("REQUIRED")
    if attribute.description:
        parts.append(f'"{attribute.description}"')
    return " ".join(parts)


def render_erd(model: SchemaModel) -> str:
    """
    Render a model as ``erDiagram`` text.

    Entities come first in model order, then relationships. Parsing the
    output yields the same entities, attributes and relationship endpoints;
    relationship ids are renumbered in declaration order, so ids
    synthesized for junction links (`rel_1.a`) come back as `rel_<n>`.
    """
    lines = ["erDiagram"]
    for entity in model.entities:
        header = entity.name
        if entity.display_name:
            header += f'["{entity.display_name}"]'
        lines.append(f"    {header} {{")
        for attribute in entity.attributes:
            lines.append(f"        {render_attribute(attribute)}")
        lines.append("    }")
    if model.relationships:
        lines.append("")
    for relationship in model.relationships:
        lines.append(f"    {relationship.notation}")
    return "\n".join(lines) + "\n"
