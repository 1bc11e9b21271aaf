"""
Auto-Fix Engine.

Computes and applies corrective patches for fixable validation issues.
Every patch is a pure ``SchemaModel -> SchemaModel`` function; the engine
never mutates a model in place.

Fixes run in phases (FIX_ORDER). Each phase re-checks the current model for
its issue kind and applies the matching patches, so later phases always see
the output of earlier ones:

1. missing_entity, duplicate_entity (stubs and merges come first)
2. invalid_name, name_too_long
3. column fixes (duplicates, ignored fields, reserved names)
4. multiple_primary_keys, missing_primary_key
5. relationship fixes (self-references, duplicates, many-to-many)
6. missing_foreign_key (may need keys and junctions from earlier phases)

Patches are written as "ensure" operations: applying one whose issue has
already disappeared is a no-op. After the passes the model is validated
again and any fixed kind that is still reported is recorded as unresolved.

Usage:
    from formats.erd.erd_autofix import AutoFixEngine

    engine = AutoFixEngine()
    previews = engine.preview(model, result.issues)
    fix_result = engine.fix(model)
    print(fix_result.validation.summary())
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from constants import FixConfig
from shared.models.validation import IssueKind, ValidationIssue, ValidationResult

from .erd_models import Attribute, Cardinality, Entity, Relationship, SchemaModel, SemanticType
from .erd_naming import (
    junction_name,
    prefixed_name,
    sanitize_name,
    truncate_name,
    unique_name,
)
from .erd_resolver import expected_foreign_key_name, foreign_key_side
from .erd_validator import FIXABLE_KINDS, ErdValidator

logger = logging.getLogger(__name__)


FIX_ORDER: Tuple[IssueKind, ...] = (
    IssueKind.MISSING_ENTITY,
    IssueKind.DUPLICATE_ENTITY,
    IssueKind.INVALID_NAME,
    IssueKind.NAME_TOO_LONG,
    IssueKind.DUPLICATE_COLUMNS,
    IssueKind.SYSTEM_FIELD_IGNORED,
    IssueKind.STATUS_COLUMN_IGNORED,
    IssueKind.CHOICE_COLUMN_DOWNGRADED,
    IssueKind.RESERVED_ATTRIBUTE_NAME,
    IssueKind.NAME_COLUMN_CONFLICT,
    IssueKind.MULTIPLE_PRIMARY_KEYS,
    IssueKind.MISSING_PRIMARY_KEY,
    IssueKind.SELF_REFERENCING_RELATIONSHIP,
    IssueKind.DUPLICATE_RELATIONSHIP,
    IssueKind.MANY_TO_MANY_DETECTED,
    IssueKind.MISSING_FOREIGN_KEY,
)

Transform = Callable[[SchemaModel], SchemaModel]


@dataclass(frozen=True)
class AutoFix:
    """A previewable correction for one issue."""
    issue_id: str
    kind: IssueKind
    description: str
    transform: Transform = field(compare=False, repr=False)

    def apply(self, model: SchemaModel) -> SchemaModel:
        return self.transform(model)

    def to_dict(self) -> Dict[str, Any]:
        return {"issueId": self.issue_id, "kind": self.kind.value, "description": self.description}


@dataclass
class FixResult:
    """
    Outcome of an auto-fix run.

    Attributes:
        model: The corrected model.
        applied: Fixes that changed the model, in application order.
        validation: Validation of the corrected model.
        unresolved_kinds: Fixed kinds still reported after the run.
        passes: Number of full passes executed.
    """
    model: SchemaModel
    applied: List[AutoFix] = field(default_factory=list)
    validation: Optional[ValidationResult] = None
    unresolved_kinds: List[IssueKind] = field(default_factory=list)
    passes: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.applied)

    @property
    def is_idempotent(self) -> bool:
        return not self.unresolved_kinds

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "applied": [fix.to_dict() for fix in self.applied],
            "passes": self.passes,
        }
        if self.unresolved_kinds:
            result["unresolvedKinds"] = [k.value for k in self.unresolved_kinds]
        return result


# =============================================================================
# Model Transformations
# =============================================================================

def _update_entity(model: SchemaModel, name: str, update: Callable[[Entity], Entity]) -> SchemaModel:
    index = model.index_of(name)
    if index < 0:
        return model
    entity = model.entities[index]
    updated = update(entity)
    if updated == entity:
        return model
    return model.replace_entity(index, updated)


def _rename_references(model: SchemaModel, old: str, new: str) -> SchemaModel:
    """Point relationship endpoints and lookup targets at a renamed entity."""
    relationships = [
        replace(
            r,
            source=new if r.source == old else r.source,
            target=new if r.target == old else r.target,
        )
        for r in model.relationships
    ]
    entities = [
        e.with_attributes(
            replace(a, lookup_target=new) if a.lookup_target == old else a
            for a in e.attributes
        )
        for e in model.entities
    ]
    return replace(model, entities=tuple(entities), relationships=tuple(relationships))


def synthetic_primary_key() -> Attribute:
    return Attribute(
        name=FixConfig.SYNTHETIC_KEY_NAME,
        data_type=FixConfig.SYNTHETIC_KEY_TYPE,
        is_primary_key=True,
        description="Primary key",
    )


def key_type_of(entity: Optional[Entity]) -> str:
    """Data type a foreign key to ``entity`` should use."""
    if entity is not None and entity.primary_key is not None:
        return entity.primary_key.data_type
    return FixConfig.SYNTHETIC_KEY_TYPE


def ensure_stub_entity(name: str) -> Transform:
    def transform(model: SchemaModel) -> SchemaModel:
        if model.has_entity(name):
            return model
        return model.add_entity(Entity(
            name=name, attributes=(synthetic_primary_key(),), is_stub=True
        ))
    return transform


def merge_duplicate_entities(name: str) -> Transform:
    """Fold every later declaration of ``name`` (case-insensitive) into the first."""
    wanted = name.lower()

    def transform(model: SchemaModel) -> SchemaModel:
        matches = [e for e in model.entities if e.name.lower() == wanted]
        if len(matches) < 2:
            return model
        first = matches[0]
        merged = replace(
            first,
            attributes=tuple(a for e in matches for a in e.attributes),
            display_name=next((e.display_name for e in matches if e.display_name), None),
            is_stub=all(e.is_stub for e in matches),
        )
        entities = []
        for entity in model.entities:
            if entity is first:
                entities.append(merged)
            elif entity.name.lower() != wanted:
                entities.append(entity)
        result = model.with_entities(entities)
        for other in {e.name for e in matches[1:]} - {first.name}:
            result = _rename_references(result, other, first.name)
        return result
    return transform


def rename_entity(old: str, candidate: str, max_length: int) -> Transform:
    def transform(model: SchemaModel) -> SchemaModel:
        index = model.index_of(old)
        if index < 0:
            return model
        others = [n for i, n in enumerate(model.entity_names) if i != index]
        new = unique_name(candidate, others, max_length)
        if new == old:
            return model
        model = model.replace_entity(index, replace(model.entities[index], name=new))
        return _rename_references(model, old, new)
    return transform


def rename_attribute(entity_name: str, old: str, candidate: str, max_length: int) -> Transform:
    def update(entity: Entity) -> Entity:
        positions = [i for i, a in enumerate(entity.attributes) if a.name == old]
        if not positions:
            return entity
        position = positions[0]
        others = [a.name for i, a in enumerate(entity.attributes) if i != position]
        new = unique_name(candidate, others, max_length)
        attributes = list(entity.attributes)
        attributes[position] = replace(attributes[position], name=new)
        return entity.with_attributes(attributes)
    return lambda model: _update_entity(model, entity_name, update)


def _best_instance(instances: Sequence[Attribute]) -> Attribute:
    """Prefer an instance with a constraint, then one with a description, then the first."""
    for attribute in instances:
        if attribute.has_constraint:
            return attribute
    for attribute in instances:
        if attribute.description:
            return attribute
    return instances[0]


def merge_attributes(instances: Sequence[Attribute]) -> Attribute:
    """Merge duplicate definitions keeping the union of flags and a non-empty description."""
    best = _best_instance(instances)
    first = instances[0]
    return replace(
        best,
        name=first.name,
        is_primary_key=any(a.is_primary_key for a in instances),
        is_foreign_key=any(a.is_foreign_key for a in instances),
        is_unique=any(a.is_unique for a in instances),
        is_required=any(a.is_required for a in instances),
        description=best.description or next((a.description for a in instances if a.description), None),
        options=best.options or next((a.options for a in instances if a.options), ()),
        option_set=best.option_set or next((a.option_set for a in instances if a.option_set), None),
        lookup_target=best.lookup_target or next((a.lookup_target for a in instances if a.lookup_target), None),
        line=first.line,
    )


def merge_duplicate_columns(entity_name: str, attribute_name: str) -> Transform:
    wanted = attribute_name.lower()

    def update(entity: Entity) -> Entity:
        instances = [a for a in entity.attributes if a.key == wanted]
        if len(instances) < 2:
            return entity
        merged = merge_attributes(instances)
        attributes = []
        for attribute in entity.attributes:
            if attribute.key != wanted:
                attributes.append(attribute)
            elif attribute is instances[0]:
                attributes.append(merged)
        return entity.with_attributes(attributes)
    return lambda model: _update_entity(model, entity_name, update)


def drop_attribute(entity_name: str, attribute_name: str) -> Transform:
    def update(entity: Entity) -> Entity:
        return entity.with_attributes(a for a in entity.attributes if a.name != attribute_name)
    return lambda model: _update_entity(model, entity_name, update)


def downgrade_choice(entity_name: str, attribute_name: str) -> Transform:
    def update(entity: Entity) -> Entity:
        return entity.with_attributes(
            replace(a, data_type=SemanticType.STRING.value, options=(), option_set=None)
            if a.name == attribute_name and a.data_type == SemanticType.CHOICE.value and not a.options
            else a
            for a in entity.attributes
        )
    return lambda model: _update_entity(model, entity_name, update)


def demote_extra_primary_keys(entity_name: str) -> Transform:
    """Keep the first PK; later ones stay as unique (alternate) keys."""
    def update(entity: Entity) -> Entity:
        first = entity.primary_key
        if first is None:
            return entity
        return entity.with_attributes(
            replace(a, is_primary_key=False, is_unique=True)
            if a.is_primary_key and a is not first
            else a
            for a in entity.attributes
        )
    return lambda model: _update_entity(model, entity_name, update)


def ensure_primary_key(entity_name: str) -> Transform:
    """Promote an existing ``id`` column, or inject a synthetic key first in the entity."""
    def update(entity: Entity) -> Entity:
        if entity.has_primary_key:
            return entity
        existing = entity.get_attribute(FixConfig.SYNTHETIC_KEY_NAME)
        if existing is not None:
            return entity.with_attributes(
                replace(a, is_primary_key=True) if a is existing else a
                for a in entity.attributes
            )
        return entity.with_attributes((synthetic_primary_key(),) + entity.attributes)
    return lambda model: _update_entity(model, entity_name, update)


def drop_self_reference(relationship_id: str) -> Transform:
    def transform(model: SchemaModel) -> SchemaModel:
        return model.with_relationships(
            r for r in model.relationships
            if not (r.id == relationship_id and r.is_self_referencing)
        )
    return transform


def drop_duplicate_relationship(relationship_id: str) -> Transform:
    """Drop the relationship only while an earlier one shares its key."""
    def transform(model: SchemaModel) -> SchemaModel:
        kept: List[Relationship] = []
        seen = set()
        for relationship in model.relationships:
            if relationship.id == relationship_id and relationship.key in seen:
                continue
            seen.add(relationship.key)
            kept.append(relationship)
        if len(kept) == len(model.relationships):
            return model
        return model.with_relationships(kept)
    return transform


def _foreign_key_attribute(parent: str, parent_entity: Optional[Entity], taken: Iterable[str]) -> Attribute:
    name = unique_name(expected_foreign_key_name(parent), taken)
    return Attribute(
        name=name,
        data_type=key_type_of(parent_entity),
        is_foreign_key=True,
        description=f"Foreign key to {parent}",
    )


def synthesize_junction(relationship_id: str, max_length: int) -> Transform:
    """
    Replace a many-to-many relationship with a junction entity.

    The junction gets a synthetic key plus one FK per side, and the original
    relationship is replaced in place by two one-to-many relationships
    (``<id>.a`` from the source, ``<id>.b`` from the target).
    """
    def transform(model: SchemaModel) -> SchemaModel:
        rel = model.get_relationship(relationship_id)
        if rel is None or not rel.is_many_to_many:
            return model
        name = unique_name(junction_name(rel.source, rel.target), model.entity_names, max_length)
        attributes = [synthetic_primary_key()]
        for side in (rel.source, rel.target):
            attributes.append(_foreign_key_attribute(
                side, model.get_entity(side), [a.name for a in attributes]
            ))
        junction = Entity(name=name, attributes=tuple(attributes), line=rel.line, is_junction=True)

        replacement = [
            Relationship(
                id=f"{rel.id}.{suffix}",
                source=side,
                target=name,
                cardinality=Cardinality.ONE_TO_MANY,
                label=rel.label,
                left_marker="||",
                right_marker="o{",
                identifying=rel.identifying,
                line=rel.line,
            )
            for suffix, side in (("a", rel.source), ("b", rel.target))
        ]
        relationships: List[Relationship] = []
        for existing in model.relationships:
            if existing.id == relationship_id:
                relationships.extend(replacement)
            else:
                relationships.append(existing)
        return replace(
            model,
            entities=model.entities + (junction,),
            relationships=tuple(relationships),
        )
    return transform


def ensure_foreign_key(relationship_id: str) -> Transform:
    """Flag the conventional FK column on the child side, adding it when absent."""
    def transform(model: SchemaModel) -> SchemaModel:
        rel = model.get_relationship(relationship_id)
        if rel is None or rel.is_self_referencing:
            return model
        side = foreign_key_side(rel)
        if side is None:
            return model
        child = model.get_entity(side.child)
        parent = model.get_entity(side.parent)
        if child is None or parent is None:
            return model

        def update(entity: Entity) -> Entity:
            existing = entity.get_attribute(side.fk_name)
            if existing is not None:
                if existing.is_foreign_key:
                    return entity
                return entity.with_attributes(
                    replace(a, is_foreign_key=True) if a is existing else a
                    for a in entity.attributes
                )
            attribute = _foreign_key_attribute(side.parent, parent, entity.attribute_names())
            return entity.with_attributes(entity.attributes + (attribute,))

        return _update_entity(model, side.child, update)
    return transform


# =============================================================================
# Engine
# =============================================================================

class AutoFixEngine:
    """
    Plan and apply fixes for validation issues.

    Example:
        >>> engine = AutoFixEngine()
        >>> result = engine.fix(model)
        >>> result.model.get_entity("CUSTOMER").primary_key.name
        'id'
    """

    def __init__(self, validator: Optional[ErdValidator] = None, max_passes: int = 3):
        """
        Initialize the engine.

        Args:
            validator: Validator used between phases and for re-validation.
            max_passes: Upper bound on full passes over FIX_ORDER.
        """
        self.validator = validator or ErdValidator()
        self.max_passes = max(1, max_passes)
        self._planners: Dict[IssueKind, Callable[[SchemaModel, ValidationIssue], Optional[AutoFix]]] = {
            IssueKind.MISSING_ENTITY: self._plan_missing_entity,
            IssueKind.DUPLICATE_ENTITY: self._plan_duplicate_entity,
            IssueKind.INVALID_NAME: self._plan_invalid_name,
            IssueKind.NAME_TOO_LONG: self._plan_name_too_long,
            IssueKind.DUPLICATE_COLUMNS: self._plan_duplicate_columns,
            IssueKind.SYSTEM_FIELD_IGNORED: self._plan_drop_column,
            IssueKind.STATUS_COLUMN_IGNORED: self._plan_drop_column,
            IssueKind.CHOICE_COLUMN_DOWNGRADED: self._plan_downgrade_choice,
            IssueKind.RESERVED_ATTRIBUTE_NAME: self._plan_prefix_rename,
            IssueKind.NAME_COLUMN_CONFLICT: self._plan_prefix_rename,
            IssueKind.MULTIPLE_PRIMARY_KEYS: self._plan_multiple_primary_keys,
            IssueKind.MISSING_PRIMARY_KEY: self._plan_missing_primary_key,
            IssueKind.SELF_REFERENCING_RELATIONSHIP: self._plan_self_reference,
            IssueKind.DUPLICATE_RELATIONSHIP: self._plan_duplicate_relationship,
            IssueKind.MANY_TO_MANY_DETECTED: self._plan_many_to_many,
            IssueKind.MISSING_FOREIGN_KEY: self._plan_missing_foreign_key,
        }

    @property
    def max_entity_name_length(self) -> int:
        return self.validator.context.max_entity_name_length

    @property
    def max_attribute_name_length(self) -> int:
        return self.validator.context.max_attribute_name_length

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def plan_fix(self, model: SchemaModel, issue: ValidationIssue) -> Optional[AutoFix]:
        """Return the fix for one issue, or None when it is not auto-fixable."""
        if not issue.auto_fixable:
            return None
        planner = self._planners.get(issue.kind)
        if planner is None:
            return None
        return planner(model, issue)

    def preview(self, model: SchemaModel, issues: Iterable[ValidationIssue]) -> List[AutoFix]:
        """Previewable fixes for every fixable issue, in issue order."""
        fixes = []
        for issue in issues:
            fix = self.plan_fix(model, issue)
            if fix is not None:
                fixes.append(fix)
        return fixes

    def annotate(self, model: SchemaModel, result: ValidationResult) -> ValidationResult:
        """Return a copy of ``result`` whose fixable issues carry a fix preview."""
        previewed = ValidationResult(
            strict_mode=result.strict_mode, rule_catalog_version=result.rule_catalog_version
        )
        for issue in result.issues:
            fix = self.plan_fix(model, issue)
            if fix is not None:
                issue = replace(issue, fix_preview=fix.description)
            previewed.issues.append(issue)
        return previewed

    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------

    def fix(self, model: SchemaModel, kinds: Optional[Iterable[IssueKind]] = None) -> FixResult:
        """
        Apply fixes phase by phase, then re-validate.

        Args:
            model: Model to correct.
            kinds: Restrict fixing to these kinds (e.g. the kinds a user
                approved during review). Defaults to every fixable kind.

        Returns:
            FixResult with the corrected model and the fixes applied.
        """
        allowed = FIXABLE_KINDS if kinds is None else frozenset(kinds) & FIXABLE_KINDS
        result = FixResult(model=model)

        for pass_number in range(1, self.max_passes + 1):
            applied_this_pass = 0
            for kind in FIX_ORDER:
                if kind not in allowed:
                    continue
                checked = ValidationResult()
                checked.extend(self.validator.check(result.model, kind))
                for issue in checked.issues:
                    fix = self.plan_fix(result.model, issue)
                    if fix is None:
                        continue
                    updated = fix.apply(result.model)
                    if updated != result.model:
                        logger.debug(f"Applied fix for {issue.kind.value} ({issue.subject}): {fix.description}")
                        result.model = updated
                        result.applied.append(fix)
                        applied_this_pass += 1
            result.passes = pass_number
            if applied_this_pass == 0:
                break

        result.validation = self.validator.validate(result.model)
        attempted = []
        for fix in result.applied:
            if fix.kind not in attempted:
                attempted.append(fix.kind)
        result.unresolved_kinds = [k for k in attempted if result.validation.has_kind(k)]
        if result.unresolved_kinds:
            logger.warning(
                "Auto-fix left issues of kinds it fixed: "
                + ", ".join(k.value for k in result.unresolved_kinds)
            )
        logger.info(f"Auto-fix applied {len(result.applied)} fix(es) in {result.passes} pass(es)")
        return result

    # ------------------------------------------------------------------
    # Planners
    # ------------------------------------------------------------------

    def _plan_missing_entity(self, model: SchemaModel, issue: ValidationIssue) -> AutoFix:
        name = issue.entity or issue.subject
        return AutoFix(
            issue.issue_id, issue.kind,
            f"Create stub entity '{name}' with primary key '{FixConfig.SYNTHETIC_KEY_NAME}'",
            ensure_stub_entity(name),
        )

    def _plan_duplicate_entity(self, model: SchemaModel, issue: ValidationIssue) -> AutoFix:
        name = issue.entity or issue.subject
        first = model.find_entity(name)
        target = first.name if first else name
        return AutoFix(
            issue.issue_id, issue.kind,
            f"Merge the attributes of every '{name}' declaration into '{target}'",
            merge_duplicate_entities(name),
        )

    def _plan_invalid_name(self, model: SchemaModel, issue: ValidationIssue) -> Optional[AutoFix]:
        if issue.attribute and issue.entity:
            candidate = sanitize_name(issue.attribute, "attr")
            return AutoFix(
                issue.issue_id, issue.kind,
                f"Rename column '{issue.attribute}' in '{issue.entity}' to '{candidate}'",
                rename_attribute(issue.entity, issue.attribute, candidate, self.max_attribute_name_length),
            )
        if issue.entity:
            candidate = sanitize_name(issue.entity, "entity")
            return AutoFix(
                issue.issue_id, issue.kind,
                f"Rename entity '{issue.entity}' to '{candidate}'",
                rename_entity(issue.entity, candidate, self.max_entity_name_length),
            )
        return None

    def _plan_name_too_long(self, model: SchemaModel, issue: ValidationIssue) -> Optional[AutoFix]:
        if issue.attribute and issue.entity:
            limit = self.max_attribute_name_length
            candidate = truncate_name(issue.attribute, limit)
            return AutoFix(
                issue.issue_id, issue.kind,
                f"Truncate column '{issue.attribute}' in '{issue.entity}' to '{candidate}'",
                rename_attribute(issue.entity, issue.attribute, candidate, limit),
            )
        if issue.entity:
            limit = self.max_entity_name_length
            candidate = truncate_name(issue.entity, limit)
            return AutoFix(
                issue.issue_id, issue.kind,
                f"Truncate entity '{issue.entity}' to '{candidate}'",
                rename_entity(issue.entity, candidate, limit),
            )
        return None

    def _plan_duplicate_columns(self, model: SchemaModel, issue: ValidationIssue) -> Optional[AutoFix]:
        if not (issue.entity and issue.attribute):
            return None
        return AutoFix(
            issue.issue_id, issue.kind,
            f"Merge duplicate definitions of '{issue.attribute}' in '{issue.entity}' into one column",
            merge_duplicate_columns(issue.entity, issue.attribute),
        )

    def _plan_drop_column(self, model: SchemaModel, issue: ValidationIssue) -> Optional[AutoFix]:
        if not (issue.entity and issue.attribute):
            return None
        return AutoFix(
            issue.issue_id, issue.kind,
            f"Ignore column '{issue.attribute}' in '{issue.entity}'",
            drop_attribute(issue.entity, issue.attribute),
        )

    def _plan_downgrade_choice(self, model: SchemaModel, issue: ValidationIssue) -> Optional[AutoFix]:
        if not (issue.entity and issue.attribute):
            return None
        return AutoFix(
            issue.issue_id, issue.kind,
            f"Create choice column '{issue.attribute}' in '{issue.entity}' as text",
            downgrade_choice(issue.entity, issue.attribute),
        )

    def _plan_prefix_rename(self, model: SchemaModel, issue: ValidationIssue) -> Optional[AutoFix]:
        if not (issue.entity and issue.attribute):
            return None
        candidate = prefixed_name(issue.entity, issue.attribute)
        return AutoFix(
            issue.issue_id, issue.kind,
            f"Rename column '{issue.attribute}' in '{issue.entity}' to '{candidate}'",
            rename_attribute(issue.entity, issue.attribute, candidate, self.max_attribute_name_length),
        )

    def _plan_multiple_primary_keys(self, model: SchemaModel, issue: ValidationIssue) -> Optional[AutoFix]:
        entity = model.get_entity(issue.entity or issue.subject)
        if entity is None or entity.primary_key is None:
            return None
        demoted = [a.name for a in entity.primary_keys[1:]]
        return AutoFix(
            issue.issue_id, issue.kind,
            f"Keep '{entity.primary_key.name}' as primary key of '{entity.name}'; "
            f"demote {', '.join(demoted)} to unique key(s)",
            demote_extra_primary_keys(entity.name),
        )

    def _plan_missing_primary_key(self, model: SchemaModel, issue: ValidationIssue) -> Optional[AutoFix]:
        entity = model.get_entity(issue.entity or issue.subject)
        if entity is None:
            return None
        key_name = FixConfig.SYNTHETIC_KEY_NAME
        if entity.get_attribute(key_name) is not None:
            description = f"Mark existing column '{key_name}' in '{entity.name}' as primary key"
        else:
            description = f"Add primary key '{FixConfig.SYNTHETIC_KEY_TYPE} {key_name} PK' to '{entity.name}'"
        return AutoFix(issue.issue_id, issue.kind, description, ensure_primary_key(entity.name))

    def _plan_self_reference(self, model: SchemaModel, issue: ValidationIssue) -> Optional[AutoFix]:
        rel = model.get_relationship(issue.relationship_id or issue.subject)
        if rel is None:
            return None
        return AutoFix(
            issue.issue_id, issue.kind,
            f"Remove self-referencing relationship '{rel.notation}'",
            drop_self_reference(rel.id),
        )

    def _plan_duplicate_relationship(self, model: SchemaModel, issue: ValidationIssue) -> Optional[AutoFix]:
        rel = model.get_relationship(issue.relationship_id or issue.subject)
        if rel is None:
            return None
        return AutoFix(
            issue.issue_id, issue.kind,
            f"Remove duplicate relationship {rel.id} '{rel.notation}'",
            drop_duplicate_relationship(rel.id),
        )

    def _plan_many_to_many(self, model: SchemaModel, issue: ValidationIssue) -> Optional[AutoFix]:
        rel = model.get_relationship(issue.relationship_id or issue.subject)
        if rel is None:
            return None
        name = unique_name(
            junction_name(rel.source, rel.target), model.entity_names, self.max_entity_name_length
        )
        return AutoFix(
            issue.issue_id, issue.kind,
            f"Create junction entity '{name}' with foreign keys "
            f"'{expected_foreign_key_name(rel.source)}' and '{expected_foreign_key_name(rel.target)}'; "
            f"replace '{rel.notation}' with two one-to-many relationships",
            synthesize_junction(rel.id, self.max_entity_name_length),
        )

    def _plan_missing_foreign_key(self, model: SchemaModel, issue: ValidationIssue) -> Optional[AutoFix]:
        rel = model.get_relationship(issue.relationship_id or issue.subject)
        if rel is None:
            return None
        side = foreign_key_side(rel)
        if side is None:
            return None
        child = model.get_entity(side.child)
        existing = child.get_attribute(side.fk_name) if child else None
        if existing is not None:
            description = f"Mark column '{existing.name}' in '{side.child}' as FK to '{side.parent}'"
        else:
            description = f"Add foreign key '{side.fk_name}' to '{side.child}' referencing '{side.parent}'"
        return AutoFix(issue.issue_id, issue.kind, description, ensure_foreign_key(rel.id))
