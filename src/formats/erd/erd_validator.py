"""
ERD Validator.

This module provides the validation engine for built ERD schema models. It
runs a fixed, versioned catalog of independent rules over a SchemaModel and
returns an ordered, severity-tagged issue list.

Rule groups:
- Entity structure (missing/duplicate entities, empty entities, keys, columns)
- Naming conventions (invalid or over-long names, foreign key naming)
- Platform-reserved names (system attributes, audit fields, status columns)
- Relationships (self-references, duplicates, many-to-many, foreign keys, cycles)

Every rule is a pure function of the model and a read-only RuleContext and
iterates the model in declaration order, so identical input always yields an
identical issue list.

Usage:
    from formats.erd.erd_validator import ErdValidator

    validator = ErdValidator(reserved_names={"region"})
    result = validator.validate(model)

    if result.is_valid:
        print("Validation passed!")
    else:
        for issue in result.errors:
            print(f"Error: {issue.message}")
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from constants import NamingLimits, ReservedNames
from shared.models.validation import IssueKind, Severity, ValidationIssue, ValidationResult

from .erd_models import Entity, SchemaModel, SemanticType
from .erd_naming import is_valid_name, junction_name, prefixed_name, sanitize_name
from .erd_parser import SyntaxErrorToken
from .erd_resolver import (
    find_cycles,
    find_duplicate_relationships,
    find_missing_entities,
    find_self_references,
    foreign_key_side,
)

logger = logging.getLogger(__name__)


RULE_CATALOG_VERSION = "1.0"

# Default severity and fixability per kind.
KIND_SEVERITY: Dict[IssueKind, Severity] = {
    IssueKind.SYNTAX_ERROR: Severity.ERROR,
    IssueKind.MISSING_ENTITY: Severity.ERROR,
    IssueKind.DUPLICATE_ENTITY: Severity.ERROR,
    IssueKind.EMPTY_ENTITY: Severity.ERROR,
    IssueKind.DUPLICATE_COLUMNS: Severity.ERROR,
    IssueKind.MULTIPLE_PRIMARY_KEYS: Severity.ERROR,
    IssueKind.MISSING_PRIMARY_KEY: Severity.ERROR,
    IssueKind.INVALID_NAME: Severity.WARNING,
    IssueKind.NAME_TOO_LONG: Severity.WARNING,
    IssueKind.RESERVED_ENTITY_NAME: Severity.WARNING,
    IssueKind.NAME_COLUMN_CONFLICT: Severity.WARNING,
    IssueKind.FOREIGN_KEY_NAMING: Severity.INFO,
    IssueKind.RESERVED_ATTRIBUTE_NAME: Severity.WARNING,
    IssueKind.SYSTEM_FIELD_IGNORED: Severity.INFO,
    IssueKind.STATUS_COLUMN_IGNORED: Severity.INFO,
    IssueKind.CHOICE_COLUMN_DOWNGRADED: Severity.INFO,
    IssueKind.SELF_REFERENCING_RELATIONSHIP: Severity.WARNING,
    IssueKind.DUPLICATE_RELATIONSHIP: Severity.WARNING,
    IssueKind.MANY_TO_MANY_DETECTED: Severity.WARNING,
    IssueKind.MISSING_FOREIGN_KEY: Severity.WARNING,
    IssueKind.ONE_TO_ONE_RELATIONSHIP: Severity.INFO,
    IssueKind.CIRCULAR_DEPENDENCY: Severity.WARNING,
    IssueKind.UNMAPPED_TYPE: Severity.WARNING,
}

FIXABLE_KINDS: FrozenSet[IssueKind] = frozenset({
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
})


def make_issue(kind: IssueKind, subject: str, message: str, **kwargs) -> ValidationIssue:
    """Build an issue with the catalog's severity and fixability for ``kind``."""
    return ValidationIssue(
        kind=kind,
        severity=KIND_SEVERITY[kind],
        subject=subject,
        message=message,
        auto_fixable=kind in FIXABLE_KINDS,
        **kwargs,
    )


@dataclass(frozen=True)
class RuleContext:
    """Read-only inputs shared by all rules."""
    reserved_names: FrozenSet[str] = frozenset()
    max_entity_name_length: int = NamingLimits.MAX_ENTITY_NAME_LENGTH
    max_attribute_name_length: int = NamingLimits.MAX_ATTRIBUTE_NAME_LENGTH

    @property
    def reserved_entity_names(self) -> FrozenSet[str]:
        return ReservedNames.ENTITY_NAMES | self.reserved_names

    @property
    def reserved_attribute_names(self) -> FrozenSet[str]:
        handled = ReservedNames.SYSTEM_FIELDS | ReservedNames.STATUS_COLUMNS
        return ReservedNames.SYSTEM_ATTRIBUTES | (self.reserved_names - handled)


RuleCheck = Callable[[SchemaModel, RuleContext], List[ValidationIssue]]


@dataclass(frozen=True)
class Rule:
    """A catalog entry."""
    kind: IssueKind
    group: str
    check: RuleCheck


def _attribute_subject(entity: Entity, attribute_name: str) -> str:
    return f"{entity.name}.{attribute_name}"


# =============================================================================
# Entity Structure Rules
# =============================================================================

def check_missing_entities(model: SchemaModel, ctx: RuleContext) -> List[ValidationIssue]:
    return [
        make_issue(
            IssueKind.MISSING_ENTITY,
            subject=name,
            message=f"Relationship '{rel.notation}' references entity '{name}', which is not defined.",
            entity=name,
            relationship_id=rel.id,
            line=rel.line,
            suggestion=f"Define entity '{name}' or remove the relationship.",
        )
        for name, rel in find_missing_entities(model)
    ]


def check_duplicate_entities(model: SchemaModel, ctx: RuleContext) -> List[ValidationIssue]:
    issues = []
    first_seen: Dict[str, Entity] = {}
    for entity in model.entities:
        key = entity.name.lower()
        original = first_seen.get(key)
        if original is None:
            first_seen[key] = entity
            continue
        issues.append(make_issue(
            IssueKind.DUPLICATE_ENTITY,
            subject=entity.name,
            message=f"Entity '{entity.name}' is declared more than once.",
            entity=entity.name,
            line=entity.line,
            suggestion=f"Merge the declarations into '{original.name}'.",
        ))
    return issues


def check_empty_entities(model: SchemaModel, ctx: RuleContext) -> List[ValidationIssue]:
    return [
        make_issue(
            IssueKind.EMPTY_ENTITY,
            subject=entity.name,
            message=f"Entity '{entity.name}' has no attributes.",
            entity=entity.name,
            line=entity.line,
            suggestion="Add at least one attribute describing the entity.",
        )
        for entity in model.entities
        if not entity.attributes
    ]


def check_duplicate_columns(model: SchemaModel, ctx: RuleContext) -> List[ValidationIssue]:
    issues = []
    for entity in model.entities:
        groups: "OrderedDict[str, List[str]]" = OrderedDict()
        lines: Dict[str, Optional[int]] = {}
        for attribute in entity.attributes:
            groups.setdefault(attribute.key, []).append(attribute.name)
            lines.setdefault(attribute.key, attribute.line)
        for key, names in groups.items():
            if len(names) < 2:
                continue
            issues.append(make_issue(
                IssueKind.DUPLICATE_COLUMNS,
                subject=_attribute_subject(entity, names[0]),
                message=(
                    f"Entity '{entity.name}' declares column '{names[0]}' {len(names)} times "
                    f"({', '.join(names)})."
                ),
                entity=entity.name,
                attribute=names[0],
                line=lines[key],
                suggestion="Keep a single definition of the column.",
            ))
    return issues


def check_multiple_primary_keys(model: SchemaModel, ctx: RuleContext) -> List[ValidationIssue]:
    issues = []
    for entity in model.entities:
        keys = entity.primary_keys
        if len(keys) < 2:
            continue
        names = [k.name for k in keys]
        issues.append(make_issue(
            IssueKind.MULTIPLE_PRIMARY_KEYS,
            subject=entity.name,
            message=f"Entity '{entity.name}' marks {len(keys)} attributes as PK: {', '.join(names)}.",
            entity=entity.name,
            line=keys[1].line,
            suggestion=f"Keep '{names[0]}' as the primary key.",
        ))
    return issues


def check_missing_primary_keys(model: SchemaModel, ctx: RuleContext) -> List[ValidationIssue]:
    return [
        make_issue(
            IssueKind.MISSING_PRIMARY_KEY,
            subject=entity.name,
            message=f"Entity '{entity.name}' has no primary key.",
            entity=entity.name,
            line=entity.line,
            suggestion="Mark an identifying attribute with PK.",
        )
        for entity in model.entities
        if not entity.has_primary_key
    ]


# =============================================================================
# Naming Rules
# =============================================================================

def check_invalid_names(model: SchemaModel, ctx: RuleContext) -> List[ValidationIssue]:
    issues = []
    for entity in model.entities:
        if not is_valid_name(entity.name):
            issues.append(make_issue(
                IssueKind.INVALID_NAME,
                subject=entity.name,
                message=f"Entity name '{entity.name}' contains unsupported characters.",
                entity=entity.name,
                line=entity.line,
                suggestion=f"Rename to '{sanitize_name(entity.name, 'entity')}'.",
            ))
        for attribute in entity.attributes:
            if not is_valid_name(attribute.name):
                issues.append(make_issue(
                    IssueKind.INVALID_NAME,
                    subject=_attribute_subject(entity, attribute.name),
                    message=f"Attribute name '{attribute.name}' in '{entity.name}' contains unsupported characters.",
                    entity=entity.name,
                    attribute=attribute.name,
                    line=attribute.line,
                    suggestion=f"Rename to '{sanitize_name(attribute.name, 'attr')}'.",
                ))
    return issues


def check_name_lengths(model: SchemaModel, ctx: RuleContext) -> List[ValidationIssue]:
    issues = []
    for entity in model.entities:
        if len(entity.name) > ctx.max_entity_name_length:
            issues.append(make_issue(
                IssueKind.NAME_TOO_LONG,
                subject=entity.name,
                message=(
                    f"Entity name '{entity.name}' is {len(entity.name)} characters "
                    f"(limit {ctx.max_entity_name_length})."
                ),
                entity=entity.name,
                line=entity.line,
            ))
        for attribute in entity.attributes:
            if len(attribute.name) > ctx.max_attribute_name_length:
                issues.append(make_issue(
                    IssueKind.NAME_TOO_LONG,
                    subject=_attribute_subject(entity, attribute.name),
                    message=(
                        f"Attribute name '{attribute.name}' is {len(attribute.name)} characters "
                        f"(limit {ctx.max_attribute_name_length})."
                    ),
                    entity=entity.name,
                    attribute=attribute.name,
                    line=attribute.line,
                ))
    return issues


def check_reserved_entity_names(model: SchemaModel, ctx: RuleContext) -> List[ValidationIssue]:
    reserved = ctx.reserved_entity_names
    return [
        make_issue(
            IssueKind.RESERVED_ENTITY_NAME,
            subject=entity.name,
            message=f"Entity name '{entity.name}' conflicts with a platform or reserved entity.",
            entity=entity.name,
            line=entity.line,
            suggestion=f"Use a more specific name such as 'Custom{entity.name}'.",
        )
        for entity in model.entities
        if entity.name.lower() in reserved
    ]


def check_name_column_conflicts(model: SchemaModel, ctx: RuleContext) -> List[ValidationIssue]:
    issues = []
    for entity in model.entities:
        for attribute in entity.attributes:
            if attribute.key == ReservedNames.PRIMARY_NAME_COLUMN and not attribute.is_primary_key:
                issues.append(make_issue(
                    IssueKind.NAME_COLUMN_CONFLICT,
                    subject=_attribute_subject(entity, attribute.name),
                    message=(
                        f"Column '{attribute.name}' in '{entity.name}' conflicts with the "
                        "primary name column the platform creates."
                    ),
                    entity=entity.name,
                    attribute=attribute.name,
                    line=attribute.line,
                    suggestion=f"Rename to '{prefixed_name(entity.name, attribute.name)}'.",
                ))
    return issues


def check_foreign_key_naming(model: SchemaModel, ctx: RuleContext) -> List[ValidationIssue]:
    issues = []
    suffix = NamingLimits.FOREIGN_KEY_SUFFIX
    for entity in model.entities:
        for attribute in entity.foreign_keys:
            if attribute.key.endswith(suffix) or attribute.data_type == SemanticType.LOOKUP.value:
                continue
            issues.append(make_issue(
                IssueKind.FOREIGN_KEY_NAMING,
                subject=_attribute_subject(entity, attribute.name),
                message=f"Foreign key '{attribute.name}' in '{entity.name}' does not end with '{suffix}'.",
                entity=entity.name,
                attribute=attribute.name,
                line=attribute.line,
                suggestion=f"Consider naming it '{attribute.name}{suffix}'.",
            ))
    return issues


# =============================================================================
# Platform-Reserved Rules
# =============================================================================

def _attribute_rule(
    kind: IssueKind,
    matches: Callable[[Entity, object, RuleContext], bool],
    message: str,
    suggestion: Optional[str] = None,
) -> RuleCheck:
    """Build a rule that flags attributes for which ``matches`` is true."""

    def check(model: SchemaModel, ctx: RuleContext) -> List[ValidationIssue]:
        issues = []
        for entity in model.entities:
            for attribute in entity.attributes:
                if not matches(entity, attribute, ctx):
                    continue
                values = {
                    "entity": entity.name,
                    "attribute": attribute.name,
                    "prefixed": prefixed_name(entity.name, attribute.name),
                }
                issues.append(make_issue(
                    kind,
                    subject=_attribute_subject(entity, attribute.name),
                    message=message.format(**values),
                    entity=entity.name,
                    attribute=attribute.name,
                    line=attribute.line,
                    suggestion=suggestion.format(**values) if suggestion else None,
                ))
        return issues

    return check


check_system_fields = _attribute_rule(
    IssueKind.SYSTEM_FIELD_IGNORED,
    lambda e, a, ctx: a.key in ReservedNames.SYSTEM_FIELDS,
    "Column '{attribute}' in '{entity}' is maintained by the platform and will be ignored.",
)

check_status_columns = _attribute_rule(
    IssueKind.STATUS_COLUMN_IGNORED,
    lambda e, a, ctx: a.key in ReservedNames.STATUS_COLUMNS and not a.is_primary_key,
    "Column '{attribute}' in '{entity}' will be ignored; the platform provides built-in state handling.",
    "Create a custom choice column after deployment if custom status values are needed.",
)

check_option_less_choices = _attribute_rule(
    IssueKind.CHOICE_COLUMN_DOWNGRADED,
    lambda e, a, ctx: a.data_type == SemanticType.CHOICE.value and not a.options,
    "Choice column '{attribute}' in '{entity}' declares no options and will be created as text.",
    "Declare options with choice(a, b, ...).",
)

check_reserved_attribute_names = _attribute_rule(
    IssueKind.RESERVED_ATTRIBUTE_NAME,
    lambda e, a, ctx: a.key in ctx.reserved_attribute_names,
    "Column '{attribute}' in '{entity}' conflicts with a platform-reserved column.",
    "Rename to '{prefixed}'.",
)


# =============================================================================
# Relationship Rules
# =============================================================================

def check_self_references(model: SchemaModel, ctx: RuleContext) -> List[ValidationIssue]:
    return [
        make_issue(
            IssueKind.SELF_REFERENCING_RELATIONSHIP,
            subject=rel.id,
            message=f"Relationship '{rel.notation}' references its own entity.",
            entity=rel.source,
            relationship_id=rel.id,
            line=rel.line,
            suggestion="Model the hierarchy with a lookup column after deployment.",
        )
        for rel in find_self_references(model)
    ]


def check_duplicate_relationships(model: SchemaModel, ctx: RuleContext) -> List[ValidationIssue]:
    return [
        make_issue(
            IssueKind.DUPLICATE_RELATIONSHIP,
            subject=duplicate.id,
            message=(
                f"Relationship '{duplicate.notation}' duplicates {original.id}"
                + (f" (line {original.line})." if original.line is not None else ".")
            ),
            entity=duplicate.source,
            relationship_id=duplicate.id,
            line=duplicate.line,
            suggestion="Remove the repeated relationship.",
        )
        for duplicate, original in find_duplicate_relationships(model)
    ]


def check_many_to_many(model: SchemaModel, ctx: RuleContext) -> List[ValidationIssue]:
    return [
        make_issue(
            IssueKind.MANY_TO_MANY_DETECTED,
            subject=rel.id,
            message=f"Many-to-many relationship between '{rel.source}' and '{rel.target}'.",
            entity=rel.source,
            relationship_id=rel.id,
            line=rel.line,
            suggestion=f"Introduce a junction entity such as '{junction_name(rel.source, rel.target)}'.",
        )
        for rel in model.relationships
        if rel.is_many_to_many
    ]


def check_one_to_one(model: SchemaModel, ctx: RuleContext) -> List[ValidationIssue]:
    return [
        make_issue(
            IssueKind.ONE_TO_ONE_RELATIONSHIP,
            subject=rel.id,
            message=(
                f"One-to-one relationship '{rel.notation}' will be created as one-to-many "
                f"from '{rel.source}' to '{rel.target}'."
            ),
            entity=rel.source,
            relationship_id=rel.id,
            line=rel.line,
        )
        for rel in model.relationships
        if rel.is_one_to_one and not rel.is_self_referencing
    ]


def check_missing_foreign_keys(model: SchemaModel, ctx: RuleContext) -> List[ValidationIssue]:
    issues = []
    for rel in model.relationships:
        side = foreign_key_side(rel)
        if side is None or rel.is_self_referencing:
            continue
        child = model.get_entity(side.child)
        if child is None or model.get_entity(side.parent) is None:
            continue
        attribute = child.get_attribute(side.fk_name)
        if attribute is not None and attribute.is_foreign_key:
            continue
        if any(a.lookup_target == side.parent for a in child.attributes):
            continue
        if attribute is None:
            message = (
                f"'{side.child}' has no foreign key '{side.fk_name}' for relationship "
                f"'{rel.notation}'."
            )
        else:
            message = (
                f"Column '{attribute.name}' in '{side.child}' is not marked FK for relationship "
                f"'{rel.notation}'."
            )
        issues.append(make_issue(
            IssueKind.MISSING_FOREIGN_KEY,
            subject=rel.id,
            message=message,
            entity=side.child,
            attribute=side.fk_name,
            relationship_id=rel.id,
            line=rel.line,
            suggestion=f"Add '{side.fk_name} FK' to '{side.child}'.",
        ))
    return issues


def check_circular_dependencies(model: SchemaModel, ctx: RuleContext) -> List[ValidationIssue]:
    return [
        make_issue(
            IssueKind.CIRCULAR_DEPENDENCY,
            subject=" -> ".join(cycle),
            message=f"Circular dependency: {' -> '.join(cycle)}.",
            entity=cycle[0],
            suggestion="Break the cycle by removing one relationship or making a key optional.",
        )
        for cycle in find_cycles(model)
    ]


# =============================================================================
# Catalog
# =============================================================================

RULE_CATALOG: Tuple[Rule, ...] = (
    Rule(IssueKind.MISSING_ENTITY, "relationships", check_missing_entities),
    Rule(IssueKind.DUPLICATE_ENTITY, "entities", check_duplicate_entities),
    Rule(IssueKind.INVALID_NAME, "naming", check_invalid_names),
    Rule(IssueKind.NAME_TOO_LONG, "naming", check_name_lengths),
    Rule(IssueKind.RESERVED_ENTITY_NAME, "reserved", check_reserved_entity_names),
    Rule(IssueKind.EMPTY_ENTITY, "entities", check_empty_entities),
    Rule(IssueKind.DUPLICATE_COLUMNS, "entities", check_duplicate_columns),
    Rule(IssueKind.SYSTEM_FIELD_IGNORED, "reserved", check_system_fields),
    Rule(IssueKind.STATUS_COLUMN_IGNORED, "reserved", check_status_columns),
    Rule(IssueKind.CHOICE_COLUMN_DOWNGRADED, "entities", check_option_less_choices),
    Rule(IssueKind.RESERVED_ATTRIBUTE_NAME, "reserved", check_reserved_attribute_names),
    Rule(IssueKind.NAME_COLUMN_CONFLICT, "reserved", check_name_column_conflicts),
    Rule(IssueKind.MULTIPLE_PRIMARY_KEYS, "entities", check_multiple_primary_keys),
    Rule(IssueKind.MISSING_PRIMARY_KEY, "entities", check_missing_primary_keys),
    Rule(IssueKind.FOREIGN_KEY_NAMING, "naming", check_foreign_key_naming),
    Rule(IssueKind.SELF_REFERENCING_RELATIONSHIP, "relationships", check_self_references),
    Rule(IssueKind.DUPLICATE_RELATIONSHIP, "relationships", check_duplicate_relationships),
    Rule(IssueKind.MANY_TO_MANY_DETECTED, "relationships", check_many_to_many),
    Rule(IssueKind.ONE_TO_ONE_RELATIONSHIP, "relationships", check_one_to_one),
    Rule(IssueKind.MISSING_FOREIGN_KEY, "relationships", check_missing_foreign_keys),
    Rule(IssueKind.CIRCULAR_DEPENDENCY, "relationships", check_circular_dependencies),
)


def syntax_error_issue(token: SyntaxErrorToken) -> ValidationIssue:
    if token.start_line == token.end_line:
        subject = f"line {token.start_line}"
    else:
        subject = f"lines {token.start_line}-{token.end_line}"
    return make_issue(
        IssueKind.SYNTAX_ERROR,
        subject=subject,
        message=token.message,
        line=token.start_line,
        suggestion="Fix the syntax; the affected lines were skipped.",
    )


class ErdValidator:
    """
    Validate a SchemaModel against the rule catalog.

    Example:
        >>> validator = ErdValidator()
        >>> result = validator.validate(model)
        >>> [i.kind.value for i in result.errors]
        ['missing_primary_key']
    """

    def __init__(
        self,
        reserved_names: Optional[Iterable[str]] = None,
        strict_mode: bool = False,
        max_entity_name_length: int = NamingLimits.MAX_ENTITY_NAME_LENGTH,
        max_attribute_name_length: int = NamingLimits.MAX_ATTRIBUTE_NAME_LENGTH,
        rules: Optional[Sequence[Rule]] = None,
    ):
        """
        Initialize the validator.

        Args:
            reserved_names: Caller-supplied names that extend the reserved
                entity and attribute checks (compared case-insensitively).
            strict_mode: If True, warnings also make the result invalid.
            max_entity_name_length: Entity name length limit.
            max_attribute_name_length: Attribute name length limit.
            rules: Rule catalog override (defaults to RULE_CATALOG).
        """
        self.strict_mode = strict_mode
        self.context = RuleContext(
            reserved_names=frozenset(n.lower() for n in (reserved_names or ())),
            max_entity_name_length=max_entity_name_length,
            max_attribute_name_length=max_attribute_name_length,
        )
        self.rules: Tuple[Rule, ...] = tuple(rules) if rules is not None else RULE_CATALOG

    def validate(
        self,
        model: SchemaModel,
        syntax_errors: Sequence[SyntaxErrorToken] = (),
    ) -> ValidationResult:
        """
        Run every rule over the model.

        Args:
            model: Built and resolved model.
            syntax_errors: Parser syntax errors to report first.

        Returns:
            ValidationResult with issues in catalog order.
        """
        result = ValidationResult(
            strict_mode=self.strict_mode, rule_catalog_version=RULE_CATALOG_VERSION
        )
        result.extend(syntax_error_issue(token) for token in syntax_errors)
        for rule in self.rules:
            result.extend(rule.check(model, self.context))

        logger.debug(
            f"Validation finished: {result.error_count} errors, "
            f"{result.warning_count} warnings, {result.info_count} info"
        )
        return result

    def check(self, model: SchemaModel, kind: IssueKind) -> List[ValidationIssue]:
        """Run only the rule(s) producing ``kind``."""
        issues: List[ValidationIssue] = []
        for rule in self.rules:
            if rule.kind == kind:
                issues.extend(rule.check(model, self.context))
        return issues
