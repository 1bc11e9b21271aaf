"""
Validation result models.

This module defines the issue taxonomy and result containers shared by the
ERD validation engine, the auto-fix engine and the schema exporter.

Models:
- Severity: error / warning / info
- IssueKind: closed taxonomy of issue kinds
- ValidationIssue: a single severity-tagged finding
- ValidationResult: ordered issue list with counts and summary helpers

Usage:
    from shared.models.validation import Severity, IssueKind, ValidationResult

    result = ValidationResult()
    result.add_issue(
        kind=IssueKind.MISSING_PRIMARY_KEY,
        severity=Severity.ERROR,
        subject="CUSTOMER",
        message="Entity 'CUSTOMER' has no primary key.",
        auto_fixable=True,
    )
    print(result.summary())
"""

from collections import Counter
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


class Severity(str, Enum):
    """Severity of a validation issue."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueKind(str, Enum):
    """
    Closed taxonomy of issue kinds.

    Values are the stable identifiers used in reports and JSON output.
    """
    # Parsing
    SYNTAX_ERROR = "syntax_error"

    # Entity structure
    MISSING_ENTITY = "missing_entity"
    DUPLICATE_ENTITY = "duplicate_entity"
    EMPTY_ENTITY = "empty_entity"
    DUPLICATE_COLUMNS = "duplicate_columns"
    MULTIPLE_PRIMARY_KEYS = "multiple_primary_keys"
    MISSING_PRIMARY_KEY = "missing_primary_key"

    # Naming
    INVALID_NAME = "invalid_name"
    NAME_TOO_LONG = "name_too_long"
    RESERVED_ENTITY_NAME = "reserved_entity_name"
    NAME_COLUMN_CONFLICT = "name_column_conflict"
    FOREIGN_KEY_NAMING = "foreign_key_naming"

    # Platform-reserved / auto-applied
    RESERVED_ATTRIBUTE_NAME = "reserved_attribute_name"
    SYSTEM_FIELD_IGNORED = "system_field_ignored"
    STATUS_COLUMN_IGNORED = "status_column_ignored"
    CHOICE_COLUMN_DOWNGRADED = "choice_column_downgraded"

    # Relationships
    SELF_REFERENCING_RELATIONSHIP = "self_referencing_relationship"
    DUPLICATE_RELATIONSHIP = "duplicate_relationship"
    MANY_TO_MANY_DETECTED = "many_to_many_detected"
    MISSING_FOREIGN_KEY = "missing_foreign_key"
    ONE_TO_ONE_RELATIONSHIP = "one_to_one_relationship"
    CIRCULAR_DEPENDENCY = "circular_dependency"

    # Export
    UNMAPPED_TYPE = "unmapped_type"


@dataclass(frozen=True)
class ValidationIssue:
    """
    A single validation finding.

    Attributes:
        kind: Issue kind from the closed taxonomy.
        severity: Error, warning or info.
        subject: Reference to the offending element (entity name,
            ``Entity.attribute`` or relationship id).
        message: Human-readable description.
        auto_fixable: Whether the auto-fix engine can resolve it.
        entity: Owning entity name, if any.
        attribute: Attribute name, if any.
        relationship_id: Relationship id, if any.
        line: 1-based source line, if known.
        suggestion: Hint for a manual fix.
        fix_preview: Description of the change auto-fix would apply.
        issue_id: Deterministic identifier assigned by ValidationResult.
    """
    kind: IssueKind
    severity: Severity
    subject: str
    message: str
    auto_fixable: bool = False
    entity: Optional[str] = None
    attribute: Optional[str] = None
    relationship_id: Optional[str] = None
    line: Optional[int] = None
    suggestion: Optional[str] = None
    fix_preview: Optional[str] = None
    issue_id: str = ""

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        result: Dict[str, Any] = {
            "id": self.issue_id,
            "kind": self.kind.value,
            "severity": self.severity.value,
            "subject": self.subject,
            "message": self.message,
            "autoFixable": self.auto_fixable,
        }
        if self.entity:
            result["entity"] = self.entity
        if self.attribute:
            result["attribute"] = self.attribute
        if self.relationship_id:
            result["relationshipId"] = self.relationship_id
        if self.line is not None:
            result["line"] = self.line
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.fix_preview:
            result["fixPreview"] = self.fix_preview
        return result


@dataclass
class ValidationResult:
    """
    Ordered collection of validation issues.

    Issue ids are derived from kind and subject, with an ordinal suffix for
    repeats, so identical input always yields identical ids.
    """
    issues: List[ValidationIssue] = field(default_factory=list)
    strict_mode: bool = False
    rule_catalog_version: Optional[str] = None
    _id_counts: Counter = field(default_factory=Counter, repr=False)

    def add(self, issue: ValidationIssue) -> ValidationIssue:
        """Append an issue, assigning its deterministic id."""
        base_id = f"{issue.kind.value}:{issue.subject}"
        self._id_counts[base_id] += 1
        count = self._id_counts[base_id]
        issue_id = base_id if count == 1 else f"{base_id}#{count}"
        issue = replace(issue, issue_id=issue_id)
        self.issues.append(issue)
        return issue

    def add_issue(
        self,
        kind: IssueKind,
        severity: Severity,
        subject: str,
        message: str,
        **kwargs: Any,
    ) -> ValidationIssue:
        """Build and append an issue."""
        return self.add(ValidationIssue(
            kind=kind, severity=severity, subject=subject, message=message, **kwargs
        ))

    def extend(self, issues: Iterable[ValidationIssue]) -> None:
        for issue in issues:
            self.add(issue)

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    @property
    def infos(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.INFO]

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    @property
    def info_count(self) -> int:
        return len(self.infos)

    @property
    def fixable(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.auto_fixable]

    @property
    def is_valid(self) -> bool:
        """True when there are no errors (or no warnings either, in strict mode)."""
        if self.strict_mode:
            return self.error_count == 0 and self.warning_count == 0
        return self.error_count == 0

    @property
    def status(self) -> str:
        """Overall status: ``error``, ``warning`` or ``success``."""
        if self.error_count:
            return "error"
        if self.warning_count:
            return "warning"
        return "success"

    def by_kind(self, kind: IssueKind) -> List[ValidationIssue]:
        return [i for i in self.issues if i.kind == kind]

    def kinds(self) -> List[IssueKind]:
        """Distinct issue kinds in first-seen order."""
        seen: List[IssueKind] = []
        for issue in self.issues:
            if issue.kind not in seen:
                seen.append(issue.kind)
        return seen

    def has_kind(self, kind: IssueKind) -> bool:
        return any(i.kind == kind for i in self.issues)

    def summary(self) -> Dict[str, Any]:
        """Compact summary of the result."""
        return {
            "isValid": self.is_valid,
            "status": self.status,
            "total": len(self.issues),
            "errors": self.error_count,
            "warnings": self.warning_count,
            "info": self.info_count,
            "autoFixable": len(self.fixable),
        }

    def get_human_readable_summary(self) -> str:
        """Multi-line report for console output."""
        lines = [
            f"Validation status: {self.status.upper()}",
            f"  Errors: {self.error_count}  Warnings: {self.warning_count}  "
            f"Info: {self.info_count}  Auto-fixable: {len(self.fixable)}",
        ]
        for issue in self.issues:
            location = f" (line {issue.line})" if issue.line is not None else ""
            lines.append(
                f"  [{issue.severity.value.upper()}] {issue.kind.value}{location}: {issue.message}"
            )
            if issue.fix_preview:
                lines.append(f"      fix: {issue.fix_preview}")
            elif issue.suggestion:
                lines.append(f"      hint: {issue.suggestion}")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        result: Dict[str, Any] = {
            "summary": self.summary(),
            "issues": [issue.to_dict() for issue in self.issues],
        }
        if self.rule_catalog_version:
            result["ruleCatalogVersion"] = self.rule_catalog_version
        return result
