"""
ERD Validator Unit Tests.

Tests for the rule catalog: entity structure, naming, platform-reserved
names and relationship rules, plus result ordering and ids.
"""

import pytest
import sys
import os

# Add src to path
src_dir = os.path.join(os.path.dirname(__file__), '..', '..', 'src')
if src_dir not in sys.path:
    sys.path.insert(0, src_dir)

from formats.erd import EntityModelBuilder, RelationshipResolver
from formats.erd.erd_parser import ErdParser
from formats.erd.erd_validator import (
    FIXABLE_KINDS,
    KIND_SEVERITY,
    RULE_CATALOG,
    RULE_CATALOG_VERSION,
    ErdValidator,
)
from shared.models.validation import IssueKind, Severity

from . import (
    CRM_ERD,
    CYCLE_ERD,
    DUPLICATE_RELATIONSHIP_ERD,
    KEYS_ERD,
    MALFORMED_ERD,
    MANY_TO_MANY_ERD,
    NAMING_ERD,
    NO_PRIMARY_KEY_ERD,
    RESERVED_COLUMNS_ERD,
    SELF_REFERENCE_ERD,
    chain_erd,
)


def kinds_of(result):
    return [issue.kind for issue in result.issues]


@pytest.mark.unit
class TestCatalog:
    """Rule catalog shape."""

    def test_every_kind_has_a_severity(self):
        assert set(KIND_SEVERITY) == set(IssueKind)

    def test_catalog_version(self):
        assert RULE_CATALOG_VERSION == "1.0"

    def test_non_fixable_kinds(self):
        for kind in (
            IssueKind.EMPTY_ENTITY,
            IssueKind.RESERVED_ENTITY_NAME,
            IssueKind.FOREIGN_KEY_NAMING,
            IssueKind.ONE_TO_ONE_RELATIONSHIP,
            IssueKind.CIRCULAR_DEPENDENCY,
            IssueKind.SYNTAX_ERROR,
        ):
            assert kind not in FIXABLE_KINDS

    def test_catalog_kinds_are_distinct(self):
        kinds = [rule.kind for rule in RULE_CATALOG]
        assert len(kinds) == len(set(kinds))


@pytest.mark.unit
class TestEntityRules:
    """Entity structure rules."""

    def test_missing_primary_key_and_name_conflict(self, build_model):
        result = ErdValidator().validate(build_model(NO_PRIMARY_KEY_ERD))

        assert kinds_of(result) == [IssueKind.NAME_COLUMN_CONFLICT, IssueKind.MISSING_PRIMARY_KEY]
        conflict, missing = result.issues
        assert conflict.subject == "CUSTOMER.name"
        assert conflict.severity == Severity.WARNING
        assert conflict.suggestion == "Rename to 'customer_name'."
        assert missing.subject == "CUSTOMER"
        assert missing.severity == Severity.ERROR
        assert missing.auto_fixable
        assert not result.is_valid

    def test_missing_entities(self, build_model):
        result = ErdValidator().validate(build_model(MANY_TO_MANY_ERD))
        missing = result.by_kind(IssueKind.MISSING_ENTITY)

        assert [i.subject for i in missing] == ["STUDENT", "COURSE"]
        assert missing[0].relationship_id == "rel_1"

    def test_duplicate_entity(self, build_model):
        model = build_model("erDiagram\n A { guid id PK }\n a { string title }")
        issues = ErdValidator().validate(model).by_kind(IssueKind.DUPLICATE_ENTITY)
        assert [i.subject for i in issues] == ["a"]
        assert issues[0].suggestion == "Merge the declarations into 'A'."

    def test_empty_entity(self, build_model):
        model = build_model("erDiagram\n    EMPTY {\n    }\n")
        issue = ErdValidator().validate(model).by_kind(IssueKind.EMPTY_ENTITY)[0]
        assert issue.severity == Severity.ERROR
        assert not issue.auto_fixable

    def test_deep_parent_chain(self, build_model):
        result = ErdValidator().validate(build_model(chain_erd(1200)))

        assert not result.has_kind(IssueKind.CIRCULAR_DEPENDENCY)
        assert not result.has_kind(IssueKind.MISSING_FOREIGN_KEY)
        assert result.is_valid

    def test_cycle_through_deep_chain(self, build_model):
        model = build_model(chain_erd(1200) + "    E1199 ||--o{ E0 : closes\n")
        issue = ErdValidator().validate(model).by_kind(IssueKind.CIRCULAR_DEPENDENCY)[0]
        assert issue.subject.startswith("E1199 -> E1198 -> ")
        assert issue.subject.endswith("E0 -> E1199")

    def test_multiple_primary_keys(self, build_model):
        result = ErdValidator().validate(build_model(KEYS_ERD))
        issue = result.by_kind(IssueKind.MULTIPLE_PRIMARY_KEYS)[0]

        assert issue.subject == "MULTI"
        assert "a, b" in issue.message
        assert issue.suggestion == "Keep 'a' as the primary key."

    def test_duplicate_columns_case_insensitive(self, build_model):
        result = ErdValidator().validate(build_model(KEYS_ERD))
        issue = result.by_kind(IssueKind.DUPLICATE_COLUMNS)[0]

        assert issue.subject == "DUPCOLS.title"
        assert "2 times (title, Title)" in issue.message


@pytest.mark.unit
class TestNamingRules:
    """Naming rules."""

    def test_invalid_names(self, build_model):
        result = ErdValidator().validate(build_model(NAMING_ERD))
        invalid = result.by_kind(IssueKind.INVALID_NAME)

        assert [i.subject for i in invalid] == ["my-entity", "my-entity.first-name"]
        assert invalid[0].suggestion == "Rename to 'my_entity'."
        assert invalid[1].suggestion == "Rename to 'first_name'."

    def test_name_too_long(self, build_model):
        long_name = "E" * 60
        model = build_model(f"erDiagram\n {long_name} {{ guid id PK }}")
        issue = ErdValidator().validate(model).by_kind(IssueKind.NAME_TOO_LONG)[0]
        assert "60 characters (limit 50)" in issue.message

    def test_custom_length_limit(self, build_model):
        model = build_model("erDiagram\n ABCDEFGHIJ { guid id PK }")
        validator = ErdValidator(max_entity_name_length=5)
        assert validator.validate(model).has_kind(IssueKind.NAME_TOO_LONG)

    def test_reserved_entity_name(self, build_model):
        model = build_model("erDiagram\n User { guid id PK }")
        issue = ErdValidator().validate(model).by_kind(IssueKind.RESERVED_ENTITY_NAME)[0]
        assert issue.suggestion == "Use a more specific name such as 'CustomUser'."
        assert not issue.auto_fixable

    def test_caller_reserved_names(self, build_model):
        model = build_model("erDiagram\n Region { guid id PK; string territory }")
        validator = ErdValidator(reserved_names=["REGION", "Territory"])
        result = validator.validate(model)

        assert result.has_kind(IssueKind.RESERVED_ENTITY_NAME)
        assert [i.subject for i in result.by_kind(IssueKind.RESERVED_ATTRIBUTE_NAME)] == [
            "Region.territory"
        ]

    def test_foreign_key_naming_is_info(self, build_model):
        model = build_model(
            "erDiagram\n A { guid id PK }\n B { guid id PK; guid owner FK; lookup(A) parent FK }"
        )
        issues = ErdValidator().validate(model).by_kind(IssueKind.FOREIGN_KEY_NAMING)
        assert [i.subject for i in issues] == ["B.owner"]
        assert issues[0].severity == Severity.INFO


@pytest.mark.unit
class TestReservedRules:
    """Platform-reserved column rules."""

    def test_reserved_columns(self, build_model):
        result = ErdValidator().validate(build_model(RESERVED_COLUMNS_ERD))

        assert [i.subject for i in result.by_kind(IssueKind.SYSTEM_FIELD_IGNORED)] == [
            "ACCOUNT.createdon", "ACCOUNT.modifiedon"
        ]
        assert [i.subject for i in result.by_kind(IssueKind.STATUS_COLUMN_IGNORED)] == ["ACCOUNT.status"]
        assert [i.subject for i in result.by_kind(IssueKind.RESERVED_ATTRIBUTE_NAME)] == [
            "ACCOUNT.statecode"
        ]
        assert [i.subject for i in result.by_kind(IssueKind.CHOICE_COLUMN_DOWNGRADED)] == ["ACCOUNT.kind"]

    def test_reserved_columns_do_not_invalidate(self, build_model):
        result = ErdValidator().validate(build_model(RESERVED_COLUMNS_ERD))
        assert result.error_count == 0
        assert result.is_valid

    def test_reserved_attribute_suggestion(self, build_model):
        result = ErdValidator().validate(build_model(RESERVED_COLUMNS_ERD))
        issue = result.by_kind(IssueKind.RESERVED_ATTRIBUTE_NAME)[0]
        assert issue.suggestion == "Rename to 'account_statecode'."


@pytest.mark.unit
class TestRelationshipRules:
    """Relationship rules."""

    def test_duplicate_relationship_only(self, build_model):
        result = ErdValidator().validate(build_model(DUPLICATE_RELATIONSHIP_ERD))

        assert kinds_of(result) == [IssueKind.DUPLICATE_RELATIONSHIP]
        issue = result.issues[0]
        assert issue.subject == "rel_2"
        assert "duplicates rel_1 (line 9)" in issue.message

    def test_self_reference(self, build_model):
        result = ErdValidator().validate(build_model(SELF_REFERENCE_ERD))
        assert kinds_of(result) == [IssueKind.SELF_REFERENCING_RELATIONSHIP]

    def test_many_to_many(self, build_model):
        result = ErdValidator().validate(build_model(CRM_ERD))
        issue = result.by_kind(IssueKind.MANY_TO_MANY_DETECTED)[0]
        assert issue.subject == "rel_2"
        assert "ORDER_PRODUCT" in issue.suggestion

    def test_missing_foreign_key(self, build_model):
        model = build_model("erDiagram\n A { guid id PK }\n B { guid id PK }\n A ||--o{ B : has")
        issue = ErdValidator().validate(model).by_kind(IssueKind.MISSING_FOREIGN_KEY)[0]

        assert issue.entity == "B"
        assert issue.attribute == "a_id"
        assert issue.suggestion == "Add 'a_id FK' to 'B'."

    def test_unflagged_foreign_key_column(self, build_model):
        model = build_model("erDiagram\n A { guid id PK }\n B { guid id PK; guid a_id }\n A ||--o{ B : has")
        issue = ErdValidator().validate(model).by_kind(IssueKind.MISSING_FOREIGN_KEY)[0]
        assert "is not marked FK" in issue.message

    def test_lookup_satisfies_foreign_key(self, build_model):
        model = build_model(
            "erDiagram\n A { guid id PK }\n B { guid id PK; lookup(A) owner FK }\n A ||--o{ B : has"
        )
        assert not ErdValidator().validate(model).has_kind(IssueKind.MISSING_FOREIGN_KEY)

    def test_one_to_one_is_info(self, build_model):
        model = build_model(
            "erDiagram\n A { guid id PK }\n B { guid id PK; guid a_id FK }\n A ||--|| B : pairs"
        )
        result = ErdValidator().validate(model)
        assert kinds_of(result) == [IssueKind.ONE_TO_ONE_RELATIONSHIP]
        assert result.is_valid

    def test_circular_dependency(self, build_model):
        result = ErdValidator().validate(build_model(CYCLE_ERD))
        issue = result.by_kind(IssueKind.CIRCULAR_DEPENDENCY)[0]

        assert issue.subject == "A -> B -> C -> A"
        assert issue.severity == Severity.WARNING
        assert not issue.auto_fixable


@pytest.mark.unit
class TestValidationResult:
    """Result ordering, ids and modes."""

    def test_syntax_errors_reported_first(self, malformed_erd):
        parse_result = ErdParser().parse(malformed_erd)
        model = EntityModelBuilder().build(parse_result)
        model = RelationshipResolver().resolve(model, parse_result.relationships)

        result = ErdValidator().validate(model, parse_result.syntax_errors)

        assert kinds_of(result)[:3] == [
            IssueKind.SYNTAX_ERROR, IssueKind.SYNTAX_ERROR, IssueKind.MISSING_ENTITY
        ]
        assert result.issues[0].subject == "lines 6-9"
        assert result.issues[1].subject == "line 11"

    def test_issue_ids(self, build_model):
        result = ErdValidator().validate(build_model(NO_PRIMARY_KEY_ERD))
        assert [i.issue_id for i in result.issues] == [
            "name_column_conflict:CUSTOMER.name",
            "missing_primary_key:CUSTOMER",
        ]

    def test_repeated_subjects_get_ordinals(self, build_model):
        model = build_model("erDiagram\n A { guid id PK; string bad-name; string bad-name }")
        result = ErdValidator().validate(model)
        assert [i.issue_id for i in result.issues] == [
            "invalid_name:A.bad-name",
            "invalid_name:A.bad-name#2",
            "duplicate_columns:A.bad-name",
        ]

    def test_deterministic(self, build_model):
        first = ErdValidator().validate(build_model(CRM_ERD))
        second = ErdValidator().validate(build_model(CRM_ERD))
        assert first.to_dict() == second.to_dict()

    def test_strict_mode_fails_on_warnings(self, build_model):
        model = build_model(SELF_REFERENCE_ERD)
        assert ErdValidator().validate(model).is_valid
        assert not ErdValidator(strict_mode=True).validate(model).is_valid

    def test_check_runs_single_kind(self, build_model):
        model = build_model(NO_PRIMARY_KEY_ERD)
        issues = ErdValidator().check(model, IssueKind.MISSING_PRIMARY_KEY)
        assert [i.kind for i in issues] == [IssueKind.MISSING_PRIMARY_KEY]

    def test_summary(self, build_model):
        summary = ErdValidator().validate(build_model(NO_PRIMARY_KEY_ERD)).summary()
        assert summary == {
            "isValid": False,
            "status": "error",
            "total": 2,
            "errors": 1,
            "warnings": 1,
            "info": 0,
            "autoFixable": 2,
        }
