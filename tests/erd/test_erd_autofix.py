"""
Auto-Fix Engine Unit Tests.

Tests for fix planning, previews and phased application, including
junction synthesis, key reconciliation and idempotence.
"""

import pytest
import sys
import os

# Add src to path
src_dir = os.path.join(os.path.dirname(__file__), '..', '..', 'src')
if src_dir not in sys.path:
    sys.path.insert(0, src_dir)

from formats.erd.erd_autofix import FIX_ORDER, AutoFixEngine
from formats.erd.erd_models import Cardinality
from formats.erd.erd_validator import FIXABLE_KINDS, ErdValidator
from shared.models.validation import IssueKind

from . import (
    CRM_ERD,
    CYCLE_ERD,
    DUPLICATE_RELATIONSHIP_ERD,
    KEYS_ERD,
    LONG_PARENT_ERD,
    MANY_TO_MANY_ERD,
    NAMING_ERD,
    NO_PRIMARY_KEY_ERD,
    RESERVED_COLUMNS_ERD,
    SELF_REFERENCE_ERD,
)


@pytest.mark.unit
class TestFixOrder:
    """Phase ordering."""

    def test_fix_order_covers_fixable_kinds(self):
        assert set(FIX_ORDER) == set(FIXABLE_KINDS)

    def test_structural_fixes_before_foreign_keys(self):
        assert FIX_ORDER.index(IssueKind.MISSING_ENTITY) == 0
        assert FIX_ORDER[-1] == IssueKind.MISSING_FOREIGN_KEY
        assert FIX_ORDER.index(IssueKind.MISSING_PRIMARY_KEY) < FIX_ORDER.index(
            IssueKind.MANY_TO_MANY_DETECTED
        )


@pytest.mark.unit
class TestPreview:
    """Previews never change the model."""

    def test_preview_descriptions(self, build_model):
        model = build_model(NO_PRIMARY_KEY_ERD)
        issues = ErdValidator().validate(model).issues
        fixes = AutoFixEngine().preview(model, issues)

        assert [f.description for f in fixes] == [
            "Rename column 'name' in 'CUSTOMER' to 'customer_name'",
            "Add primary key 'guid id PK' to 'CUSTOMER'",
        ]
        assert [f.issue_id for f in fixes] == [i.issue_id for i in issues]
        assert model.get_entity("CUSTOMER").primary_key is None

    def test_preview_skips_non_fixable(self, build_model):
        model = build_model(CYCLE_ERD)
        issues = ErdValidator().validate(model).issues
        assert AutoFixEngine().preview(model, issues) == []

    def test_annotate_sets_fix_preview(self, build_model):
        model = build_model(NO_PRIMARY_KEY_ERD)
        engine = AutoFixEngine()
        annotated = engine.annotate(model, ErdValidator().validate(model))

        assert all(issue.fix_preview for issue in annotated.issues)
        assert annotated.issues[1].fix_preview == "Add primary key 'guid id PK' to 'CUSTOMER'"

    def test_promote_preview(self, build_model):
        model = build_model(KEYS_ERD)
        issue = ErdValidator().validate(model).by_kind(IssueKind.MISSING_PRIMARY_KEY)[0]
        fix = AutoFixEngine().plan_fix(model, issue)
        assert fix.description == "Mark existing column 'id' in 'PROMOTE' as primary key"

    def test_to_dict(self, build_model):
        model = build_model(NO_PRIMARY_KEY_ERD)
        issue = ErdValidator().validate(model).issues[1]
        assert AutoFixEngine().plan_fix(model, issue).to_dict() == {
            "issueId": "missing_primary_key:CUSTOMER",
            "kind": "missing_primary_key",
            "description": "Add primary key 'guid id PK' to 'CUSTOMER'",
        }


@pytest.mark.unit
class TestEntityFixes:
    """Entity and key fixes."""

    def test_missing_primary_key_and_name_conflict(self, build_model):
        result = AutoFixEngine().fix(build_model(NO_PRIMARY_KEY_ERD))
        customer = result.model.get_entity("CUSTOMER")

        assert customer.attribute_names() == ["id", "customer_name"]
        assert customer.primary_key.name == "id"
        assert customer.primary_key.data_type == "guid"
        assert [f.kind for f in result.applied] == [
            IssueKind.NAME_COLUMN_CONFLICT, IssueKind.MISSING_PRIMARY_KEY
        ]
        assert [f.issue_id for f in result.applied] == [
            "name_column_conflict:CUSTOMER.name", "missing_primary_key:CUSTOMER"
        ]
        assert result.validation.issues == []
        assert result.passes == 2

    def test_stub_entities(self, build_model):
        result = AutoFixEngine().fix(build_model(MANY_TO_MANY_ERD))
        student = result.model.get_entity("STUDENT")

        assert student.is_stub
        assert student.attribute_names() == ["id"]
        assert student.primary_key.is_primary_key

    def test_merge_duplicate_entities(self, build_model):
        model = build_model("erDiagram\n A { guid id PK }\n a { string title }")
        result = AutoFixEngine().fix(model)

        assert result.model.entity_names == ["A"]
        assert result.model.get_entity("A").attribute_names() == ["id", "title"]

    def test_demote_extra_primary_keys(self, build_model):
        result = AutoFixEngine().fix(build_model(KEYS_ERD))
        multi = result.model.get_entity("MULTI")

        assert [a.name for a in multi.primary_keys] == ["a"]
        assert multi.get_attribute("b").is_unique

    def test_promote_existing_id(self, build_model):
        result = AutoFixEngine().fix(build_model(KEYS_ERD))
        promote = result.model.get_entity("PROMOTE")

        assert promote.attribute_names() == ["id", "title"]
        assert promote.primary_key.name == "id"
        assert promote.primary_key.data_type == "integer"

    def test_merge_duplicate_columns(self, build_model):
        result = AutoFixEngine().fix(build_model(KEYS_ERD))
        dupcols = result.model.get_entity("DUPCOLS")

        assert dupcols.attribute_names() == ["id", "title"]
        title = dupcols.get_attribute("title")
        assert title.is_unique
        assert title.description == "Shown in lists"
        assert title.line == 13

    def test_reserved_columns(self, build_model):
        result = AutoFixEngine().fix(build_model(RESERVED_COLUMNS_ERD))
        account = result.model.get_entity("ACCOUNT")

        assert account.attribute_names() == ["id", "account_statecode", "kind"]
        assert account.get_attribute("kind").data_type == "string"
        assert result.validation.issues == []

    def test_rename_invalid_names(self, build_model):
        result = AutoFixEngine().fix(build_model(NAMING_ERD))
        model = result.model

        assert model.entity_names == ["my_entity", "B"]
        assert model.get_entity("my_entity").attribute_names() == ["id", "first_name"]
        assert model.relationships[0].source == "my_entity"
        assert model.get_entity("B").get_attribute("my_entity_id").is_foreign_key
        assert result.validation.issues == []

    def test_truncate_long_entity_name(self, build_model):
        model = build_model("erDiagram\n {} {{ guid id PK }}".format("E" * 60))
        result = AutoFixEngine().fix(model)
        assert result.model.entity_names == ["E" * 50]


@pytest.mark.unit
class TestRelationshipFixes:
    """Relationship fixes."""

    def test_junction_synthesis(self, build_model):
        result = AutoFixEngine().fix(build_model(MANY_TO_MANY_ERD))
        model = result.model

        assert model.entity_names == ["STUDENT", "COURSE", "STUDENT_COURSE"]
        junction = model.get_entity("STUDENT_COURSE")
        assert junction.is_junction
        assert junction.attribute_names() == ["id", "student_id", "course_id"]
        assert junction.primary_key.name == "id"
        assert [a.name for a in junction.foreign_keys] == ["student_id", "course_id"]

        assert [r.id for r in model.relationships] == ["rel_1.a", "rel_1.b"]
        for relationship in model.relationships:
            assert relationship.cardinality == Cardinality.ONE_TO_MANY
            assert relationship.target == "STUDENT_COURSE"
            assert relationship.label == "enrolled_in"
        assert result.validation.issues == []

    def test_junction_name_is_unique(self, build_model):
        model = build_model("erDiagram\n STUDENT_COURSE { guid id PK }\n STUDENT }o--o{ COURSE : x")
        result = AutoFixEngine().fix(model)
        assert "STUDENT_COURSE_2" in result.model.entity_names

    def test_junction_keys_follow_side_key_types(self, build_model):
        model = build_model("erDiagram\n A { int code PK }\n B { guid id PK }\n A }o--o{ B : links")
        junction = AutoFixEngine().fix(model).model.get_entity("A_B")

        assert junction.get_attribute("a_id").data_type == "integer"
        assert junction.get_attribute("b_id").data_type == "guid"

    def test_junction_replaces_relationship_in_place(self, build_model):
        result = AutoFixEngine().fix(build_model(CRM_ERD))
        assert [r.id for r in result.model.relationships] == ["rel_1", "rel_2.a", "rel_2.b"]

    def test_drop_duplicate_relationship(self, build_model):
        result = AutoFixEngine().fix(build_model(DUPLICATE_RELATIONSHIP_ERD))

        assert [r.id for r in result.model.relationships] == ["rel_1"]
        assert [f.issue_id for f in result.applied] == ["duplicate_relationship:rel_2"]

    def test_drop_self_reference(self, build_model):
        result = AutoFixEngine().fix(build_model(SELF_REFERENCE_ERD))
        assert result.model.relationships == ()
        assert result.model.get_entity("EMPLOYEE").get_attribute("manager_id") is not None

    def test_add_missing_foreign_key(self, build_model):
        model = build_model("erDiagram\n A { guid id PK }\n B { guid id PK }\n A ||--o{ B : has")
        b = AutoFixEngine().fix(model).model.get_entity("B")

        fk = b.get_attribute("a_id")
        assert fk.is_foreign_key
        assert fk.data_type == "guid"
        assert fk.description == "Foreign key to A"
        assert b.attribute_names() == ["id", "a_id"]

    def test_flag_existing_foreign_key_column(self, build_model):
        model = build_model("erDiagram\n A { guid id PK }\n B { guid id PK; guid a_id }\n A ||--o{ B : has")
        b = AutoFixEngine().fix(model).model.get_entity("B")
        assert b.attribute_names() == ["id", "a_id"]
        assert b.get_attribute("a_id").is_foreign_key

    def test_long_parent_foreign_key_keeps_suffix(self, build_model):
        model = AutoFixEngine().fix(build_model(LONG_PARENT_ERD)).model
        c = model.get_entity("C")

        fk = c.attributes[-1]
        assert fk.name == "p" * 47 + "_id"
        assert fk.is_foreign_key
        final = ErdValidator().validate(model)
        assert not final.has_kind(IssueKind.FOREIGN_KEY_NAMING)
        assert not final.has_kind(IssueKind.MISSING_FOREIGN_KEY)


@pytest.mark.unit
class TestEngine:
    """Engine behaviour across runs."""

    def test_input_model_unchanged(self, build_model):
        model = build_model(NO_PRIMARY_KEY_ERD)
        AutoFixEngine().fix(model)
        assert model.get_entity("CUSTOMER").attribute_names() == ["name"]

    @pytest.mark.parametrize("text", [
        NO_PRIMARY_KEY_ERD, MANY_TO_MANY_ERD, CRM_ERD, KEYS_ERD, NAMING_ERD, RESERVED_COLUMNS_ERD,
    ])
    def test_fix_is_idempotent(self, build_model, text):
        engine = AutoFixEngine()
        first = engine.fix(build_model(text))
        second = engine.fix(first.model)

        assert second.applied == []
        assert second.model == first.model
        assert first.is_idempotent

    def test_restrict_kinds(self, build_model):
        result = AutoFixEngine().fix(
            build_model(NO_PRIMARY_KEY_ERD), kinds=[IssueKind.MISSING_PRIMARY_KEY]
        )
        customer = result.model.get_entity("CUSTOMER")

        assert customer.attribute_names() == ["id", "name"]
        assert result.validation.has_kind(IssueKind.NAME_COLUMN_CONFLICT)
        assert result.unresolved_kinds == []

    def test_non_fixable_kinds_ignored(self, build_model):
        result = AutoFixEngine().fix(build_model(CYCLE_ERD), kinds=[IssueKind.CIRCULAR_DEPENDENCY])
        assert result.applied == []
        assert result.validation.has_kind(IssueKind.CIRCULAR_DEPENDENCY)

    def test_no_many_to_many_after_fix(self, build_model):
        result = AutoFixEngine().fix(build_model(CRM_ERD))
        assert not any(r.is_many_to_many for r in result.model.relationships)

    def test_every_entity_has_primary_key_after_fix(self, build_model):
        text = "erDiagram\n A { string title }\n B { int id }\n A ||--o{ C : has\n C }o--o{ D : links"
        result = AutoFixEngine().fix(build_model(text))
        assert all(e.has_primary_key for e in result.model.entities)

    def test_to_dict(self, build_model):
        result = AutoFixEngine().fix(build_model(DUPLICATE_RELATIONSHIP_ERD))
        assert result.to_dict() == {
            "applied": [{
                "issueId": "duplicate_relationship:rel_2",
                "kind": "duplicate_relationship",
                "description": "Remove duplicate relationship rel_2 'A ||--o{ B : \"has\"'",
            }],
            "passes": 2,
        }
