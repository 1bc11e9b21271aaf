"""
Schema Exporter Unit Tests.

Tests for target type mapping, the export document, option set reuse and
rendering a model back to ERD text.
"""

import pytest
import sys
import os

# Add src to path
src_dir = os.path.join(os.path.dirname(__file__), '..', '..', 'src')
if src_dir not in sys.path:
    sys.path.insert(0, src_dir)

from formats.erd.erd_autofix import AutoFixEngine
from formats.erd.erd_exporter import SchemaExporter, primary_name_attribute, render_erd
from formats.erd.erd_models import SemanticType
from formats.erd.erd_type_mapper import TARGET_TYPE_MAPPINGS, ErdTypeMapper, TargetType
from shared.models.validation import IssueKind

from . import CRM_ERD, MANY_TO_MANY_ERD, NO_PRIMARY_KEY_ERD, QUOTED_CHOICE_ERD


@pytest.fixture
def fixed_crm(build_model):
    return AutoFixEngine().fix(build_model(CRM_ERD)).model


# =============================================================================
# Type Mapping
# =============================================================================

@pytest.mark.unit
class TestErdTypeMapper:
    """Semantic to target type mapping."""

    def test_mapping_is_total(self):
        for semantic_type in SemanticType:
            assert semantic_type.value in TARGET_TYPE_MAPPINGS

    @pytest.mark.parametrize("semantic,target", [
        ("string", TargetType.SHORT_TEXT),
        ("memo", TargetType.MULTILINE_TEXT),
        ("integer", TargetType.WHOLE_NUMBER),
        ("decimal", TargetType.PRECISE_NUMBER),
        ("float", TargetType.FLOATING_POINT),
        ("money", TargetType.CURRENCY),
        ("boolean", TargetType.TWO_OPTION),
        ("datetime", TargetType.DATE_AND_TIME),
        ("date", TargetType.DATE_ONLY),
        ("guid", TargetType.UNIQUE_IDENTIFIER),
        ("email", TargetType.EMAIL),
        ("choice", TargetType.CHOICE),
        ("lookup", TargetType.LOOKUP),
    ])
    def test_map_type(self, semantic, target):
        result = ErdTypeMapper().map_type(semantic)
        assert result.target_type == target
        assert result.is_exact_match
        assert result.warning is None

    def test_case_insensitive(self):
        assert ErdTypeMapper().map_type("Boolean").target_type == TargetType.TWO_OPTION

    def test_unknown_type_falls_back(self):
        result = ErdTypeMapper().map_type("geography")
        assert result.target_type == TargetType.SHORT_TEXT
        assert not result.is_exact_match
        assert result.warning == "Unmapped type 'geography' defaulted to short text"

    def test_strict_mode_raises(self):
        with pytest.raises(ValueError, match="Unmapped type"):
            ErdTypeMapper(strict_mode=True).map_type("geography")

    def test_supported_types(self):
        mapper = ErdTypeMapper()
        assert mapper.is_supported_type("GUID")
        assert not mapper.is_supported_type("geography")
        assert "money" in mapper.get_supported_types()


# =============================================================================
# Export
# =============================================================================

@pytest.mark.unit
class TestSchemaExporter:
    """Export document construction."""

    def test_entities_in_model_order(self, fixed_crm):
        export = SchemaExporter().export(fixed_crm)
        assert [e.name for e in export.entities] == ["CUSTOMER", "ORDER", "PRODUCT", "ORDER_PRODUCT"]

    def test_entity_fields(self, fixed_crm):
        export = SchemaExporter().export(fixed_crm)
        customer = export.get_entity("CUSTOMER")

        assert customer.display_name == "Customer Account"
        assert customer.primary_key == "customer_id"
        assert customer.primary_name_attribute == "customer_name"
        assert [a.name for a in customer.attributes] == ["customer_id", "customer_name", "email", "state"]

    def test_attribute_types(self, fixed_crm):
        export = SchemaExporter().export(fixed_crm)
        order = export.get_entity("ORDER")
        types = {a.name: a.target_type for a in order.attributes}

        assert types == {
            "order_id": TargetType.UNIQUE_IDENTIFIER,
            "customer_id": TargetType.UNIQUE_IDENTIFIER,
            "total_amount": TargetType.CURRENCY,
            "order_date": TargetType.DATE_ONLY,
        }
        assert order.primary_name_attribute is None

    def test_primary_key_is_required(self, fixed_crm):
        customer = SchemaExporter().export(fixed_crm).get_entity("CUSTOMER")
        key = customer.attributes[0]
        assert key.is_primary_key
        assert key.is_required
        assert customer.attributes[2].is_unique

    def test_junction_flags(self, fixed_crm):
        junction = SchemaExporter().export(fixed_crm).get_entity("ORDER_PRODUCT")
        assert junction.is_junction
        assert junction.primary_key == "id"

    def test_relationships(self, fixed_crm):
        export = SchemaExporter().export(fixed_crm)
        summary = [
            (r.id, r.referenced_entity, r.referencing_entity, r.referencing_attribute)
            for r in export.relationships
        ]
        assert summary == [
            ("rel_1", "CUSTOMER", "ORDER", "customer_id"),
            ("rel_2.a", "ORDER", "ORDER_PRODUCT", "order_id"),
            ("rel_2.b", "PRODUCT", "ORDER_PRODUCT", "product_id"),
        ]
        assert export.relationships[0].label == "places"

    def test_option_sets(self, fixed_crm):
        export = SchemaExporter().export(fixed_crm)

        assert [o.name for o in export.option_sets] == ["customer_state"]
        assert export.option_sets[0].to_dict() == {
            "name": "customer_state",
            "options": [{"value": 1, "label": "active"}, {"value": 2, "label": "inactive"}],
        }
        state = export.get_entity("CUSTOMER").attributes[3]
        assert state.option_set == "customer_state"

    def test_known_option_set_reused(self, fixed_crm):
        known = {"status": ["Active", "Inactive"]}
        export = SchemaExporter(known_option_sets=known).export(fixed_crm)

        assert len(export.option_sets) == 1
        reused = export.option_sets[0]
        assert reused.name == "status"
        assert reused.is_existing
        assert reused.options == ("Active", "Inactive")
        assert export.get_entity("CUSTOMER").attributes[3].option_set == "status"
        assert known == {"status": ["Active", "Inactive"]}

    def test_option_order_matters_for_reuse(self, fixed_crm):
        export = SchemaExporter(known_option_sets={"status": ["inactive", "active"]}).export(fixed_crm)
        assert [o.name for o in export.option_sets] == ["customer_state"]

    def test_unmapped_type_warning(self, build_model):
        model = build_model("erDiagram\n SITE { guid id PK; geography area }")
        export = SchemaExporter().export(model)

        area = export.get_entity("SITE").attributes[1]
        assert area.target_type == TargetType.SHORT_TEXT
        assert area.semantic_type == "geography"
        warning = export.warnings.issues[0]
        assert warning.kind == IssueKind.UNMAPPED_TYPE
        assert warning.subject == "SITE.area"

    def test_many_to_many_not_exported(self, build_model):
        model = build_model(MANY_TO_MANY_ERD)
        export = SchemaExporter().export(model)

        assert export.relationships == []
        assert export.warnings.by_kind(IssueKind.MANY_TO_MANY_DETECTED)[0].subject == "rel_1"

    def test_to_dict(self, fixed_crm):
        data = SchemaExporter().export(fixed_crm).to_dict()

        assert set(data) == {"entities", "relationships", "optionSets"}
        assert data["relationships"][0] == {
            "id": "rel_1",
            "type": "one-to-many",
            "referencedEntity": "CUSTOMER",
            "referencingEntity": "ORDER",
            "referencingAttribute": "customer_id",
            "label": "places",
        }
        key = data["entities"][0]["attributes"][0]
        assert key == {
            "name": "customer_id",
            "displayName": "Customer Id",
            "type": "unique identifier",
            "semanticType": "guid",
            "isPrimaryKey": True,
            "isRequired": True,
        }

    def test_export_is_deterministic(self, fixed_crm):
        assert SchemaExporter().export(fixed_crm).to_dict() == SchemaExporter().export(fixed_crm).to_dict()

    def test_primary_name_attribute_skips_keys(self, build_model):
        model = build_model("erDiagram\n A { string code PK; string parent_id FK; int size; string label }")
        assert primary_name_attribute(model.get_entity("A")) == "label"


# =============================================================================
# ERD Rendering
# =============================================================================

@pytest.mark.unit
class TestRenderErd:
    """Rendering models back to ERD text."""

    def test_render_fixed_model(self, build_model):
        model = AutoFixEngine().fix(build_model(NO_PRIMARY_KEY_ERD)).model
        assert render_erd(model) == (
            "erDiagram\n"
            "    CUSTOMER {\n"
            '        guid id PK "Primary key"\n'
            "        string customer_name\n"
            "    }\n"
        )

    def test_render_choice_display_name_and_relationships(self, fixed_crm):
        text = render_erd(fixed_crm)

        assert '    CUSTOMER["Customer Account"] {' in text
        assert "        choice(active,inactive) state" in text
        assert '        string customer_name "Legal name"' in text
        assert '    CUSTOMER ||--o{ ORDER : "places"' in text
        assert '    ORDER ||--o{ ORDER_PRODUCT : "contains"' in text

    def test_render_parses_back(self, build_model, fixed_crm):
        reparsed = build_model(render_erd(fixed_crm))

        assert reparsed.entity_names == fixed_crm.entity_names
        for original, parsed in zip(fixed_crm.entities, reparsed.entities):
            assert [(a.name, a.data_type, a.constraints) for a in parsed.attributes] == [
                (a.name, a.data_type, a.constraints) for a in original.attributes
            ]
        assert [r.notation for r in reparsed.relationships] == [
            r.notation for r in fixed_crm.relationships
        ]

    def test_render_quotes_options_with_spaces(self, build_model):
        model = build_model(QUOTED_CHOICE_ERD)
        text = render_erd(model)

        assert '        choice(open,"on hold",closed) state "Workflow state"' in text
        state = build_model(text).get_entity("TICKET").get_attribute("state")
        assert state.options == ("open", "on hold", "closed")
