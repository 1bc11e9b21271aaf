"""
ERD (Entity-Relationship Diagram) Compiler Module

This module compiles Mermaid ``erDiagram`` text into a validated, corrected
and exportable schema for a metadata-driven relational platform.

Key Components:
- erd_parser: Tokenize ERD text with per-block error recovery
- erd_builder: Build typed entities and attributes (type inference)
- erd_resolver: Classify relationships and analyse the relationship graph
- erd_validator: Versioned rule catalog producing severity-tagged issues
- erd_autofix: Phased, previewable fixes for fixable issues
- cdm_catalog / cdm_matcher: Fuzzy matching against standard entities
- erd_type_mapper / erd_exporter: Target type mapping, export and rendering

Usage:
    from formats.erd import ErdParser, EntityModelBuilder, RelationshipResolver, ErdValidator

    parse_result = ErdParser().parse(text)
    model = EntityModelBuilder().build(parse_result)
    model = RelationshipResolver().resolve(model, parse_result.relationships)
    result = ErdValidator().validate(model, parse_result.syntax_errors)
"""

from .erd_models import (
    Attribute,
    Cardinality,
    Entity,
    OptionSet,
    Relationship,
    SchemaModel,
    SemanticType,
)

from .erd_parser import ErdParseError, ErdParser, ParseResult

from .erd_builder import EntityModelBuilder, infer_semantic_type

from .erd_resolver import RelationshipResolver, classify_cardinality

from .erd_validator import RULE_CATALOG, RULE_CATALOG_VERSION, ErdValidator

from .erd_autofix import FIX_ORDER, AutoFix, AutoFixEngine, FixResult

from .cdm_catalog import DEFAULT_CATALOG, StandardEntity

from .cdm_matcher import MatchReport, StandardEntityMatch, StandardEntityMatcher

from .erd_type_mapper import TARGET_TYPE_MAPPINGS, ErdTypeMapper, TargetType

from .erd_exporter import SchemaExport, SchemaExporter, render_erd

__all__ = [
    # Models
    'Attribute',
    'Cardinality',
    'Entity',
    'OptionSet',
    'Relationship',
    'SchemaModel',
    'SemanticType',
    # Parsing and building
    'ErdParseError',
    'ErdParser',
    'ParseResult',
    'EntityModelBuilder',
    'infer_semantic_type',
    'RelationshipResolver',
    'classify_cardinality',
    # Validation and fixing
    'RULE_CATALOG',
    'RULE_CATALOG_VERSION',
    'ErdValidator',
    'FIX_ORDER',
    'AutoFix',
    'AutoFixEngine',
    'FixResult',
    # Standard entities
    'DEFAULT_CATALOG',
    'StandardEntity',
    'MatchReport',
    'StandardEntityMatch',
    'StandardEntityMatcher',
    # Export
    'TARGET_TYPE_MAPPINGS',
    'ErdTypeMapper',
    'TargetType',
    'SchemaExport',
    'SchemaExporter',
    'render_erd',
]
