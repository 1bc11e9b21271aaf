"""
ERD test configuration and shared fixtures.
"""

import pytest
import sys
import os

# Ensure src is in path
src_dir = os.path.join(os.path.dirname(__file__), '..', '..', 'src')
if src_dir not in sys.path:
    sys.path.insert(0, src_dir)

from formats.erd import EntityModelBuilder, ErdParser, RelationshipResolver

# Import fixtures from __init__.py
from . import (
    no_primary_key_erd,
    many_to_many_erd,
    contact_erd,
    duplicate_relationship_erd,
    crm_erd,
    malformed_erd,
)


@pytest.fixture
def build_model():
    """Parse, build and resolve ERD text into a SchemaModel."""
    def _build(text: str):
        parse_result = ErdParser().parse(text)
        model = EntityModelBuilder().build(parse_result)
        return RelationshipResolver().resolve(model, parse_result.relationships)
    return _build


# Re-export fixtures
__all__ = [
    'no_primary_key_erd',
    'many_to_many_erd',
    'contact_erd',
    'duplicate_relationship_erd',
    'crm_erd',
    'malformed_erd',
    'build_model',
]
