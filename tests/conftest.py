"""
Pytest configuration and fixtures for the test suite.

Defines markers for selective test execution:
    pytest -m unit          # Fast unit tests
    pytest -m integration   # Full pipeline and CLI tests
    pytest -m samples       # Tests over the sample ERD documents

ERD fixtures live in tests/erd/__init__.py for reuse across test modules.
"""

import json
import os
import sys

import pytest

# Add src to path for imports
src_dir = os.path.join(os.path.dirname(__file__), '..', 'src')
if src_dir not in sys.path:
    sys.path.insert(0, src_dir)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "integration: Full pipeline and CLI tests")
    config.addinivalue_line("markers", "samples: Tests over the sample ERD documents")


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def write_erd(tmp_path):
    """Write ERD text to a file under tmp_path and return its path."""
    def _write(content: str, name: str = "model.mmd"):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def write_config(tmp_path):
    """Write a JSON config file under tmp_path and return its path."""
    def _write(config: dict, name: str = "config.json"):
        path = tmp_path / name
        path.write_text(json.dumps(config), encoding="utf-8")
        return path
    return _write
