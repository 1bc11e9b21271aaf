"""
Centralized validation utilities for the ERD compiler.

This package provides validators organized by concern:
- input.py: ERD content and file path validation with security checks

Usage:
    from core.validators import InputValidator

    content = InputValidator.validate_erd_content(raw)
"""

from .input import InputValidator

__all__ = [
    'InputValidator',
]
