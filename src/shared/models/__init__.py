"""
Shared data models for the ERD compiler.

This module contains the issue taxonomy and validation result containers
used by the validator, the auto-fix engine, the exporter and the pipeline.

Usage:
    from shared.models import IssueKind, Severity, ValidationResult

    # Or import specific classes
    from shared.models.validation import ValidationIssue
"""

from .validation import (
    IssueKind,
    Severity,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    "IssueKind",
    "Severity",
    "ValidationIssue",
    "ValidationResult",
]
