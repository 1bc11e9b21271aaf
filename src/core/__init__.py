"""
Core services and cross-cutting concerns for the ERD compiler.

This module provides shared infrastructure used by the command line and by
library callers:

- Compilation pipeline and state machine (ErdCompiler, PipelineState)
- Input validation (InputValidator)

Usage:
    from core import ErdCompiler, InputValidator
    from core.services.pipeline import PipelineStateError
"""

from .validators import InputValidator

from .services import (
    CompilationResult,
    ErdCompiler,
    PipelineState,
    PipelineStateError,
    PipelineStats,
)

__all__ = [
    # Input validation
    "InputValidator",
    # Pipeline
    "CompilationResult",
    "ErdCompiler",
    "PipelineState",
    "PipelineStateError",
    "PipelineStats",
]
