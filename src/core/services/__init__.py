"""
Runtime services for the ERD compiler.

This package provides:
- The compilation pipeline and its state machine
- Pipeline statistics
"""

from .pipeline import (
    # State
    ALLOWED_TRANSITIONS,
    PipelineState,
    PipelineStateError,
    PipelineStateMachine,
    # Results
    CompilationResult,
    PipelineStats,
    ReviewCallback,
    # Compiler
    ErdCompiler,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "PipelineState",
    "PipelineStateError",
    "PipelineStateMachine",
    "CompilationResult",
    "PipelineStats",
    "ReviewCallback",
    "ErdCompiler",
]
