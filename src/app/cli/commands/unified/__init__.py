"""
Compiler CLI command implementations.

Commands:
    - ValidateCommand: issues and fix previews, nothing applied
    - CompileCommand: full pipeline with export documents
    - MatchCommand: advisory standard-entity suggestions
"""

from .validate import ValidateCommand
from .compile import CompileCommand
from .match import MatchCommand

__all__ = [
    'ValidateCommand',
    'CompileCommand',
    'MatchCommand',
]
