"""
CLI command implementations.

This package contains:
- base.py: BaseCommand (config, logging, batch loop, exit codes)
- unified/: one module per subcommand
    - validate.py: ValidateCommand
    - compile.py: CompileCommand
    - match.py: MatchCommand
"""

from .base import (
    BaseCommand,
    exit_code_for_error,
)

from .unified import (
    ValidateCommand,
    CompileCommand,
    MatchCommand,
)


__all__ = [
    # Base
    'BaseCommand',
    'exit_code_for_error',
    # Commands
    'ValidateCommand',
    'CompileCommand',
    'MatchCommand',
]
