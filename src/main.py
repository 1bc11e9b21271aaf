#!/usr/bin/env python3
"""
Mermaid ERD to Schema Compiler

This is the main entry point for validating and compiling Mermaid
``erDiagram`` documents into schema export documents.

Usage:
    python src/main.py validate <path> [--strict] [--format json]
    python src/main.py compile <path> [--output <out.json>] [--no-fix]
    python src/main.py match <path> [--threshold 0.5]

Exit codes follow constants.ExitCode.
"""

import os
import sys
from typing import Dict, List, Optional, Type

# Allow running as ``python src/main.py`` from the project root
_SRC_DIR = os.path.dirname(os.path.abspath(__file__))
if _SRC_DIR not in sys.path:
    sys.path.insert(0, _SRC_DIR)

from app.cli.commands import BaseCommand, CompileCommand, MatchCommand, ValidateCommand  # noqa: E402
from app.cli.parsers import create_argument_parser  # noqa: E402
from constants import ExitCode  # noqa: E402


COMMANDS: Dict[str, Type[BaseCommand]] = {
    'validate': ValidateCommand,
    'compile': CompileCommand,
    'match': MatchCommand,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return ExitCode.ERROR

    command = COMMANDS[args.command](config_path=getattr(args, 'config', None))
    try:
        return command.execute(args)
    except KeyboardInterrupt:
        print("\n✗ Interrupted")
        return ExitCode.ERROR


if __name__ == '__main__':
    sys.exit(main())
