"""
CLI argument parser configuration.

This module defines the argument parser structure for all CLI commands.
It centralizes all argument parsing logic and provides a clean interface
for the main entry point.

Command Structure:
    - validate <path>   report issues (with fix previews), no fixes applied
    - compile  <path>   full pipeline: fix, re-validate, match, export
    - match    <path>   advisory standard-entity matching only
"""

import argparse


# ============================================================================
# Shared Flag Group Builders
# ============================================================================

def add_input_flags(parser: argparse.ArgumentParser) -> None:
    """Add common input-related flags."""
    parser.add_argument('path', help='ERD file, or directory of ERD files')
    parser.add_argument(
        '--recursive', '-r',
        action='store_true',
        help='Recursively search directories for ERD files'
    )


def add_output_flags(parser: argparse.ArgumentParser) -> None:
    """Add common output-related flags."""
    parser.add_argument(
        '--output', '-o',
        help='Output file (single input) or directory (directory input)'
    )
    parser.add_argument(
        '--format',
        dest='output_format',
        choices=['text', 'json'],
        default='text',
        help='Console output format (default: text)'
    )


def add_config_flags(parser: argparse.ArgumentParser) -> None:
    """Add configuration and logging flags."""
    parser.add_argument(
        '--config', '-c',
        help='Path to configuration file (default: config.json in the project root)'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Override the configured log level'
    )
    parser.add_argument(
        '--log-file',
        help='Override the configured log file'
    )


def add_compiler_flags(parser: argparse.ArgumentParser) -> None:
    """Add flags that override the ``compiler`` config section."""
    parser.add_argument(
        '--strict',
        action='store_true',
        default=None,
        help='Treat warnings as failures'
    )


def add_threshold_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--threshold',
        type=_unit_interval,
        help='Lowest match confidence to report (0.0 - 1.0)'
    )


def _unit_interval(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if not 0.0 <= number <= 1.0:
        raise argparse.ArgumentTypeError(f"must be between 0 and 1: {value}")
    return number


# ============================================================================
# Main Parser Factory
# ============================================================================

def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the main argument parser.

    Returns:
        Configured ArgumentParser with all subcommands.
    """
    parser = argparse.ArgumentParser(
        description="Mermaid ERD to Dataverse-style schema compiler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Report issues and the fixes that would be applied
    %(prog)s validate samples/crm.mmd
    %(prog)s validate diagrams/ --recursive --format json

    # Compile: fix, re-validate, match and export
    %(prog)s compile samples/crm.mmd --output crm.schema.json
    %(prog)s compile diagrams/ --recursive --output build/
    %(prog)s compile samples/crm.mmd --no-fix --strict

    # Standard-entity suggestions only
    %(prog)s match samples/crm.mmd --threshold 0.5
        """,
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    _add_validate_parser(subparsers)
    _add_compile_parser(subparsers)
    _add_match_parser(subparsers)

    return parser


# ============================================================================
# Command Parsers
# ============================================================================

def _add_validate_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser(
        'validate',
        help='Validate ERD files and preview auto-fixes'
    )
    add_input_flags(parser)
    add_output_flags(parser)
    add_config_flags(parser)
    add_compiler_flags(parser)
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='List every issue, including info'
    )


def _add_compile_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser(
        'compile',
        help='Compile ERD files into schema export documents'
    )
    add_input_flags(parser)
    add_output_flags(parser)
    add_config_flags(parser)
    add_compiler_flags(parser)
    add_threshold_flag(parser)
    parser.add_argument(
        '--no-fix',
        dest='auto_fix',
        action='store_false',
        default=None,
        help='Do not apply auto-fixes'
    )
    parser.add_argument(
        '--no-match',
        dest='match',
        action='store_false',
        default=None,
        help='Skip standard-entity matching'
    )
    parser.add_argument(
        '--erd-output',
        help='Also write the corrected ERD to this file (single input only)'
    )


def _add_match_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser(
        'match',
        help='Suggest standard entities for each ERD entity'
    )
    add_input_flags(parser)
    add_output_flags(parser)
    add_config_flags(parser)
    add_threshold_flag(parser)
