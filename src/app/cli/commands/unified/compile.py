"""
Compile command: run the full pipeline and write export documents.
"""

import argparse
import logging
from pathlib import Path

from ..base import BaseCommand, FileOutcome, emit
from constants import ExitCode
from core.services.pipeline import CompilationResult, ErdCompiler
from core.validators.input import InputValidator


logger = logging.getLogger(__name__)


class CompileCommand(BaseCommand):
    """
    Compile ERD files into schema export documents.

    Usage:
        compile <path> [--output out.json] [--erd-output fixed.mmd] [--no-fix]
    """

    report_suffix = "schema"

    def process_file(
        self,
        compiler: ErdCompiler,
        file_path: Path,
        args: argparse.Namespace,
    ) -> FileOutcome:
        result = compiler.compile_file(str(file_path))

        if result.is_rejected:
            code = ExitCode.REJECTED
        elif not result.is_valid:
            code = ExitCode.VALIDATION_ERROR
        else:
            code = ExitCode.SUCCESS

        erd_output = getattr(args, 'erd_output', None)
        if erd_output and result.corrected_erd is not None:
            target = InputValidator.validate_output_file_path(
                erd_output, allowed_extensions=['.mmd', '.md', '.txt']
            )
            target.write_text(result.corrected_erd, encoding="utf-8")
            logger.info(f"Corrected ERD written to {target}")

        if getattr(args, 'output_format', 'text') == 'text':
            self._print_summary(result, code)
            if erd_output and result.corrected_erd is not None:
                emit(f"Corrected ERD saved to: {erd_output}")
        return code, result.to_dict()

    @staticmethod
    def _print_summary(result: CompilationResult, code: int) -> None:
        source = result.source_name
        if code == ExitCode.REJECTED:
            emit(f"✗ {source}: no entities found, document rejected.")
            return

        initial = result.initial_validation
        final = result.final_validation
        emit(
            f"Initial issues: {initial.error_count} error(s), {initial.warning_count} warning(s)"
        )
        for fix in result.applied_fixes:
            emit(f"  fixed: {fix.description}")
        if result.fix_result is not None and result.fix_result.unresolved_kinds:
            kinds = ", ".join(k.value for k in result.fix_result.unresolved_kinds)
            emit(f"  ⚠ unresolved after auto-fix: {kinds}")

        emit(f"Final issues: {final.error_count} error(s), {final.warning_count} warning(s)")
        for issue in final.errors + final.warnings:
            emit(f"  [{issue.severity.value.upper()}] {issue.kind.value}: {issue.message}")

        if result.matches is not None:
            for match in result.matches.best_matches:
                emit(
                    f"  match: {match.entity} -> {match.display_name} "
                    f"({match.confidence:.0%}, {match.level})"
                )

        export = result.export
        emit(
            f"Exported {len(export.entities)} entities, {len(export.relationships)} relationships, "
            f"{len(export.option_sets)} option sets"
        )
        if code == ExitCode.VALIDATION_ERROR:
            emit(f"✗ {source}: compiled with unresolved errors.")
        elif final.warning_count:
            emit(f"⚠ {source}: compiled with warnings.")
        else:
            emit(f"✓ {source}: compiled successfully!")
