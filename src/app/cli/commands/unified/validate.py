"""
Validate command: report issues and the fixes compile would apply.
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Dict

from ..base import BaseCommand, FileOutcome, emit
from constants import ExitCode
from core.services.pipeline import ErdCompiler
from shared.models.validation import Severity


logger = logging.getLogger(__name__)


class ValidateCommand(BaseCommand):
    """
    Validate ERD files without changing them.

    Usage:
        validate <path> [--strict] [--verbose] [--format json] [--output report.json]
    """

    report_suffix = "validation"

    def compiler_overrides(self, args: argparse.Namespace) -> Dict[str, Any]:
        overrides = super().compiler_overrides(args)
        overrides['auto_fix'] = False
        overrides['match'] = False
        return overrides

    def process_file(
        self,
        compiler: ErdCompiler,
        file_path: Path,
        args: argparse.Namespace,
    ) -> FileOutcome:
        result = compiler.compile_file(str(file_path), auto_fix=False)
        validation = result.initial_validation
        report: Dict[str, Any] = {
            "source": result.source_name,
            "state": result.state.value,
            "validation": validation.to_dict(),
        }
        if result.previews:
            report["fixPreview"] = [fix.to_dict() for fix in result.previews]

        if result.is_rejected:
            code = ExitCode.REJECTED
        elif not validation.is_valid:
            code = ExitCode.VALIDATION_ERROR
        else:
            code = ExitCode.SUCCESS

        if getattr(args, 'output_format', 'text') == 'text':
            self._print_report(result.source_name, validation, code, getattr(args, 'verbose', False))
        return code, report

    @staticmethod
    def _print_report(source: str, validation: Any, code: int, verbose: bool) -> None:
        if verbose:
            emit(validation.get_human_readable_summary())
        else:
            emit(
                f"Errors: {validation.error_count}  Warnings: {validation.warning_count}  "
                f"Auto-fixable: {len(validation.fixable)}"
            )
            for issue in validation.issues:
                if issue.severity == Severity.INFO:
                    continue
                emit(f"  [{issue.severity.value.upper()}] {issue.kind.value}: {issue.message}")
                if issue.fix_preview:
                    emit(f"      fix: {issue.fix_preview}")

        if code == ExitCode.REJECTED:
            emit(f"✗ {source}: no entities found, document rejected.")
        elif code == ExitCode.VALIDATION_ERROR:
            emit(f"✗ {source}: validation failed.")
        elif validation.warning_count:
            emit(f"⚠ {source}: valid with warnings.")
        else:
            emit(f"✓ {source}: validation successful!")
