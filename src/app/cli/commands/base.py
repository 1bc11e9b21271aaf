"""
Base command class.

This module contains the base command class that all CLI commands inherit
from. It owns the steps every command shares: configuration and logging
setup, compiler construction with CLI overrides, input discovery, the batch
loop (with a tqdm progress bar for larger directories), report output and
the mapping of failures to exit codes.
"""

import argparse
import copy
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from tqdm import tqdm

from ..helpers import (
    collect_erd_files,
    get_default_config_path,
    load_config,
    setup_logging,
    write_json_report,
)
from constants import ExitCode, ProcessingLimits
from core.services.pipeline import ErdCompiler, PipelineStateError
from core.validators.input import InputValidator


logger = logging.getLogger(__name__)

FileOutcome = Tuple[int, Dict[str, Any]]


# ============================================================================
# Helper Utilities
# ============================================================================

def exit_code_for_error(exc: BaseException) -> int:
    """Map an exception raised while processing a file to an exit code."""
    if isinstance(exc, FileNotFoundError):
        return ExitCode.FILE_NOT_FOUND
    if isinstance(exc, PermissionError):
        return ExitCode.PERMISSION_DENIED
    return ExitCode.ERROR


def emit(line: str = "") -> None:
    """Print a line without breaking an active progress bar."""
    tqdm.write(line)


# ============================================================================
# Base Command Class
# ============================================================================

class BaseCommand(ABC):
    """
    Base class for CLI commands.

    Subclasses implement process_file() and the report naming; execute()
    drives them over one file or a directory of files. The worst exit code
    of a batch (highest value) is returned.
    """

    #: Suffix for per-file reports written into an output directory.
    report_suffix: str = "report"

    def __init__(
        self,
        config_path: Optional[str] = None,
        compiler: Optional[ErdCompiler] = None,
    ):
        """
        Initialize the command.

        Args:
            config_path: Path to configuration file. An explicit path must
                exist; the default ``config.json`` is optional.
            compiler: Optional compiler instance (for dependency injection).
        """
        self._explicit_config = config_path is not None
        self.config_path = config_path or get_default_config_path()
        self._compiler = compiler
        self._config: Optional[Dict[str, Any]] = None

    @property
    def config(self) -> Dict[str, Any]:
        """Lazy-load configuration."""
        if self._config is None:
            if not self._explicit_config and not Path(self.config_path).exists():
                self._config = {}
            else:
                self._config = load_config(self.config_path)
        return self._config

    def setup_logging_from_config(self, args: argparse.Namespace) -> None:
        setup_logging(
            level=getattr(args, 'log_level', None),
            log_file=getattr(args, 'log_file', None),
            config=self.config.get('logging', {}),
        )

    def compiler_overrides(self, args: argparse.Namespace) -> Dict[str, Any]:
        """CLI values that replace keys of the ``compiler`` config section."""
        overrides: Dict[str, Any] = {}
        for key in ('strict', 'auto_fix', 'match'):
            value = getattr(args, key, None)
            if value is not None:
                overrides[key] = value
        threshold = getattr(args, 'threshold', None)
        if threshold is not None:
            overrides['match_threshold'] = threshold
        return overrides

    def get_compiler(self, args: argparse.Namespace) -> ErdCompiler:
        """Get or create the compiler, applying CLI overrides to the config."""
        if self._compiler is None:
            config = copy.deepcopy(self.config)
            section = config.setdefault('compiler', {})
            section.update(self.compiler_overrides(args))
            self._compiler = ErdCompiler.from_config(config)
        return self._compiler

    def resolve_inputs(self, args: argparse.Namespace) -> List[Path]:
        """
        Resolve the input path to the list of ERD files to process.

        Raises:
            FileNotFoundError: If the path does not exist.
            ValueError: If a directory holds no ERD files or a file fails
                path validation.
        """
        path = Path(args.path)
        if path.is_dir():
            files = collect_erd_files(path, recursive=getattr(args, 'recursive', False))
            if not files:
                raise ValueError(f"No ERD files found in '{path}'")
            return files
        return [InputValidator.validate_input_erd_path(args.path)]

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute(self, args: argparse.Namespace) -> int:
        """
        Execute the command.

        Args:
            args: Parsed command-line arguments.

        Returns:
            Exit code (0 for success, non-zero for error).
        """
        try:
            self.setup_logging_from_config(args)
            compiler = self.get_compiler(args)
        except (ValueError, FileNotFoundError, PermissionError) as exc:
            emit(f"✗ Configuration error: {exc}")
            return ExitCode.CONFIG_ERROR

        try:
            files = self.resolve_inputs(args)
        except (ValueError, TypeError, FileNotFoundError, PermissionError) as exc:
            emit(f"✗ {exc}")
            return exit_code_for_error(exc)

        batch = len(files) > 1 or Path(args.path).is_dir()
        output = getattr(args, 'output', None)
        json_mode = getattr(args, 'output_format', 'text') == 'json'

        reports: Dict[str, Dict[str, Any]] = {}
        codes: List[int] = []
        progress = tqdm(
            files,
            desc=f"{getattr(args, 'command', None) or 'process'} ERD files".capitalize(),
            unit="file",
            disable=len(files) < ProcessingLimits.PROGRESS_MIN_FILES,
        )
        for file_path in progress:
            if batch and not json_mode:
                emit(f"\n--- {file_path} ---")
            code, report = self._run_one(compiler, file_path, args)
            codes.append(code)
            reports[str(file_path)] = report
            if output and report:
                try:
                    target = self._save_report(report, file_path, Path(output), batch)
                except (ValueError, OSError) as exc:
                    emit(f"✗ Could not write report: {exc}")
                    codes[-1] = max(codes[-1], exit_code_for_error(exc))
                    continue
                if not json_mode:
                    emit(f"Report saved to: {target}")

        if json_mode:
            emit(json.dumps(reports if batch else next(iter(reports.values())), indent=2, ensure_ascii=False))

        worst = max(codes) if codes else ExitCode.SUCCESS
        if batch and not json_mode:
            failed = sum(1 for c in codes if c != ExitCode.SUCCESS)
            if failed:
                emit(f"\n✗ {failed} of {len(files)} file(s) did not pass.")
            else:
                emit(f"\n✓ All {len(files)} file(s) passed.")
        return int(worst)

    def _run_one(
        self,
        compiler: ErdCompiler,
        file_path: Path,
        args: argparse.Namespace,
    ) -> FileOutcome:
        try:
            return self.process_file(compiler, file_path, args)
        except (ValueError, TypeError, OSError) as exc:
            logger.error(f"Failed to process {file_path}: {exc}")
            emit(f"✗ {file_path}: {exc}")
            return exit_code_for_error(exc), {"error": str(exc)}
        except PipelineStateError as exc:
            logger.error(f"Pipeline error for {file_path}: {exc}")
            emit(f"✗ {file_path}: {exc}")
            return ExitCode.ERROR, {"error": str(exc)}

    def _save_report(self, report: Dict[str, Any], file_path: Path, output: Path, batch: bool) -> Path:
        if batch:
            output.mkdir(parents=True, exist_ok=True)
            target = output / f"{file_path.stem}.{self.report_suffix}.json"
        else:
            target = InputValidator.validate_output_file_path(str(output), allowed_extensions=['.json'])
        write_json_report(report, target)
        logger.info(f"Report saved to: {target}")
        return target

    @abstractmethod
    def process_file(
        self,
        compiler: ErdCompiler,
        file_path: Path,
        args: argparse.Namespace,
    ) -> FileOutcome:
        """
        Process one ERD file.

        Returns:
            Tuple of (exit code, JSON-serializable report).
        """
